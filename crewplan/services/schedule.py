"""Weekly schedule model: validation, normalization and availability lookups."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple

from crewplan.config import DEFAULT_CONFIG, EngineConfig
from crewplan.domain.errors import MalformedInputError, ValidationError, ValidationResult
from crewplan.domain.types import WEEKDAYS, DaySchedule, TimeOfDay, TimeWindow, WeeklySchedule, Worker

from .ledger import active_exceptions_on
from .timeplan import Interval, day_segments, intervals_overlap, subtract_interval

logger = logging.getLogger(__name__)

_DEFAULT_DAY_OFF = ("09:00", "17:00")
_END_OF_DAY = TimeOfDay(24, 0)


def _as_mapping(raw: Any) -> Any:
    if isinstance(raw, WeeklySchedule):
        return raw.to_dict()
    return raw


def _validate_day(
    name: str,
    raw: Any,
    cfg: EngineConfig,
    errors: List[ValidationError],
) -> Optional[DaySchedule]:
    if not isinstance(raw, Mapping):
        errors.append(ValidationError(name, "Day schedule must be a mapping"))
        return None

    before = len(errors)
    available = raw.get("available")
    if not isinstance(available, bool):
        errors.append(ValidationError(f"{name}.available", "Must be true or false"))
        available = False

    times: Dict[str, Optional[TimeOfDay]] = {}
    for key, fallback in zip(("start", "end"), _DEFAULT_DAY_OFF):
        value = raw.get(key)
        if value is None or value == "":
            if available:
                errors.append(ValidationError(f"{name}.{key}", "Required on an available day"))
                times[key] = None
                continue
            value = fallback
        try:
            times[key] = TimeOfDay.parse(value) if not isinstance(value, TimeOfDay) else value
        except ValueError:
            errors.append(ValidationError(f"{name}.{key}", f"Invalid time format (HH:MM): {value!r}"))
            times[key] = None

    if times.get("start") == _END_OF_DAY:
        errors.append(ValidationError(f"{name}.start", "24:00 is only valid as an end time"))
        times["start"] = None

    break_minutes = raw.get("break", raw.get("break_minutes", 0))
    if break_minutes is None:
        break_minutes = 0
    if isinstance(break_minutes, bool) or not isinstance(break_minutes, int):
        errors.append(ValidationError(f"{name}.break", "Break must be a whole number of minutes"))
        break_minutes = 0
    elif not 0 <= break_minutes <= cfg.schedule.max_break_minutes:
        errors.append(ValidationError(
            f"{name}.break",
            f"Break must be between 0 and {cfg.schedule.max_break_minutes} minutes",
        ))

    start, end = times.get("start"), times.get("end")
    if available and start is not None and end is not None:
        span = end.minutes - start.minutes
        if span <= 0:
            errors.append(ValidationError(f"{name}.end", "Start time must be before end time"))
        else:
            if break_minutes > span:
                errors.append(ValidationError(f"{name}.break", "Break cannot exceed the working window"))
            net_hours = (span - break_minutes) / 60.0
            if net_hours > cfg.schedule.max_daily_hours:
                errors.append(ValidationError(
                    name,
                    f"Daily working hours ({net_hours:.1f}h) exceed {cfg.schedule.max_daily_hours:g} hours",
                ))

    if len(errors) > before or start is None or end is None:
        return None
    return DaySchedule(available=available, start=start, end=end, break_minutes=break_minutes)


def validate_and_normalize_schedule(raw: Any, config: EngineConfig | None = None) -> ValidationResult:
    """
    Validate a weekly schedule payload and normalize it.

    Every violated rule is reported; nothing stops at the first problem.

    Args:
        raw: Mapping of weekday name -> {available, start, end, break}, or an
            existing WeeklySchedule (re-validated)
        config: Engine configuration (limits)

    Returns:
        ValidationResult holding a WeeklySchedule, or the full list of errors
    """
    cfg = config or DEFAULT_CONFIG
    raw = _as_mapping(raw)
    errors: List[ValidationError] = []

    if not isinstance(raw, Mapping):
        return ValidationResult(errors=[ValidationError("schedule", "Schedule must be a mapping of weekdays")])

    by_day: Dict[str, Any] = {}
    for key, value in raw.items():
        name = str(key).strip().lower()
        if name not in WEEKDAYS:
            errors.append(ValidationError(str(key), "Unknown weekday"))
            continue
        if name in by_day:
            errors.append(ValidationError(name, "Weekday given more than once"))
            continue
        by_day[name] = value

    days: Dict[str, DaySchedule] = {}
    for name in WEEKDAYS:
        if name not in by_day:
            errors.append(ValidationError(name, "Missing weekday"))
            continue
        day = _validate_day(name, by_day[name], cfg, errors)
        if day is not None:
            days[name] = day

    if by_day and not any(
        isinstance(v, Mapping) and v.get("available") is True for v in by_day.values()
    ):
        errors.append(ValidationError("schedule", "At least one day must be available for work"))

    total = sum(day.net_hours for day in days.values())
    if total > cfg.schedule.max_weekly_hours:
        errors.append(ValidationError(
            "schedule",
            f"Total weekly hours ({total:.1f}h) exceed {cfg.schedule.max_weekly_hours:g} hours",
        ))

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(value=WeeklySchedule(**days))


def update_schedule(worker: Worker, raw: Any, config: EngineConfig | None = None) -> ValidationResult:
    """Replace a worker's schedule only if the new one is fully valid."""
    if worker is None:
        raise MalformedInputError("Worker is required")
    result = validate_and_normalize_schedule(raw, config)
    if result.ok:
        worker.weekly_schedule = result.value
        logger.info("Updated weekly schedule for worker %s", worker.id)
    else:
        logger.debug("Rejected schedule for worker %s: %s", worker.id, result.messages())
    return result


def weekly_hours(schedule: WeeklySchedule) -> float:
    return sum(day.net_hours for _, day in schedule.items())


def working_days(schedule: WeeklySchedule) -> int:
    return sum(1 for _, day in schedule.items() if day.available)


def average_daily_hours(schedule: WeeklySchedule) -> float:
    count = working_days(schedule)
    return weekly_hours(schedule) / count if count else 0.0


def _blocked_by_exception(worker: Worker, day: date, interval: Interval) -> bool:
    for exc in active_exceptions_on(worker, day):
        if exc.is_full_day:
            return True
        if intervals_overlap(interval, (exc.start_time.minutes, exc.end_time.minutes)):
            return True
    return False


def _fits_day(worker: Worker, day: date, interval: Interval) -> bool:
    shift = worker.weekly_schedule.for_date(day)
    if not shift.available:
        return False
    if interval[0] < shift.start.minutes or interval[1] > shift.end.minutes:
        return False
    return not _blocked_by_exception(worker, day, interval)


def is_available(worker: Worker, day: date, start_time: TimeOfDay, end_time: TimeOfDay) -> bool:
    """
    Check whether a worker can work ``start_time``-``end_time`` on ``day``.

    The window must sit entirely inside the day's declared working hours and
    must not touch an approved exception. Breaks do not block bookings.

    Raises:
        MalformedInputError: Missing worker or inverted window
    """
    if worker is None:
        raise MalformedInputError("Worker is required")
    if start_time >= end_time:
        raise MalformedInputError(f"Inverted window {start_time}-{end_time}")
    return _fits_day(worker, day, (start_time.minutes, end_time.minutes))


def is_available_for_window(worker: Worker, window: TimeWindow) -> bool:
    """Multi-day form of ``is_available``; every per-day segment must fit."""
    if worker is None:
        raise MalformedInputError("Worker is required")
    return all(_fits_day(worker, day, interval) for day, interval in day_segments(window))


def shift_margin_minutes(worker: Worker, window: TimeWindow) -> Optional[int]:
    """Smallest distance between the window and its shift edges, or None if it does not fit."""
    margins = []
    for day, (start, end) in day_segments(window):
        shift = worker.weekly_schedule.for_date(day)
        if not shift.available or start < shift.start.minutes or end > shift.end.minutes:
            return None
        margins.append(min(start - shift.start.minutes, shift.end.minutes - end))
    return min(margins) if margins else None


def available_windows(worker: Worker, day: date) -> List[Tuple[TimeOfDay, TimeOfDay]]:
    """Working window for ``day`` with approved partial-day exceptions cut out."""
    shift = worker.weekly_schedule.for_date(day)
    if not shift.available:
        return []
    windows: List[Interval] = [(shift.start.minutes, shift.end.minutes)]
    for exc in active_exceptions_on(worker, day):
        if exc.is_full_day:
            return []
        windows = subtract_interval(windows, (exc.start_time.minutes, exc.end_time.minutes))
    return [(TimeOfDay.from_minutes(s), TimeOfDay.from_minutes(e)) for s, e in windows]


def _day(available: bool, start: str, end: str, break_minutes: int) -> Dict[str, Any]:
    return {"available": available, "start": start, "end": end, "break": break_minutes}


_TEMPLATES: Dict[str, Dict[str, Dict[str, Any]]] = {
    "fulltime": {
        **{d: _day(True, "08:00", "17:00", 60) for d in WEEKDAYS[:5]},
        "saturday": _day(False, "09:00", "17:00", 0),
        "sunday": _day(False, "09:00", "17:00", 0),
    },
    "parttime": {
        "monday": _day(True, "09:00", "15:00", 30),
        "tuesday": _day(False, "09:00", "15:00", 0),
        "wednesday": _day(True, "09:00", "15:00", 30),
        "thursday": _day(False, "09:00", "15:00", 0),
        "friday": _day(True, "09:00", "15:00", 30),
        "saturday": _day(False, "09:00", "15:00", 0),
        "sunday": _day(False, "09:00", "15:00", 0),
    },
    "weekend": {
        **{d: _day(False, "09:00", "17:00", 0) for d in WEEKDAYS[:5]},
        "saturday": _day(True, "09:00", "17:00", 60),
        "sunday": _day(True, "09:00", "17:00", 60),
    },
    "flexible": {
        **{d: _day(True, "10:00", "16:00", 45) for d in WEEKDAYS[:5]},
        "saturday": _day(True, "12:00", "18:00", 30),
        "sunday": _day(False, "10:00", "16:00", 0),
    },
}

SCHEDULE_TEMPLATES = tuple(_TEMPLATES)


def schedule_template(name: str) -> WeeklySchedule:
    """Return one of the stock weekly schedules (fulltime, parttime, weekend, flexible)."""
    key = name.strip().lower()
    if key not in _TEMPLATES:
        raise ValueError(f"Unknown schedule template {name!r}; expected one of {SCHEDULE_TEMPLATES}")
    result = validate_and_normalize_schedule(_TEMPLATES[key])
    return result.value
