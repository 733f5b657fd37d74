"""Exception ledger: time-off and holiday entries with an approval lifecycle.

Entries are created ``pending`` and move once to ``approved`` or ``rejected``.
An approved entry may still be withdrawn (``rejected``); a rejected entry is
final. Date ranges are never edited in place, a replacement entry is created
instead.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Tuple

from crewplan.config import DEFAULT_CONFIG, EngineConfig
from crewplan.domain.errors import (
    ExceptionTransitionError,
    MalformedInputError,
    ValidationError,
    ValidationResult,
)
from crewplan.domain.types import (
    ExceptionStatus,
    ExceptionType,
    ScheduleException,
    TimeOfDay,
    Worker,
)

logger = logging.getLogger(__name__)

_TRANSITIONS: Dict[ExceptionStatus, Set[ExceptionStatus]] = {
    ExceptionStatus.PENDING: {ExceptionStatus.APPROVED, ExceptionStatus.REJECTED},
    ExceptionStatus.APPROVED: {ExceptionStatus.REJECTED},
    ExceptionStatus.REJECTED: set(),
}


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def _parse_optional_time(value: Any) -> Optional[TimeOfDay]:
    if value is None or value == "":
        return None
    if isinstance(value, TimeOfDay):
        return value
    return TimeOfDay.parse(value)


def validate_exception_draft(
    draft: Mapping[str, Any],
    now: datetime,
    config: EngineConfig | None = None,
    id_factory: Callable[[], str] | None = None,
) -> ValidationResult:
    """
    Check an exception draft and build a pending ScheduleException from it.

    Args:
        draft: Mapping with type, title, start_date, end_date, is_full_day,
            start_time, end_time, notes
        now: Current local time; start_date may not be before now.date()
        config: Engine configuration (text and span limits)
        id_factory: Callable producing a new id (default: uuid4 hex)

    Returns:
        ValidationResult holding the new exception or every violated rule
    """
    cfg = config or DEFAULT_CONFIG
    limits = cfg.exceptions
    errors: List[ValidationError] = []

    if not isinstance(draft, Mapping):
        return ValidationResult(errors=[ValidationError("exception", "Exception must be a mapping")])

    # 1. Type
    exc_type: Optional[ExceptionType] = None
    try:
        exc_type = ExceptionType(str(draft.get("type", "")).strip().lower())
    except ValueError:
        allowed = ", ".join(t.value for t in ExceptionType)
        errors.append(ValidationError("type", f"Exception type must be one of: {allowed}"))

    # 2. Title and notes
    title = str(draft.get("title") or "").strip()
    if not title:
        errors.append(ValidationError("title", "Title is required"))
    elif len(title) > limits.max_title_length:
        errors.append(ValidationError("title", f"Title must be less than {limits.max_title_length} characters"))

    notes = draft.get("notes")
    if notes is not None:
        notes = str(notes)
        if len(notes) > limits.max_notes_length:
            errors.append(ValidationError("notes", f"Notes must be less than {limits.max_notes_length} characters"))

    # 3. Dates
    parsed: Dict[str, Optional[date]] = {}
    for key in ("start_date", "end_date"):
        try:
            parsed[key] = _parse_date(draft.get(key))
        except (TypeError, ValueError):
            errors.append(ValidationError(key, "Invalid date format (YYYY-MM-DD)"))
            parsed[key] = None
    start_date, end_date = parsed["start_date"], parsed["end_date"]

    if start_date is not None and end_date is not None:
        if start_date > end_date:
            errors.append(ValidationError("end_date", "Start date must be before or equal to end date"))
        elif (end_date - start_date).days > limits.max_span_days:
            errors.append(ValidationError("end_date", f"Date range cannot exceed {limits.max_span_days} days"))
    if start_date is not None and start_date < now.date():
        errors.append(ValidationError("start_date", "Start date cannot be in the past"))

    # 4. Partial-day window
    is_full_day = draft.get("is_full_day", True)
    if not isinstance(is_full_day, bool):
        errors.append(ValidationError("is_full_day", "Must be true or false"))
        is_full_day = True

    start_time = end_time = None
    if not is_full_day:
        times: Dict[str, Optional[TimeOfDay]] = {}
        for key in ("start_time", "end_time"):
            try:
                times[key] = _parse_optional_time(draft.get(key))
            except ValueError:
                errors.append(ValidationError(key, "Invalid time format (HH:MM)"))
                times[key] = None
                continue
            if times[key] is None:
                errors.append(ValidationError(key, "Start and end times are required for partial day exceptions"))
        start_time, end_time = times["start_time"], times["end_time"]
        if start_time is not None and end_time is not None and start_time >= end_time:
            errors.append(ValidationError("end_time", "Start time must be before end time"))

    if errors:
        return ValidationResult(errors=errors)

    new_id = id_factory() if id_factory else uuid.uuid4().hex
    exception = ScheduleException(
        id=new_id,
        type=exc_type,
        title=title,
        start_date=start_date,
        end_date=end_date,
        is_full_day=is_full_day,
        status=ExceptionStatus.PENDING,
        created_at=now,
        start_time=start_time,
        end_time=end_time,
        notes=notes,
    )
    return ValidationResult(value=exception)


def add_exception(
    worker: Worker,
    draft: Mapping[str, Any],
    now: datetime,
    config: EngineConfig | None = None,
    id_factory: Callable[[], str] | None = None,
) -> ValidationResult:
    """Validate a draft and append it to the worker's ledger as pending."""
    if worker is None:
        raise MalformedInputError("Worker is required")
    result = validate_exception_draft(draft, now, config, id_factory)
    if result.ok:
        worker.exceptions.append(result.value)
        logger.info("Added %s exception %s for worker %s", result.value.type.value, result.value.id, worker.id)
    return result


def find_exception(worker: Worker, exception_id: str) -> Tuple[int, ScheduleException]:
    for index, exc in enumerate(worker.exceptions):
        if exc.id == exception_id:
            return index, exc
    raise ExceptionTransitionError(f"Unknown exception {exception_id} for worker {worker.id}")


def set_status(
    worker: Worker,
    exception_id: str,
    status: ExceptionStatus | str,
    now: datetime | None = None,
) -> ScheduleException:
    """
    Approve or reject an exception. The only mutation allowed after creation.

    Raises:
        ExceptionTransitionError: Unknown id or a transition the lifecycle forbids
    """
    if worker is None:
        raise MalformedInputError("Worker is required")
    try:
        target = ExceptionStatus(status)
    except ValueError:
        raise ExceptionTransitionError(f"Unknown status {status!r}") from None

    index, current = find_exception(worker, exception_id)
    if target not in _TRANSITIONS[current.status]:
        raise ExceptionTransitionError(
            f"Cannot move exception {exception_id} from {current.status.value} to {target.value}"
        )
    updated = replace(current, status=target, decided_at=now)
    worker.exceptions[index] = updated
    logger.info("Exception %s for worker %s is now %s", exception_id, worker.id, target.value)
    return updated


def active_exceptions_on(worker: Worker, day: date) -> List[ScheduleException]:
    """Approved exceptions covering ``day``, partial-day entries first."""
    active = [exc for exc in worker.exceptions if exc.is_approved and exc.covers(day)]
    return sorted(
        active,
        key=lambda exc: (
            exc.is_full_day,
            exc.start_time.minutes if exc.start_time else 0,
            exc.created_at,
        ),
    )


def overlapping_exceptions(
    exceptions: List[ScheduleException],
) -> List[Tuple[ScheduleException, ScheduleException]]:
    """Pairs of non-rejected exceptions whose date ranges overlap."""
    live = [exc for exc in exceptions if exc.status is not ExceptionStatus.REJECTED]
    pairs = []
    for i, first in enumerate(live):
        for second in live[i + 1:]:
            if first.start_date <= second.end_date and second.start_date <= first.end_date:
                pairs.append((first, second))
    return pairs
