"""Tests for the weekly schedule model."""

import random
from datetime import date, datetime

import pytest

from crewplan.config import config_from_dict
from crewplan.domain.errors import MalformedInputError
from crewplan.domain.types import ExceptionStatus, TimeOfDay, TimeWindow, WeeklySchedule
from crewplan.services.conflicts import find_conflicts
from crewplan.services.ledger import add_exception, set_status
from crewplan.services.schedule import (
    SCHEDULE_TEMPLATES,
    available_windows,
    average_daily_hours,
    is_available,
    is_available_for_window,
    schedule_template,
    shift_margin_minutes,
    update_schedule,
    validate_and_normalize_schedule,
    weekly_hours,
    working_days,
)
from crewplan.services.timeplan import calculate_shift_hours, parse_time_string

MONDAY = date(2024, 6, 10)
SATURDAY = date(2024, 6, 15)
NOW = datetime(2024, 6, 1, 9, 0)


def _fields(result):
    return {err.field for err in result.errors}


def test_parse_time_string():
    """Test time string parsing."""
    t = parse_time_string("07:30")
    assert t.hour == 7
    assert t.minute == 30

    assert parse_time_string("7:05") == TimeOfDay(7, 5)
    assert parse_time_string("24:00").minutes == 1440
    with pytest.raises(ValueError):
        parse_time_string("24:30")
    with pytest.raises(ValueError):
        parse_time_string("25:00")
    with pytest.raises(ValueError):
        parse_time_string("12:60")


def test_calculate_shift_hours():
    """Test shift duration calculation."""
    assert calculate_shift_hours("07:00", "15:00") == 8.0
    assert calculate_shift_hours("08:00", "17:00", 60) == 8.0
    assert calculate_shift_hours("17:00", "08:00") == 0.0


def test_valid_schedule_normalizes(weekday_schedule):
    result = validate_and_normalize_schedule(weekday_schedule)

    assert result.ok
    schedule = result.value
    assert isinstance(schedule, WeeklySchedule)
    assert schedule.monday.start == TimeOfDay(8, 0)
    assert schedule.monday.break_minutes == 60
    assert not schedule.saturday.available
    assert weekly_hours(schedule) == 40.0
    assert working_days(schedule) == 5
    assert average_daily_hours(schedule) == 8.0


def test_day_off_gets_default_times(weekday_schedule):
    weekday_schedule["sunday"] = {"available": False}
    result = validate_and_normalize_schedule(weekday_schedule)

    assert result.ok
    assert str(result.value.sunday.start) == "09:00"
    assert str(result.value.sunday.end) == "17:00"
    assert result.value.sunday.break_minutes == 0


def test_all_errors_are_reported(weekday_schedule):
    weekday_schedule["monday"] = {"available": True, "start": "17:00", "end": "08:00", "break": 0}
    weekday_schedule["tuesday"] = {"available": True, "start": "25:00", "end": "17:00", "break": 0}
    weekday_schedule["wednesday"] = {"available": True, "start": "08:00", "end": "17:00", "break": 500}
    del weekday_schedule["friday"]

    result = validate_and_normalize_schedule(weekday_schedule)

    assert not result.ok
    assert result.value is None
    fields = _fields(result)
    assert "monday.end" in fields
    assert "tuesday.start" in fields
    assert "wednesday.break" in fields
    assert "friday" in fields


def test_available_day_requires_times(weekday_schedule):
    weekday_schedule["monday"] = {"available": True, "break": 0}
    result = validate_and_normalize_schedule(weekday_schedule)

    assert {"monday.start", "monday.end"} <= _fields(result)


def test_daily_hours_limit(weekday_schedule):
    weekday_schedule["monday"] = {"available": True, "start": "06:00", "end": "19:00", "break": 0}
    result = validate_and_normalize_schedule(weekday_schedule)

    assert not result.ok
    assert "monday" in _fields(result)

    # Same span with a one hour break is exactly 12h and allowed
    weekday_schedule["monday"]["break"] = 60
    assert validate_and_normalize_schedule(weekday_schedule).ok


def test_weekly_hours_limit():
    raw = {name: {"available": True, "start": "07:00", "end": "17:00", "break": 0}
           for name in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")}
    result = validate_and_normalize_schedule(raw)

    assert not result.ok
    assert any("weekly hours" in err.message for err in result.errors)


def test_break_cannot_exceed_window(weekday_schedule):
    weekday_schedule["monday"] = {"available": True, "start": "08:00", "end": "09:00", "break": 90}
    result = validate_and_normalize_schedule(weekday_schedule)

    assert "monday.break" in _fields(result)


def test_at_least_one_available_day():
    raw = {name: {"available": False} for name in
           ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")}
    result = validate_and_normalize_schedule(raw)

    assert not result.ok
    assert "schedule" in _fields(result)


def test_unknown_weekday_and_bad_types(weekday_schedule):
    weekday_schedule["funday"] = {"available": True}
    weekday_schedule["monday"] = {"available": "yes", "start": "08:00", "end": "17:00", "break": "60"}
    result = validate_and_normalize_schedule(weekday_schedule)

    fields = _fields(result)
    assert "funday" in fields
    assert "monday.available" in fields
    assert "monday.break" in fields


def test_not_a_mapping():
    result = validate_and_normalize_schedule(["monday"])
    assert not result.ok


def test_limits_follow_config(weekday_schedule):
    cfg = config_from_dict({"schedule": {"max_weekly_hours": 30}})
    result = validate_and_normalize_schedule(weekday_schedule, cfg)

    assert not result.ok


@pytest.mark.parametrize("name", SCHEDULE_TEMPLATES)
def test_templates_are_valid(name):
    schedule = schedule_template(name)
    assert validate_and_normalize_schedule(schedule).ok
    assert working_days(schedule) >= 1


def test_unknown_template():
    with pytest.raises(ValueError):
        schedule_template("nights")


def test_update_schedule_keeps_old_on_error(make_worker, weekday_schedule):
    worker = make_worker("w1")
    before = worker.weekly_schedule

    weekday_schedule["monday"] = {"available": True, "start": "18:00", "end": "08:00", "break": 0}
    result = update_schedule(worker, weekday_schedule)

    assert not result.ok
    assert worker.weekly_schedule is before

    result = update_schedule(worker, schedule_template("weekend"))
    assert result.ok
    assert worker.weekly_schedule.saturday.available


def _random_day(rng):
    start = rng.randint(0, 22)
    end = rng.randint(start + 1, 23)
    return {
        "available": rng.random() < 0.7,
        "start": f"{start:02d}:{rng.choice([0, 15, 30, 45]):02d}",
        "end": f"{end:02d}:{rng.choice([0, 15, 30, 45]):02d}",
        "break": rng.choice([0, 15, 30, 60, 120, 600]),
    }


@pytest.mark.parametrize("seed", range(20))
def test_accepted_schedules_respect_limits(seed):
    rng = random.Random(seed)
    names = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
    for _ in range(50):
        raw = {name: _random_day(rng) for name in names}
        result = validate_and_normalize_schedule(raw)
        if not result.ok:
            assert result.errors
            continue

        schedule = result.value
        assert weekly_hours(schedule) <= 60
        for _, shift in schedule.items():
            assert shift.net_hours <= 12
            assert 0 <= shift.break_minutes <= 480
            if shift.available:
                assert shift.start < shift.end

        # Normalizing a normalized schedule changes nothing
        again = validate_and_normalize_schedule(schedule)
        assert again.ok
        assert again.value == schedule


def test_is_available_containment(make_worker):
    worker = make_worker("w1")

    assert is_available(worker, MONDAY, TimeOfDay(8, 0), TimeOfDay(17, 0))
    assert is_available(worker, MONDAY, TimeOfDay(10, 0), TimeOfDay(12, 0))
    assert not is_available(worker, MONDAY, TimeOfDay(7, 0), TimeOfDay(9, 0))
    assert not is_available(worker, MONDAY, TimeOfDay(16, 0), TimeOfDay(18, 0))
    assert not is_available(worker, SATURDAY, TimeOfDay(10, 0), TimeOfDay(12, 0))


@pytest.mark.parametrize("seed", range(10))
def test_is_available_random_windows(make_worker, seed):
    rng = random.Random(seed)
    worker = make_worker("w1")
    shift = worker.weekly_schedule.monday

    for _ in range(100):
        start = rng.randint(0, 23 * 60 - 1)
        end = rng.randint(start + 1, 23 * 60 + 59)
        inside = shift.start.minutes <= start and end <= shift.end.minutes
        got = is_available(worker, MONDAY, TimeOfDay.from_minutes(start), TimeOfDay.from_minutes(end))
        assert got == inside


def test_is_available_rejects_inverted_window(make_worker):
    worker = make_worker("w1")
    with pytest.raises(MalformedInputError):
        is_available(worker, MONDAY, TimeOfDay(12, 0), TimeOfDay(10, 0))
    with pytest.raises(MalformedInputError):
        is_available(None, MONDAY, TimeOfDay(10, 0), TimeOfDay(12, 0))


def test_approved_exceptions_block_availability(make_worker):
    worker = make_worker("w1")
    result = add_exception(worker, {
        "type": "vacation",
        "title": "Beach",
        "start_date": "2024-06-10",
        "end_date": "2024-06-10",
    }, NOW)

    # Pending entries do not block
    assert is_available(worker, MONDAY, TimeOfDay(10, 0), TimeOfDay(12, 0))

    set_status(worker, result.value.id, ExceptionStatus.APPROVED, NOW)
    assert not is_available(worker, MONDAY, TimeOfDay(10, 0), TimeOfDay(12, 0))
    assert available_windows(worker, MONDAY) == []


def test_partial_day_exception_windows(make_worker):
    worker = make_worker("w1")
    result = add_exception(worker, {
        "type": "personal",
        "title": "Dentist",
        "start_date": "2024-06-10",
        "end_date": "2024-06-10",
        "is_full_day": False,
        "start_time": "12:00",
        "end_time": "13:00",
    }, NOW)
    set_status(worker, result.value.id, "approved", NOW)

    assert available_windows(worker, MONDAY) == [
        (TimeOfDay(8, 0), TimeOfDay(12, 0)),
        (TimeOfDay(13, 0), TimeOfDay(17, 0)),
    ]
    assert is_available(worker, MONDAY, TimeOfDay(10, 0), TimeOfDay(12, 0))
    assert not is_available(worker, MONDAY, TimeOfDay(12, 30), TimeOfDay(14, 0))
    assert available_windows(worker, SATURDAY) == []


@pytest.mark.parametrize("start, end", [("08:00", "17:00"), ("08:00", "09:00"), ("12:00", "12:30"), ("16:59", "17:00")])
def test_full_day_vacation_blocks_every_window(make_worker, start, end):
    worker = make_worker("w1")
    exc = add_exception(worker, {
        "type": "vacation",
        "title": "Trip",
        "start_date": "2024-06-10",
        "end_date": "2024-06-10",
    }, NOW).value
    set_status(worker, exc.id, "approved")

    assert not is_available(worker, MONDAY, TimeOfDay.parse(start), TimeOfDay.parse(end))
    # The following Monday is unaffected
    assert is_available(worker, date(2024, 6, 17), TimeOfDay.parse(start), TimeOfDay.parse(end))


@pytest.fixture
def night_worker(make_worker):
    """Monday 16:00 to midnight, then Tuesday midnight to 08:00."""
    days = {name: {"available": False} for name in
            ("wednesday", "thursday", "friday", "saturday", "sunday")}
    schedule = {
        "monday": {"available": True, "start": "16:00", "end": "24:00", "break": 0},
        "tuesday": {"available": True, "start": "00:00", "end": "08:00", "break": 0},
        **days,
    }
    return make_worker("n1", schedule=schedule)


def test_shift_may_end_at_midnight(weekday_schedule):
    weekday_schedule["monday"] = {"available": True, "start": "16:00", "end": "24:00", "break": 0}
    result = validate_and_normalize_schedule(weekday_schedule)

    assert result.ok
    assert result.value.monday.net_hours == 8.0
    assert result.value.monday.to_dict()["end"] == "24:00"

    weekday_schedule["monday"] = {"available": True, "start": "24:00", "end": "24:00", "break": 0}
    assert "monday.start" in _fields(validate_and_normalize_schedule(weekday_schedule))


def test_overnight_window_fits_consecutive_shifts(night_worker):
    window = TimeWindow(datetime(2024, 6, 10, 22), datetime(2024, 6, 11, 2))

    assert is_available_for_window(night_worker, window)
    # Crossing midnight puts the job on both shift edges
    assert shift_margin_minutes(night_worker, window) == 0


def test_window_ending_at_midnight(night_worker, make_worker):
    window = TimeWindow(datetime(2024, 6, 10, 20), datetime(2024, 6, 11, 0))

    assert is_available_for_window(night_worker, window)
    assert shift_margin_minutes(night_worker, window) == 0
    assert not is_available_for_window(make_worker("w1"), window)


def test_overnight_window_rejected_on_second_day(night_worker):
    window = TimeWindow(datetime(2024, 6, 10, 22), datetime(2024, 6, 11, 9))

    assert not is_available_for_window(night_worker, window)
    assert shift_margin_minutes(night_worker, window) is None


def test_second_day_exception_blocks_overnight_window(night_worker):
    exc = add_exception(night_worker, {
        "type": "sick",
        "title": "Flu",
        "start_date": "2024-06-11",
        "end_date": "2024-06-11",
    }, NOW).value
    set_status(night_worker, exc.id, "approved")
    window = TimeWindow(datetime(2024, 6, 10, 22), datetime(2024, 6, 11, 2))

    assert not is_available_for_window(night_worker, window)
    assert is_available(night_worker, MONDAY, TimeOfDay(22, 0), TimeOfDay(24, 0))

    conflicts = find_conflicts(night_worker, window)
    assert [c.message for c in conflicts] == ["Sick on 2024-06-11: Flu"]


def test_partial_exception_running_to_midnight(night_worker):
    exc = add_exception(night_worker, {
        "type": "personal",
        "title": "Late errand",
        "start_date": "2024-06-10",
        "end_date": "2024-06-10",
        "is_full_day": False,
        "start_time": "23:00",
        "end_time": "24:00",
    }, NOW).value
    set_status(night_worker, exc.id, "approved")

    assert available_windows(night_worker, MONDAY) == [(TimeOfDay(16, 0), TimeOfDay(23, 0))]
    assert len(find_conflicts(night_worker, TimeWindow(datetime(2024, 6, 10, 23, 30), datetime(2024, 6, 11, 1)))) == 1
    assert find_conflicts(night_worker, TimeWindow(datetime(2024, 6, 11, 0), datetime(2024, 6, 11, 1))) == []
