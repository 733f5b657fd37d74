"""Tests for weekly utilization and fairness."""

from datetime import date, datetime, timezone

import pytest

from crewplan.config import config_from_dict
from crewplan.domain.errors import MalformedInputError
from crewplan.domain.types import Commitment
from crewplan.services.utilization import (
    UtilizationStatus,
    fairness_adjusted_score,
    summarize_utilization,
    team_utilization,
    utilization_status,
    week_range,
    worker_utilization,
)

WEDNESDAY = date(2024, 6, 12)


def _booking(worker_id, day, start_hour, end_hour, job_id=None):
    return Commitment(
        worker_id,
        datetime(2024, 6, day, start_hour),
        datetime(2024, 6, day, end_hour),
        job_id=job_id,
    )


@pytest.fixture
def bookings():
    return [
        _booking("w1", 10, 8, 12),
        _booking("w1", 11, 8, 16),
        # Following week, not counted
        _booking("w1", 17, 8, 12),
        *[_booking("w2", day, 8, 17) for day in (10, 11, 12, 13)],
    ]


def test_week_range():
    assert week_range(WEDNESDAY) == (datetime(2024, 6, 10), datetime(2024, 6, 17))
    assert week_range(date(2024, 6, 16)) == (datetime(2024, 6, 10), datetime(2024, 6, 17))
    assert week_range(date(2024, 6, 17))[0] == datetime(2024, 6, 17)


@pytest.mark.parametrize("percentage, expected", [
    (0, UtilizationStatus.LOW),
    (69.9, UtilizationStatus.LOW),
    (70, UtilizationStatus.BALANCED),
    (89.9, UtilizationStatus.BALANCED),
    (90, UtilizationStatus.HIGH),
    (109.9, UtilizationStatus.HIGH),
    (110, UtilizationStatus.OVERLOADED),
    (250, UtilizationStatus.OVERLOADED),
])
def test_utilization_status(percentage, expected):
    assert utilization_status(percentage) is expected


def test_status_bands_follow_config():
    cfg = config_from_dict({"utilization": {"low_below": 50}})
    assert utilization_status(60, cfg) is UtilizationStatus.BALANCED
    assert UtilizationStatus.HIGH.label == "Busy"


def test_fairness_adjusted_score():
    assert fairness_adjusted_score(80, 30) == pytest.approx(77.0)
    assert fairness_adjusted_score(80, 120) == pytest.approx(56.0)
    assert fairness_adjusted_score(80, 30, weight=0) == pytest.approx(80.0)
    assert fairness_adjusted_score(100, 0, weight=1) == pytest.approx(100.0)


def test_worker_utilization(make_worker, bookings):
    util = worker_utilization(make_worker("w1"), bookings, WEDNESDAY)

    assert util.booked_hours == 12.0
    assert util.target_hours == 40.0
    assert util.utilization_percentage == 30.0
    assert util.bookings == 2
    assert util.fairness_score == 70.0
    assert util.status is UtilizationStatus.LOW
    assert str(util) == "12.0h / 40h (30%)"


def test_bookings_counted_in_worker_zone(make_worker):
    worker = make_worker("ny", timezone="America/New_York")
    bookings = [
        # 08:00-10:00 Monday in New York
        Commitment("ny", datetime(2024, 6, 10, 12, tzinfo=timezone.utc), datetime(2024, 6, 10, 14, tzinfo=timezone.utc)),
        # Late Sunday evening in New York, still the same week
        Commitment("ny", datetime(2024, 6, 17, 3, tzinfo=timezone.utc), datetime(2024, 6, 17, 5, tzinfo=timezone.utc)),
    ]
    util = worker_utilization(worker, bookings, WEDNESDAY)

    assert util.bookings == 2
    assert util.booked_hours == 4.0
    assert util.utilization_percentage == 10.0


def test_zero_hour_schedule_uses_default_target(make_worker, weekday_schedule):
    for name in ("tuesday", "wednesday", "thursday", "friday"):
        weekday_schedule[name] = {"available": False}
    weekday_schedule["monday"] = {"available": True, "start": "08:00", "end": "09:00", "break": 60}
    worker = make_worker("w1", schedule=weekday_schedule)

    util = worker_utilization(worker, [_booking("w1", 10, 8, 12)], WEDNESDAY)
    assert util.target_hours == 40.0
    assert util.utilization_percentage == 10.0


def test_team_utilization_least_utilized_first(make_worker, bookings):
    workers = [
        make_worker("w2"),
        make_worker("w1"),
        make_worker("w3"),
        make_worker("w4", is_active=False),
    ]
    team = team_utilization(workers, bookings, WEDNESDAY)

    assert [u.worker_id for u in team] == ["w3", "w1", "w2"]
    assert team[-1].utilization_percentage == 90.0
    assert team[-1].status is UtilizationStatus.HIGH

    summary = summarize_utilization(team)
    assert summary.total_workers == 3
    assert summary.average_utilization == 40.0
    assert summary.most_utilized.worker_id == "w2"
    assert summary.least_utilized.worker_id == "w3"
    assert summary.on_target_count == 1


def test_empty_team():
    summary = summarize_utilization([])
    assert summary.total_workers == 0
    assert summary.most_utilized is None
    with pytest.raises(MalformedInputError):
        worker_utilization(None, [], WEDNESDAY)
