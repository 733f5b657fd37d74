"""Tests for per-worker scoring."""

from datetime import datetime, timezone

import pytest

from crewplan.config import DEFAULT_CONFIG, config_from_dict
from crewplan.domain.types import Commitment, JobRequirement, JobRole, TimeWindow
from crewplan.services.scoring import (
    assess_worker,
    availability_fit,
    composite_score,
    qualified_level,
    rank_workers,
    rating_normalized,
    score_worker,
    suggested_rate,
)


def _window(start_hour, end_hour, day=10):
    return TimeWindow(datetime(2024, 6, day, start_hour), datetime(2024, 6, day, end_hour))


def test_availability_fit_curve():
    assert availability_fit(0) == 50.0
    assert availability_fit(30) == 75.0
    assert availability_fit(60) == 100.0
    assert availability_fit(300) == 100.0


def test_rating_defaults_and_clamps():
    assert rating_normalized(4.0) == 80.0
    assert rating_normalized(None) == 60.0
    assert rating_normalized(9.0) == 100.0


def test_composite_score_weights():
    assert composite_score(100, 80, 60) == pytest.approx(83.0)
    cfg = config_from_dict({"weights": {"availability": 1, "rating": 0, "proficiency": 0}})
    assert composite_score(50, 100, 100, cfg) == pytest.approx(50.0)


def test_suggested_rate(make_worker):
    worker = make_worker("w1", hourly_rate=30.0)
    assert suggested_rate(worker, JobRole("X", "Installer", base_rate=None)) == 30.0
    assert suggested_rate(worker, JobRole("Y", "Electrician", base_rate=40.0)) == 40.0

    no_rate = make_worker("w2", hourly_rate=None)
    assert suggested_rate(no_rate, JobRole("Y", "Electrician", base_rate=40.0)) == 40.0
    assert suggested_rate(no_rate, None) is None
    assert suggested_rate(no_rate, None, config_from_dict({"default_hourly_rate": 20.0})) == 20.0


def test_qualified_level(make_worker):
    worker = make_worker("w1", roles={"X": 3})
    assert qualified_level(worker, JobRequirement("X", 1)) == 3
    assert qualified_level(worker, JobRequirement("X", 1, min_proficiency_level=3)) == 3
    assert qualified_level(worker, JobRequirement("X", 1, min_proficiency_level=4)) is None
    assert qualified_level(worker, JobRequirement("Z", 1)) is None


def test_assess_worker_inside_shift(make_worker):
    worker = make_worker("w1")
    assessment = assess_worker(worker, 0, _window(10, 12))

    assert assessment.eligible
    assert assessment.margin_minutes == 120


def test_assess_worker_outside_shift_and_inactive(make_worker):
    worker = make_worker("w1")
    late = assess_worker(worker, 0, _window(16, 18))
    assert not late.eligible
    assert late.reason == "outside weekly schedule"

    inactive = make_worker("w2", is_active=False)
    assessment = assess_worker(inactive, 1, _window(10, 12))
    assert not assessment.eligible
    assert assessment.reason == "inactive"


def test_assess_worker_with_booking(make_worker):
    worker = make_worker("w1")
    booked = [Commitment("w1", datetime(2024, 6, 10, 11), datetime(2024, 6, 10, 13), job_id="job-1")]

    assessment = assess_worker(worker, 0, _window(10, 12), booked)
    assert not assessment.eligible
    assert assessment.available
    assert "Already assigned" in assessment.reason

    assert assess_worker(worker, 0, _window(10, 12), booked, exclude_job_id="job-1").eligible


def test_assess_worker_converts_to_local_time(make_worker):
    worker = make_worker("w1", timezone="America/New_York")
    # 14:00-16:00 UTC is 10:00-12:00 in New York during June
    window = TimeWindow(
        datetime(2024, 6, 10, 14, tzinfo=timezone.utc),
        datetime(2024, 6, 10, 16, tzinfo=timezone.utc),
    )
    assessment = assess_worker(worker, 0, window)

    assert assessment.window.start == datetime(2024, 6, 10, 10)
    assert assessment.eligible


def test_score_worker(make_worker):
    worker = make_worker("w1", rating=4.0)
    assessment = assess_worker(worker, 0, _window(10, 12))

    scored = score_worker(assessment, "X", 3, JobRole("X", "Installer"), DEFAULT_CONFIG)

    assert scored.score == pytest.approx(83.0)
    assert scored.suggested_rate == 25.0
    assert scored.availability_fit == 100.0
    assert any("Installer" in r for r in scored.reasons)
    assert any("Rating 4/5" in r for r in scored.reasons)


def test_score_penalizes_shift_edge(make_worker):
    worker = make_worker("w1", rating=4.0)
    edge = score_worker(assess_worker(worker, 0, _window(8, 10)), "X", 3)
    middle = score_worker(assess_worker(worker, 0, _window(10, 12)), "X", 3)

    assert edge.score == pytest.approx(63.0)
    assert edge.score < middle.score


def test_rank_workers_tie_breaks(make_worker):
    window = _window(10, 12)
    a = score_worker(assess_worker(make_worker("a", rating=4.0), 0, window), "X", 3)
    b = score_worker(assess_worker(make_worker("b", rating=5.0), 1, window), "X", 2)
    c = score_worker(assess_worker(make_worker("c", rating=4.0), 2, window), "X", 3)

    # b: 40 + 35 + 10 = 85; a and c: 83, tie settled by pool order
    assert [s.worker.id for s in rank_workers([c, a, b])] == ["b", "a", "c"]


def test_assess_worker_keeps_duration_when_clocks_fall_back(make_worker):
    worker = make_worker("w1", timezone="America/New_York")
    # 05:00-06:00 UTC on 2024-11-03 is 01:00 EDT to 01:00 EST in New York
    window = TimeWindow(
        datetime(2024, 11, 3, 5, tzinfo=timezone.utc),
        datetime(2024, 11, 3, 6, tzinfo=timezone.utc),
    )
    assessment = assess_worker(worker, 0, window)

    assert assessment.window.start == datetime(2024, 11, 3, 1)
    assert assessment.window.end == datetime(2024, 11, 3, 2)
    # Sunday is a day off on the weekday schedule
    assert not assessment.available
    assert assessment.reason == "outside weekly schedule"


def test_assess_worker_converts_aware_commitments(make_worker):
    worker = make_worker("w1", timezone="Europe/Berlin")
    booked = [Commitment(
        "w1",
        datetime(2024, 6, 10, 8, tzinfo=timezone.utc),
        datetime(2024, 6, 10, 9, tzinfo=timezone.utc),
        job_id="job-1",
    )]
    # Job 10:30-12:00 Berlin time; the booking is 10:00-11:00 Berlin time
    window = TimeWindow(datetime(2024, 6, 10, 10, 30), datetime(2024, 6, 10, 12))
    assessment = assess_worker(worker, 0, window, booked)

    assert not assessment.eligible
    assert "2024-06-10 10:00-11:00" in assessment.reason
