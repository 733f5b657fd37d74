"""Tests for the external entry points."""

from datetime import datetime, timedelta, timezone

import pytest

from crewplan import api
from crewplan.domain.errors import MalformedInputError
from crewplan.domain.types import Commitment, JobData, JobRequirement, TimeWindow

NOW = datetime(2024, 6, 1, 9, 0)


def test_validate_and_normalize_schedule(weekday_schedule):
    result = api.validate_and_normalize_schedule(weekday_schedule)
    assert result.ok

    weekday_schedule["monday"]["start"] = "8am"
    result = api.validate_and_normalize_schedule(weekday_schedule)
    assert not result.ok
    assert result.messages() == ["monday.start: Invalid time format (HH:MM): '8am'"]


def test_add_exception_by_worker_id(make_worker):
    pool = {"w1": make_worker("w1"), "w2": make_worker("w2")}
    result = api.add_exception(pool, "w2", {
        "type": "holiday",
        "title": "Public holiday",
        "start_date": "2024-06-10",
        "end_date": "2024-06-10",
    }, NOW)

    assert result.ok
    assert pool["w2"].exceptions == [result.value]
    assert pool["w1"].exceptions == []

    with pytest.raises(MalformedInputError):
        api.add_exception(pool, "nobody", {}, NOW)


def test_find_conflicts_with_aware_window(make_worker):
    worker = make_worker("w1", timezone="Europe/Berlin")
    # Bookings stored in local time
    booked = [Commitment("w1", datetime(2024, 6, 10, 10), datetime(2024, 6, 10, 12), job_id="job-1")]
    # 09:00-10:00 UTC is 11:00-12:00 in Berlin (CEST)
    window = TimeWindow(
        datetime(2024, 6, 10, 9, tzinfo=timezone.utc),
        datetime(2024, 6, 10, 10, tzinfo=timezone.utc),
    )

    conflicts = api.find_conflicts([worker], "w1", window, booked)
    assert len(conflicts) == 1

    assert api.find_conflicts([worker], "w1", window, booked, exclude_job_id="job-1") == []


def test_find_conflicts_unknown_worker(make_worker):
    window = TimeWindow(datetime(2024, 6, 10, 9), datetime(2024, 6, 10, 10))
    with pytest.raises(MalformedInputError):
        api.find_conflicts([make_worker("w1")], "w9", window)


def test_generate_assignment_suggestions_across_zones(make_worker, roles):
    tz = timezone(timedelta(hours=-4))
    job = JobData(
        start=datetime(2024, 6, 10, 10, tzinfo=tz),
        finish=datetime(2024, 6, 10, 12, tzinfo=tz),
    )
    workers = {
        "ny": make_worker("ny", timezone="America/New_York"),
        # 10:00-12:00 at UTC-4 is 16:00-18:00 in Berlin, past the shift end
        "berlin": make_worker("berlin", timezone="Europe/Berlin", rating=5.0),
    }

    result = api.generate_assignment_suggestions(job, [JobRequirement("X", 1)], workers, roles=roles)

    assert [c.lead.worker_id for c in result] == ["ny"]
