"""Pytest configuration and shared fixtures."""

from datetime import date, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from crewplan.domain.models import Base
from crewplan.domain.types import JobRole, Qualification, Worker
from crewplan.services.schedule import validate_and_normalize_schedule

# 2024-06-10 is a Monday
MONDAY = date(2024, 6, 10)
NOW = datetime(2024, 6, 1, 9, 0)


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (deselect with '-m \"not integration\"')"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


def day(available=True, start="08:00", end="17:00", brk=60):
    return {"available": available, "start": start, "end": end, "break": brk}


@pytest.fixture
def weekday_schedule():
    """Monday-Friday 08:00-17:00 with an hour's break, weekends off."""
    raw = {name: day() for name in ("monday", "tuesday", "wednesday", "thursday", "friday")}
    raw["saturday"] = day(available=False)
    raw["sunday"] = day(available=False)
    return raw


@pytest.fixture
def make_worker(weekday_schedule):
    """Factory for workers on the weekday schedule."""

    def _make(worker_id, rating=4.0, hourly_rate=25.0, roles=None, **kwargs):
        schedule = kwargs.pop("schedule", weekday_schedule)
        result = validate_and_normalize_schedule(schedule)
        assert result.ok, result.messages()
        quals = [Qualification(role_id, level) for role_id, level in (roles if roles is not None else {"X": 3}).items()]
        return Worker(
            id=worker_id,
            name=kwargs.pop("name", f"Worker {worker_id}"),
            weekly_schedule=result.value,
            rating=rating,
            hourly_rate=hourly_rate,
            qualifications=quals,
            **kwargs,
        )

    return _make


@pytest.fixture
def roles():
    return {
        "X": JobRole("X", "Installer", base_rate=None),
        "Y": JobRole("Y", "Electrician", base_rate=40.0),
    }


@pytest.fixture
def db_session():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.close()
