"""Pure value types consumed and produced by the engine.

Nothing in here touches storage. Records loaded from the snapshot store are
converted into these types by ``crewplan.domain.repositories``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import MalformedInputError


WEEKDAYS: Tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

_TIME_RE = re.compile(r"^([0-1]?[0-9]|2[0-4]):([0-5][0-9])$")


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """Wall-clock time with minute precision, no date and no timezone.

    24:00 is accepted as the end of the day so a shift can run to midnight.
    """

    hour: int
    minute: int = 0

    def __post_init__(self) -> None:
        if not (0 <= self.hour <= 23 and 0 <= self.minute <= 59) and (self.hour, self.minute) != (24, 0):
            raise ValueError(f"Invalid time of day {self.hour}:{self.minute}")

    @classmethod
    def parse(cls, text: str) -> "TimeOfDay":
        match = _TIME_RE.match(str(text).strip())
        if not match:
            raise ValueError(f"Invalid time format (HH:MM): {text!r}")
        return cls(int(match.group(1)), int(match.group(2)))

    @classmethod
    def from_minutes(cls, minutes: int) -> "TimeOfDay":
        return cls(minutes // 60, minutes % 60)

    @classmethod
    def of(cls, moment: datetime) -> "TimeOfDay":
        return cls(moment.hour, moment.minute)

    @property
    def minutes(self) -> int:
        return self.hour * 60 + self.minute

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class DaySchedule:
    available: bool
    start: TimeOfDay
    end: TimeOfDay
    break_minutes: int = 0

    @property
    def span_minutes(self) -> int:
        return self.end.minutes - self.start.minutes

    @property
    def net_hours(self) -> float:
        """Working hours after the break; zero on a day off."""
        if not self.available:
            return 0.0
        return max(0.0, (self.span_minutes - self.break_minutes) / 60.0)

    def to_dict(self) -> Dict[str, object]:
        return {
            "available": self.available,
            "start": str(self.start),
            "end": str(self.end),
            "break": self.break_minutes,
        }


@dataclass(frozen=True)
class WeeklySchedule:
    """Fixed seven-day recurring schedule, Monday first."""

    monday: DaySchedule
    tuesday: DaySchedule
    wednesday: DaySchedule
    thursday: DaySchedule
    friday: DaySchedule
    saturday: DaySchedule
    sunday: DaySchedule

    def for_date(self, day: date) -> DaySchedule:
        return getattr(self, WEEKDAYS[day.weekday()])

    def items(self) -> List[Tuple[str, DaySchedule]]:
        return [(name, getattr(self, name)) for name in WEEKDAYS]

    def to_dict(self) -> Dict[str, Dict[str, object]]:
        return {name: day.to_dict() for name, day in self.items()}


class ExceptionType(str, Enum):
    VACATION = "vacation"
    SICK = "sick"
    PERSONAL = "personal"
    HOLIDAY = "holiday"
    EMERGENCY = "emergency"


class ExceptionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ScheduleException:
    """Dated override of a worker's weekly schedule.

    ``start_time``/``end_time`` are set exactly when ``is_full_day`` is False.
    """

    id: str
    type: ExceptionType
    title: str
    start_date: date
    end_date: date
    is_full_day: bool
    status: ExceptionStatus
    created_at: datetime
    start_time: Optional[TimeOfDay] = None
    end_time: Optional[TimeOfDay] = None
    notes: Optional[str] = None
    decided_at: Optional[datetime] = None

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    @property
    def is_approved(self) -> bool:
        return self.status is ExceptionStatus.APPROVED

    def describe(self) -> str:
        if self.is_full_day:
            span = "all day"
        else:
            span = f"{self.start_time}-{self.end_time}"
        return f"{self.type.value} '{self.title}' ({self.start_date}..{self.end_date}, {span})"


@dataclass(frozen=True)
class Qualification:
    job_role_id: str
    proficiency_level: int
    is_active: bool = True


@dataclass(frozen=True)
class JobRole:
    id: str
    name: str
    base_rate: Optional[float] = None


@dataclass
class Worker:
    """Snapshot of a worker as supplied by the caller.

    Mutated only through ``update_schedule``, ``add_exception`` and
    ``set_status``.
    """

    id: str
    name: str
    weekly_schedule: WeeklySchedule
    exceptions: List[ScheduleException] = field(default_factory=list)
    rating: Optional[float] = None
    hourly_rate: Optional[float] = None
    is_active: bool = True
    qualifications: List[Qualification] = field(default_factory=list)
    timezone: str = "UTC"

    def qualification_for(self, job_role_id: str) -> Optional[Qualification]:
        matches = [
            q for q in self.qualifications
            if q.job_role_id == job_role_id and q.is_active
        ]
        if not matches:
            return None
        return max(matches, key=lambda q: q.proficiency_level)


@dataclass(frozen=True)
class JobRequirement:
    job_role_id: str
    quantity: int
    min_proficiency_level: Optional[int] = None


@dataclass(frozen=True)
class TimeWindow:
    """Half-open interval ``[start, end)``."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start is None or self.end is None:
            raise MalformedInputError("Time window needs both start and end")
        if (self.start.tzinfo is None) != (self.end.tzinfo is None):
            raise MalformedInputError("Time window mixes naive and aware datetimes")
        if self.start >= self.end:
            raise MalformedInputError(
                f"Time window is inverted or empty: {self.start} >= {self.end}"
            )

    @property
    def duration_hours(self) -> float:
        return (self.end - self.start).total_seconds() / 3600.0

    def overlaps(self, other: "TimeWindow") -> bool:
        return self.start < other.end and other.start < self.end

    def dates(self) -> List[date]:
        """Calendar dates touched by the window (end is exclusive)."""
        last = (self.end - timedelta(microseconds=1)).date()
        days = []
        current = self.start.date()
        while current <= last:
            days.append(current)
            current += timedelta(days=1)
        return days


@dataclass(frozen=True)
class JobData:
    start: datetime
    finish: datetime
    location: str = ""
    requirements: Tuple[JobRequirement, ...] = ()
    id: Optional[str] = None

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(self.start, self.finish)


@dataclass(frozen=True)
class RoleCapability:
    job_role_id: str
    capacity: int
    proficiency_level: int


@dataclass(frozen=True)
class Crew:
    id: str
    name: str
    members: Tuple[str, ...] = ()
    role_capabilities: Tuple[RoleCapability, ...] = ()

    def capability_for(self, job_role_id: str) -> Optional[RoleCapability]:
        for cap in self.role_capabilities:
            if cap.job_role_id == job_role_id:
                return cap
        return None


@dataclass(frozen=True)
class Commitment:
    """An assignment the worker already holds (job or crew booking)."""

    worker_id: str
    start: datetime
    end: datetime
    job_id: Optional[str] = None
    label: str = ""
    kind: str = "job"

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(self.start, self.end)


class ConflictKind(str, Enum):
    EXCEPTION = "exception"
    COMMITMENT = "commitment"


@dataclass(frozen=True)
class Conflict:
    kind: ConflictKind
    message: str
    source_id: Optional[str] = None

    def __str__(self) -> str:
        return self.message


class CandidateType(str, Enum):
    INDIVIDUAL = "individual"
    CREW = "crew"


@dataclass(frozen=True)
class AssignedWorker:
    worker_id: str
    role_id: str
    is_lead: bool
    score: float
    suggested_rate: float
    name: str = ""
    role_name: str = ""
    reasons: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AssignmentCandidate:
    """Proposed staffing for one job. Recomputed per request, never stored."""

    type: CandidateType
    workers: Tuple[AssignedWorker, ...]
    required_units: int
    duration_hours: float
    sequence: int = 0
    crew_id: Optional[str] = None
    crew_name: Optional[str] = None
    total_score: float = 0.0
    estimated_cost: float = 0.0
    conflicts: Tuple[str, ...] = ()

    @property
    def is_complete(self) -> bool:
        return len(self.workers) >= self.required_units

    @property
    def lead(self) -> Optional[AssignedWorker]:
        for worker in self.workers:
            if worker.is_lead:
                return worker
        return None


@dataclass(frozen=True)
class UnsatisfiableRole:
    job_role_id: str
    role_name: str
    required: int
    available: int

    @property
    def missing(self) -> int:
        return max(0, self.required - self.available)

    @property
    def message(self) -> str:
        return (
            f"Unfilled role {self.role_name}: needs {self.required}, "
            f"{self.available} qualified and available ({self.missing} missing)"
        )


@dataclass(frozen=True)
class ExcludedWorker:
    worker_id: str
    reason: str


@dataclass
class SuggestionResult:
    """Ranked candidates plus everything that could not be placed."""

    candidates: List[AssignmentCandidate] = field(default_factory=list)
    unsatisfiable: List[UnsatisfiableRole] = field(default_factory=list)
    excluded: List[ExcludedWorker] = field(default_factory=list)

    def __iter__(self) -> Iterator[AssignmentCandidate]:
        return iter(self.candidates)

    def __len__(self) -> int:
        return len(self.candidates)

    @property
    def best(self) -> Optional[AssignmentCandidate]:
        return self.candidates[0] if self.candidates else None
