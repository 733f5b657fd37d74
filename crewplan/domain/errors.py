"""Error taxonomy for the availability and assignment engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass(frozen=True)
class ValidationError:
    """A single violated rule. Returned as data, never raised."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


@dataclass
class ValidationResult:
    """Outcome of a validating operation: either a value or every problem found."""

    value: Optional[Any] = None
    errors: List[ValidationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def messages(self) -> List[str]:
        return [str(err) for err in self.errors]


class MalformedInputError(ValueError):
    """Fatal input problem (null worker, inverted window, bad quantity)."""


class ExceptionTransitionError(ValueError):
    """Illegal status change on a schedule exception."""


class StaleScheduleError(RuntimeError):
    """Schedule write lost an optimistic version check."""
