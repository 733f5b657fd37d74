"""Services for availability, conflicts, scoring and ranking."""

from .conflicts import find_conflicts
from .ledger import active_exceptions_on, add_exception, set_status
from .ranking import rank
from .schedule import is_available, update_schedule, validate_and_normalize_schedule
from .scoring import assess_worker, score_worker
from .timeplan import parse_time_string
from .utilization import team_utilization, worker_utilization

__all__ = [
    "find_conflicts",
    "active_exceptions_on",
    "add_exception",
    "set_status",
    "rank",
    "is_available",
    "update_schedule",
    "validate_and_normalize_schedule",
    "assess_worker",
    "score_worker",
    "parse_time_string",
    "team_utilization",
    "worker_utilization",
]
