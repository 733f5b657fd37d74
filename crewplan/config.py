"""Engine configuration: scoring weights, schedule limits and composition knobs.

Loaded from YAML (``.yaml``/``.yml``) or JSON. Every key is optional; missing
keys keep the defaults below.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreWeights:
    availability: float = 0.40
    rating: float = 0.35
    proficiency: float = 0.25

    def normalized(self) -> "ScoreWeights":
        total = self.availability + self.rating + self.proficiency
        if total <= 0:
            raise ValueError("Score weights must not all be zero")
        return ScoreWeights(
            availability=self.availability / total,
            rating=self.rating / total,
            proficiency=self.proficiency / total,
        )


@dataclass(frozen=True)
class ScheduleLimits:
    max_weekly_hours: float = 60.0
    max_daily_hours: float = 12.0
    max_break_minutes: int = 480


@dataclass(frozen=True)
class ExceptionLimits:
    max_title_length: int = 100
    max_notes_length: int = 500
    max_span_days: int = 365


@dataclass(frozen=True)
class UtilizationSettings:
    # Target hours for a worker whose schedule nets zero hours
    default_target_hours: float = 40.0
    fairness_weight: float = 0.3
    # Upper bounds (percent) of the low, balanced and busy bands
    low_below: float = 70.0
    balanced_below: float = 90.0
    busy_below: float = 110.0


@dataclass(frozen=True)
class EngineConfig:
    weights: ScoreWeights = field(default_factory=ScoreWeights)
    schedule: ScheduleLimits = field(default_factory=ScheduleLimits)
    exceptions: ExceptionLimits = field(default_factory=ExceptionLimits)
    utilization: UtilizationSettings = field(default_factory=UtilizationSettings)

    # Shift-edge fit: full marks once the job sits this far inside the shift
    comfort_margin_minutes: int = 60
    edge_fit_floor: float = 50.0

    max_rating: float = 5.0
    max_proficiency: int = 5
    default_rating: float = 3.0
    default_hourly_rate: Optional[float] = None

    max_individual_candidates: int = 2
    max_crew_candidates: int = 2

    # Thread pool size for per-worker scoring; 1 disables the pool
    max_workers: int = 4


_SECTIONS = {
    "weights": ScoreWeights,
    "schedule": ScheduleLimits,
    "exceptions": ExceptionLimits,
    "utilization": UtilizationSettings,
}


def _build_section(cls, raw: Dict[str, Any], name: str):
    known = {f.name for f in fields(cls)}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(f"Unknown keys in config section '{name}': {sorted(unknown)}")
    return cls(**raw)


def config_from_dict(raw: Dict[str, Any] | None) -> EngineConfig:
    """
    Overlay a plain mapping on the default configuration.

    Args:
        raw: Parsed YAML/JSON mapping (may be None or empty)

    Returns:
        EngineConfig with weights checked and normalized

    Raises:
        ValueError: On unknown keys, negative weights or all-zero weights
    """
    raw = dict(raw or {})
    overrides: Dict[str, Any] = {}

    for name, cls in _SECTIONS.items():
        if name in raw:
            section = raw.pop(name) or {}
            if not isinstance(section, dict):
                raise ValueError(f"Config section '{name}' must be a mapping")
            overrides[name] = _build_section(cls, section, name)

    scalar_names = {f.name for f in fields(EngineConfig)} - set(_SECTIONS)
    unknown = set(raw) - scalar_names
    if unknown:
        raise ValueError(f"Unknown config keys: {sorted(unknown)}")
    overrides.update(raw)

    cfg = replace(EngineConfig(), **overrides)

    w = cfg.weights
    if min(w.availability, w.rating, w.proficiency) < 0:
        raise ValueError("Score weights must be non-negative")
    cfg = replace(cfg, weights=w.normalized())

    if cfg.max_workers < 1:
        raise ValueError("max_workers must be at least 1")
    if not 0.0 <= cfg.utilization.fairness_weight <= 1.0:
        raise ValueError("utilization.fairness_weight must be between 0 and 1")
    return cfg


def load_config(path: str | Path) -> EngineConfig:
    """Load configuration from a YAML or JSON file."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        raw = yaml.safe_load(text)
    else:
        raw = json.loads(text)
    if raw is not None and not isinstance(raw, dict):
        raise ValueError(f"Config root must be a mapping: {path}")
    cfg = config_from_dict(raw)
    logger.info("Loaded engine config from %s", path)
    return cfg


DEFAULT_CONFIG = config_from_dict(None)
