"""Crew planning package: worker availability and job assignment suggestions.

Modules:
- config: engine configuration (weights, limits, knobs) from YAML or JSON
- domain: value types, errors, SQLAlchemy snapshot store
- services: schedule model, exception ledger, conflict detector, scoring, ranking,
  weekly utilization
- engine: individual and crew candidate builders plus the suggestion orchestrator
- api: the four entry points used by the surrounding application
- io: CSV import/export
- report: pandas summaries of suggestion results and team utilization
- cli: command-line interface entrypoints
"""

__all__ = [
    "config",
    "domain",
    "services",
    "engine",
    "api",
    "io",
    "report",
    "cli",
]
