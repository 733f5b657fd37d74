"""I/O utilities for CSV import/export."""

from .import_csv import (
    import_capabilities_csv,
    import_commitments_csv,
    import_crews_csv,
    import_job_roles_csv,
    import_workers_csv,
)
from .export_csv import export_suggestions_csv, export_utilization_csv, export_workers_csv

__all__ = [
    "import_capabilities_csv",
    "import_commitments_csv",
    "import_crews_csv",
    "import_job_roles_csv",
    "import_workers_csv",
    "export_suggestions_csv",
    "export_utilization_csv",
    "export_workers_csv",
]
