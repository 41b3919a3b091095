"""I/O utilities for CSV import/export."""

from .export_csv import export_assignments_csv, summarize_assignments
from .import_csv import import_availability_csv, import_employees_csv, import_templates_csv

__all__ = [
    "import_employees_csv",
    "import_templates_csv",
    "import_availability_csv",
    "export_assignments_csv",
    "summarize_assignments",
]
