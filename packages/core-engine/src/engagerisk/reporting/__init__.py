"""Report rendering for EngageRisk."""

from engagerisk.reporting.csv_export import ExportFilters, export_aggregated_csv, export_assessments_csv
from engagerisk.reporting.html_report import HTMLReportGenerator

__all__ = [
    "ExportFilters",
    "HTMLReportGenerator",
    "export_aggregated_csv",
    "export_assessments_csv",
]
