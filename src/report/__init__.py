"""Report writers for the daily sales report (XLSX and CSV)."""

from .exporter import (
    format_display_date,
    render_report_csv,
    report_rows,
    write_report_csv,
    write_report_xlsx,
)
from .templates import ColumnSpec, SalesReportTemplate

__all__ = [
    "ColumnSpec",
    "SalesReportTemplate",
    "format_display_date",
    "report_rows",
    "render_report_csv",
    "write_report_csv",
    "write_report_xlsx",
]
