"""Export a sales Report to XLSX and CSV files.

Both variants share the row layout from report_rows(): the summary header
block, a blank separator row, the column header row, then one row per
aggregated product in report order.
"""

import logging
from pathlib import Path
from typing import Any, List, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment

from src.modules.sales.models import Report
from src.utils.exceptions import ExportError
from src.utils.xlsx_formatting import XLSXFormatter

from .templates import SalesReportTemplate

logger = logging.getLogger(__name__)

BOM = "\ufeff"


def format_display_date(value: str) -> str:
    """YYYY-MM-DD → DD/MM/YYYY; other strings are returned unchanged."""
    parts = value.split("-")
    if len(parts) != 3:
        return value
    year, month, day = parts
    return f"{day}/{month}/{year}"


def report_rows(
    report: Report, template: Optional[SalesReportTemplate] = None
) -> List[List[Any]]:
    """Build the report as a list of rows.

    Args:
        report: Aggregated report
        template: Layout; defaults to SalesReportTemplate

    Returns:
        Rows in output order; the separator row is an empty list
    """
    if template is None:
        template = SalesReportTemplate()

    header_values = [
        report.location_label,
        format_display_date(report.period_start),
        format_display_date(report.period_end),
        report.total_excl_tax,
        report.total_incl_tax,
    ]
    rows: List[List[Any]] = [
        [label, value] for label, value in zip(template.HEADER_LABELS, header_values)
    ]
    rows.append([])
    rows.append(template.get_column_names())

    for item in report.items:
        rows.append(
            [
                item.name,
                item.code,
                item.unit_price,
                item.quantity,
                item.amount_excl_tax,
                item.amount_incl_tax,
                item.category,
            ]
        )

    return rows


# ===== CSV =====


def _quote(value: Any) -> str:
    return '"' + str(value).replace('"', '""') + '"'


def render_report_csv(
    report: Report, template: Optional[SalesReportTemplate] = None
) -> str:
    """Render the report as CSV text prefixed with a UTF-8 byte-order mark.

    Item name and category are always quoted; header labels and values are
    written as-is except that values containing a comma are quoted.
    """
    if template is None:
        template = SalesReportTemplate()

    table_start = template.TABLE_HEADER_ROW - 1
    lines = []
    for index, row in enumerate(report_rows(report, template)):
        if index <= table_start:
            cells = [_quote(v) if "," in str(v) else str(v) for v in row]
        else:
            cells = [
                _quote(value) if col_spec.quoted else str(value)
                for col_spec, value in zip(template.COLUMNS, row)
            ]
        lines.append(",".join(cells))

    return BOM + "\n".join(lines) + "\n"


def write_report_csv(report: Report, output_path: Path) -> Path:
    """Write the CSV variant of the report.

    Raises:
        ExportError: If the file cannot be written
    """
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8", newline="") as f:
            f.write(render_report_csv(report))
    except OSError as e:
        raise ExportError(f"Failed to write CSV {output_path}: {e}") from e

    logger.info(f"Wrote CSV: {output_path}")
    return output_path


# ===== XLSX =====


def write_report_xlsx(report: Report, output_path: Path) -> Path:
    """Write the report to a formatted XLSX workbook.

    Args:
        report: Aggregated report
        output_path: Destination .xlsx file

    Returns:
        output_path

    Raises:
        ExportError: If the file cannot be written
    """
    template = SalesReportTemplate()

    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = template.SHEET_NAME

    for row_idx, row in enumerate(report_rows(report, template), start=1):
        for col_idx, value in enumerate(row, start=1):
            worksheet.cell(row=row_idx, column=col_idx, value=value)

    header_count = len(template.HEADER_LABELS)
    XLSXFormatter.format_labels(worksheet, 1, header_count)
    for row in range(4, header_count + 1):
        worksheet.cell(row=row, column=2).number_format = "#,##0"
        worksheet.cell(row=row, column=2).alignment = Alignment(horizontal="right")
    XLSXFormatter.format_header(worksheet, template, template.TABLE_HEADER_ROW)
    XLSXFormatter.apply_column_formats(
        worksheet, template, start_row=template.TABLE_HEADER_ROW + 1
    )

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        workbook.save(output_path)
    except OSError as e:
        raise ExportError(f"Failed to write XLSX {output_path}: {e}") from e

    logger.info(f"Wrote XLSX: {output_path} ({len(report.items)} products)")
    return output_path
