# -*- coding: utf-8 -*-
"""Shared XLSX formatting utilities for report exports."""

import logging

from openpyxl.styles import Alignment, Font, PatternFill

logger = logging.getLogger(__name__)

# Common styles used across all report sheets
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)
LABEL_FONT = Font(bold=True)
DEFAULT_COLUMN_WIDTH = 20


class XLSXFormatter:
    """Shared XLSX formatting utilities for report writers."""

    @staticmethod
    def format_header(worksheet, template: "SalesReportTemplate", header_row: int = 1):
        """Apply header styling and set column widths.

        Args:
            worksheet: openpyxl Worksheet to format
            template: Template with COLUMN definitions
            header_row: 1-based row holding the column headers
        """
        for col_idx, col_spec in enumerate(template.COLUMNS, start=1):
            cell = worksheet.cell(row=header_row, column=col_idx)
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT
            cell.alignment = Alignment(horizontal="center", vertical="center")

            letter = cell.column_letter
            worksheet.column_dimensions[letter].width = (
                col_spec.width or DEFAULT_COLUMN_WIDTH
            )

    @staticmethod
    def format_labels(worksheet, first_row: int, last_row: int, column: int = 1):
        """Bold the label cells of a key/value header block."""
        for row in range(first_row, last_row + 1):
            worksheet.cell(row=row, column=column).font = LABEL_FONT

    @staticmethod
    def apply_column_formats(
        worksheet,
        template: "SalesReportTemplate",
        start_row: int = 2,
    ) -> None:
        """Apply number formats to data columns.

        Args:
            worksheet: openpyxl Worksheet to format
            template: Template with COLUMN definitions
            start_row: First row of data (after header)
        """
        max_row = worksheet.max_row
        if max_row < start_row:
            return

        for col_idx, col_spec in enumerate(template.COLUMNS, start=1):
            if col_spec.format_code:
                for row in range(start_row, max_row + 1):
                    cell = worksheet.cell(row=row, column=col_idx)
                    cell.number_format = col_spec.format_code
                    if col_spec.data_type == "number":
                        cell.alignment = Alignment(horizontal="right")
