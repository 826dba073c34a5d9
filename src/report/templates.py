"""Sales report template specification.

Defines the fixed layout of the daily sales report (Marketman import
format): summary header rows, a blank separator, then one row per product.
"""

from dataclasses import dataclass
from typing import List


@dataclass
class ColumnSpec:
    """Specification for a single column in the report table."""

    name: str  # Column header (e.g., "Menu item name")
    column_index: int  # 0-based column index
    data_type: str  # "text", "number"
    format_code: str | None  # Excel format code (e.g., "#,##0")
    width: int  # Excel column width
    quoted: bool = False  # Always quoted in the CSV variant


class SalesReportTemplate:
    """7-column product sales table preceded by the summary header block."""

    SHEET_NAME = "Ventas"

    HEADER_LABELS = [
        "Location name",
        "Begin date",
        "End date",
        "Total revenue excl. tax",
        "Total revenue incl. tax",
    ]

    COLUMNS = [
        ColumnSpec("Menu item name", 0, "text", None, 35, quoted=True),
        ColumnSpec("Menu item code", 1, "text", None, 15),
        ColumnSpec("Menu item list price", 2, "number", "#,##0", 18),
        ColumnSpec("Quantity sold", 3, "number", "#,##0", 14),
        ColumnSpec("Sales total excl. tax", 4, "number", "#,##0", 20),
        ColumnSpec("Sales total incl. tax", 5, "number", "#,##0", 25),
        ColumnSpec("Category", 6, "text", None, 30, quoted=True),
    ]

    # Header block, blank separator, then the column header row
    TABLE_HEADER_ROW = len(HEADER_LABELS) + 2

    def get_column_names(self) -> List[str]:
        """Get all column names in order."""
        return [col.name for col in self.COLUMNS]
