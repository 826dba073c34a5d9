# -*- coding: utf-8 -*-
"""Parse sales CSV exports uploaded by the restaurant.

Module: sales
Raw source: Toteat "ventas por producto" CSV export
(columns ID, Producto, Cantidad, Valor Venta, Descuentos, Costo)
Pipeline stage: uploaded file → RawLineItem sequence (sales items)

This script:
1. Reads the upload (UTF-8, falling back to latin1) and strips the BOM
2. Drops blank lines and rejects files without data rows
3. Detects columns from the lower-cased header names
4. Splits rows honoring quoted fields, skipping rows with fewer than 4 fields
5. Emits one sales item per row with the sale value as the tax-exclusive amount
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from src.modules.sales.models import RawLineItem, RecordKind
from src.utils.data_cleaning import (
    clean_code,
    clean_item_name,
    parse_amount,
    parse_quantity,
    split_line,
)
from src.utils.exceptions import InvalidUploadError

logger = logging.getLogger(__name__)

# ============================================================================
# CONFIGURATION
# ============================================================================

BOM = "\ufeff"
MIN_FIELDS_PER_ROW = 4
EMPTY_UPLOAD_MESSAGE = "CSV is empty or has no data rows"

# Header keywords per logical column, matched as substrings of the lower-cased
# header. "id" must match exactly since it is a substring of many words.
COLUMN_KEYWORDS: Dict[str, Sequence[str]] = {
    "code": ("codigo", "code"),
    "name": ("producto", "product", "nombre"),
    "quantity": ("cantidad", "quantity", "qty"),
    "sales": ("valor venta", "venta", "sales", "total"),
    "discount": ("descuento", "discount"),
    "cost": ("costo", "cost"),
}
EXACT_CODE_HEADER = "id"


# ============================================================================
# HEADER DETECTION
# ============================================================================


def detect_columns(header_line: str) -> Dict[str, Optional[int]]:
    """Map logical columns to header positions (None when not present).

    Args:
        header_line: First non-blank line of the CSV

    Returns:
        Dict of logical column name → index
    """
    headers = [header.lower() for header in split_line(header_line)]
    columns: Dict[str, Optional[int]] = {}

    for column, keywords in COLUMN_KEYWORDS.items():
        columns[column] = None
        for index, header in enumerate(headers):
            if column == "code" and header == EXACT_CODE_HEADER:
                columns[column] = index
                break
            if any(keyword in header for keyword in keywords):
                columns[column] = index
                break

    missing = [column for column, index in columns.items() if index is None]
    if missing:
        logger.warning(f"CSV header has no column for: {', '.join(missing)}")
    return columns


def _field(values: List[str], index: Optional[int]) -> str:
    if index is None or index >= len(values):
        return ""
    return values[index]


# ============================================================================
# PARSING
# ============================================================================


def parse_sales_csv(text: str, decimal_comma: bool = True) -> List[RawLineItem]:
    """Parse CSV text into sales line items.

    Args:
        text: Full CSV content
        decimal_comma: Locale convention for amount fields

    Returns:
        List of RawLineItem (kind SALES_ITEM, no tax figures)

    Raises:
        InvalidUploadError: If there is no header plus at least one data row
    """
    if text.startswith(BOM):
        text = text[len(BOM):]

    lines = [line for line in text.splitlines() if line.strip()]
    if len(lines) < 2:
        raise InvalidUploadError(EMPTY_UPLOAD_MESSAGE)

    columns = detect_columns(lines[0])

    items = []
    skipped = 0
    total_discount = 0.0
    total_cost = 0.0
    for line in lines[1:]:
        values = split_line(line)
        if len(values) < MIN_FIELDS_PER_ROW:
            skipped += 1
            continue

        items.append(
            RawLineItem(
                name=clean_item_name(_field(values, columns["name"])),
                code=clean_code(_field(values, columns["code"])),
                quantity=parse_quantity(
                    _field(values, columns["quantity"]), decimal_comma=decimal_comma
                ),
                net_amount=parse_amount(
                    _field(values, columns["sales"]), decimal_comma
                ),
                kind=RecordKind.SALES_ITEM,
            )
        )
        total_discount += parse_amount(
            _field(values, columns["discount"]), decimal_comma
        )
        total_cost += parse_amount(_field(values, columns["cost"]), decimal_comma)

    if skipped:
        logger.warning(
            f"Skipped {skipped} rows with fewer than {MIN_FIELDS_PER_ROW} fields"
        )
    logger.info(
        f"Parsed {len(items)} sales rows "
        f"(discounts: {total_discount:,.0f}, cost: {total_cost:,.0f})"
    )
    return items


def read_upload(path: Union[str, Path]) -> str:
    """Read an uploaded CSV as text, UTF-8 first then latin1."""
    path = Path(path)
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        logger.warning(f"{path.name} is not UTF-8, reading as latin1")
        return path.read_text(encoding="latin1")


def load_sales_csv(
    path: Union[str, Path],
    decimal_comma: bool = True,
    delete_after: bool = False,
) -> List[RawLineItem]:
    """Read and parse an uploaded sales CSV.

    Args:
        path: Uploaded file
        decimal_comma: Locale convention for amount fields
        delete_after: Remove the upload once parsed (also on parse errors)

    Returns:
        List of RawLineItem

    Raises:
        InvalidUploadError: If the file is missing, unreadable or has no data rows
    """
    path = Path(path)
    logger.info(f"Processing sales CSV: {path.name}")

    try:
        text = read_upload(path)
    except OSError as e:
        raise InvalidUploadError(f"Cannot read {path}: {e}") from e

    try:
        return parse_sales_csv(text, decimal_comma)
    finally:
        if delete_after:
            path.unlink(missing_ok=True)
            logger.debug(f"Deleted upload {path.name}")
