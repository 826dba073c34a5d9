# -*- coding: utf-8 -*-
"""Data cleaning utilities for point-of-sale payloads.

Upstream amounts arrive as numbers or as locale-formatted strings
("$ 1.234,50", "12,"), product names may carry escape sequences or HTML
entities, and uploaded CSV exports quote fields that contain the delimiter.
All helpers here degrade silently: a bad field becomes 0 or "" instead of
aborting a whole report.
"""

import codecs
import html
import logging
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import List, Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)

Amount = Union[int, float]

_AMOUNT_ALLOWED_CHARS = re.compile(r"[^0-9.,\-]")
_THOUSANDS_GROUPED = re.compile(r"^-?\d{1,3}(\.\d{3})+$")
_ESCAPE_SEQUENCE = re.compile(r"\\u[0-9a-fA-F]{4}|\\x[0-9a-fA-F]{2}|\\[nrt\"'\\]")


def _uses_decimal_comma(cleaned: str, decimal_comma: bool) -> bool:
    """Detect the "1.234,50" convention (period thousands, comma decimal).

    When both separators appear, the last one is the decimal mark, so
    "1,234.50" is read with comma thousands.
    """
    if "," in cleaned and "." in cleaned:
        return cleaned.rfind(",") > cleaned.rfind(".")
    if "," in cleaned:
        return True
    if cleaned.count(".") > 1:
        return True
    return decimal_comma and bool(_THOUSANDS_GROUPED.match(cleaned))


def parse_amount(value, decimal_comma: bool = True) -> Amount:
    """Parse a heterogeneous amount into a number.

    Handles:
    - Plain numbers: returned unchanged
    - Locale strings: "1.234.567,00" -> 1234567.0, "$ 1.234,50" -> 1234.5
    - Trailing comma artifacts: "12," -> 12.0
    - Comma thousands before a decimal point: "$1,234.50" -> 1234.5
    - Thousands-grouped strings under a decimal-comma locale: "10.000" -> 10000.0

    Args:
        value: Number, string, None or anything else from the upstream payload
        decimal_comma: Whether the configured locale writes decimals with a comma

    Returns:
        Parsed amount, 0 for empty or unparseable input (never raises)
    """
    if value is None or isinstance(value, bool):
        return 0

    if isinstance(value, (int, float)):
        if pd.isna(value):
            return 0
        return value

    if not isinstance(value, str):
        return 0

    cleaned = _AMOUNT_ALLOWED_CHARS.sub("", value.strip()).rstrip(",")
    if not cleaned:
        return 0

    if _uses_decimal_comma(cleaned, decimal_comma):
        cleaned = cleaned.replace(".", "")
        if "," in cleaned:
            head, _, tail = cleaned.rpartition(",")
            cleaned = f"{head.replace(',', '')}.{tail}"
    else:
        cleaned = cleaned.replace(",", "")

    try:
        return float(cleaned)
    except ValueError:
        logger.debug(f"Unparseable amount {value!r}, using 0")
        return 0


def round_currency(value: Optional[Amount]) -> int:
    """Round an amount to the nearest whole currency unit (half up).

    Args:
        value: Amount to round; None is treated as 0

    Returns:
        Integer amount
    """
    if value is None:
        return 0
    try:
        return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except (InvalidOperation, ValueError):
        return 0


def parse_quantity(value, default: int = 0, decimal_comma: bool = True) -> int:
    """Parse a quantity into a non-negative integer.

    Args:
        value: Raw quantity (number or string)
        default: Quantity used when the value is absent
        decimal_comma: Locale convention forwarded to parse_amount

    Returns:
        Integer quantity >= 0
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    quantity = round_currency(parse_amount(value, decimal_comma))
    return max(quantity, 0)


def decode_escapes(text: str) -> str:
    """Decode literal escape sequences ("\\u00f1", "\\n") and HTML entities."""
    decoded = _ESCAPE_SEQUENCE.sub(
        lambda match: codecs.decode(match.group(0), "unicode_escape"), text
    )
    return html.unescape(decoded)


def clean_item_name(value) -> str:
    """Clean a product name: decode escapes, strip and normalize internal spaces.

    Args:
        value: Raw name from the payload or CSV

    Returns:
        Cleaned name, "" for missing values
    """
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    text = decode_escapes(str(value))
    return re.sub(r"\s+", " ", text).strip()


def clean_code(value) -> str:
    """Clean a product/SKU code; numeric codes lose a trailing ".0"."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, float):
        if pd.isna(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def split_line(line: str, delimiter: str = ",") -> List[str]:
    """Split one delimited line into fields, honoring quoted segments.

    A double quote toggles quoted mode and is consumed. The delimiter only
    splits fields outside quotes. Doubled quotes inside a quoted field are not
    treated as an escaped quote.

    Args:
        line: One line of delimited text
        delimiter: Field delimiter

    Returns:
        List of trimmed fields (at least one)
    """
    fields = []
    current = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    fields.append("".join(current).strip())
    return fields
