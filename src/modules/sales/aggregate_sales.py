# -*- coding: utf-8 -*-
"""
Aggregate line items into the daily sales report.

Module: sales
Pipeline stage: RawLineItem → LineItem (tax split + category) → Report

Product rows are grouped by exact name (case-sensitive, untrimmed) and keep
the first-seen code, unit price and category. Category rows sum quantity and
tax-inclusive amount. Grand totals are summed over the ungrouped items so
they do not depend on how the rollups group.
"""

import logging
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from src.modules.sales.classify_items import ItemCategorizer
from src.modules.sales.models import (
    CategoryTotal,
    LineItem,
    NotificationSummary,
    RawLineItem,
    Report,
)
from src.modules.sales.tax_split import DEFAULT_TAX_RATE, split_tax
from src.utils.data_cleaning import round_currency

logger = logging.getLogger(__name__)

LINE_ITEM_COLUMNS = [
    "name",
    "code",
    "quantity",
    "unit_price",
    "amount_excl_tax",
    "amount_incl_tax",
    "category",
]


# ============================================================================
# LINE ITEMS
# ============================================================================


def build_line_item(
    raw: RawLineItem,
    categorizer: ItemCategorizer,
    tax_rate: float = DEFAULT_TAX_RATE,
) -> LineItem:
    """Apply tax split and categorization to one raw item.

    Args:
        raw: Normalizer output
        categorizer: Rule-based categorizer for items without upstream category
        tax_rate: Rate used when the source gives no tax figure

    Returns:
        LineItem with integer amounts and a non-empty category
    """
    split = split_tax(raw.net_amount, raw.tax_amount, raw.gross_amount, tax_rate)
    unit_price = round_currency(split.excl_tax / raw.quantity) if raw.quantity else 0
    category = raw.category or categorizer.categorize(raw.name)

    return LineItem(
        name=raw.name,
        code=raw.code,
        quantity=raw.quantity,
        unit_price=unit_price,
        amount_excl_tax=split.excl_tax,
        amount_incl_tax=split.incl_tax,
        category=category,
    )


def build_line_items(
    raw_items: Iterable[RawLineItem],
    categorizer: Optional[ItemCategorizer] = None,
    tax_rate: float = DEFAULT_TAX_RATE,
) -> List[LineItem]:
    """Build LineItems for every raw item, preserving input order."""
    if categorizer is None:
        categorizer = ItemCategorizer()
    return [build_line_item(raw, categorizer, tax_rate) for raw in raw_items]


# ============================================================================
# AGGREGATION
# ============================================================================


def _to_frame(items: Sequence[LineItem]) -> pd.DataFrame:
    return pd.DataFrame(
        [[getattr(item, column) for column in LINE_ITEM_COLUMNS] for item in items],
        columns=LINE_ITEM_COLUMNS,
    )


def _rollup_products(df: pd.DataFrame) -> List[LineItem]:
    """Group by exact name; first-seen code/unit price/category, summed amounts."""
    grouped = df.groupby("name", sort=False, dropna=False).agg(
        code=("code", "first"),
        quantity=("quantity", "sum"),
        unit_price=("unit_price", "first"),
        amount_excl_tax=("amount_excl_tax", "sum"),
        amount_incl_tax=("amount_incl_tax", "sum"),
        category=("category", "first"),
    )
    grouped = grouped.reset_index().sort_values(
        "quantity", ascending=False, kind="stable"
    )

    return [
        LineItem(
            name=row.name,
            code=row.code,
            quantity=int(row.quantity),
            unit_price=int(row.unit_price),
            amount_excl_tax=int(row.amount_excl_tax),
            amount_incl_tax=int(row.amount_incl_tax),
            category=row.category,
        )
        for row in grouped.itertuples(index=False)
    ]


def _rollup_categories(df: pd.DataFrame) -> List[CategoryTotal]:
    """Group by category; summed quantity and tax-inclusive amount."""
    grouped = df.groupby("category", sort=False, dropna=False).agg(
        quantity_sum=("quantity", "sum"),
        amount_sum=("amount_incl_tax", "sum"),
    )
    grouped = grouped.reset_index().sort_values(
        "amount_sum", ascending=False, kind="stable"
    )

    return [
        CategoryTotal(
            category=row.category,
            quantity_sum=int(row.quantity_sum),
            amount_sum=int(row.amount_sum),
        )
        for row in grouped.itertuples(index=False)
    ]


def aggregate(
    items: Sequence[LineItem],
    location_label: str,
    period_start: str,
    period_end: str,
) -> Report:
    """Aggregate line items into a Report.

    Args:
        items: Line items (not modified)
        location_label: Location shown in the report header
        period_start: Begin date (YYYY-MM-DD)
        period_end: End date (YYYY-MM-DD)

    Returns:
        Report; empty input gives zero totals and empty rollups
    """
    items = list(items)
    report = Report(
        location_label=location_label,
        period_start=period_start,
        period_end=period_end,
    )
    if not items:
        logger.info("No line items to aggregate, returning empty report")
        return report

    report.total_excl_tax = sum(item.amount_excl_tax for item in items)
    report.total_incl_tax = sum(item.amount_incl_tax for item in items)

    df = _to_frame(items)
    report.items = _rollup_products(df)
    report.by_category = _rollup_categories(df)

    logger.info(
        f"Aggregated {len(items)} line items into {len(report.items)} products "
        f"and {len(report.by_category)} categories "
        f"(total incl. tax: {report.total_incl_tax:,})"
    )
    return report


def build_notification_summary(report: Report, order_count: int) -> NotificationSummary:
    """Summary for the email notifier: product rows, orders seen, total incl. tax."""
    return NotificationSummary(
        product_count=len(report.items),
        order_count=order_count,
        total_incl_tax=report.total_incl_tax,
    )
