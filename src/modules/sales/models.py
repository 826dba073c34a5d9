"""Canonical sales data model.

RawLineItem is what the normalizer produces from any upstream shape; LineItem
is the tax-split, categorized unit the aggregator and report writer consume.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class RecordKind(Enum):
    """Where a raw line item came from in the upstream payload."""

    ORDER_ITEM = "order_item"
    SALES_ITEM = "sales_item"
    MOVEMENT = "movement"
    PAYMENT = "payment"
    TILL_CLOSING = "till_closing"


@dataclass
class RawLineItem:
    """Line-item candidate before tax split and categorization.

    Amounts are None when the source did not supply them, which is different
    from an explicit 0 (e.g. a tax amount of 0 means "no tax").
    """

    name: str
    code: str = ""
    quantity: int = 0
    net_amount: Optional[float] = None
    tax_amount: Optional[float] = None
    gross_amount: Optional[float] = None
    category: str = ""
    kind: RecordKind = RecordKind.ORDER_ITEM


@dataclass
class LineItem:
    """One normalized product-or-payment entry."""

    name: str
    code: str
    quantity: int
    unit_price: int
    amount_excl_tax: int
    amount_incl_tax: int
    category: str


@dataclass
class CategoryTotal:
    """Per-category rollup, recomputed on every aggregation pass."""

    category: str
    quantity_sum: int
    amount_sum: int


@dataclass
class Report:
    """Aggregated sales report for one location and period."""

    location_label: str
    period_start: str
    period_end: str
    total_excl_tax: int = 0
    total_incl_tax: int = 0
    items: List[LineItem] = field(default_factory=list)
    by_category: List[CategoryTotal] = field(default_factory=list)


@dataclass
class NormalizedPayload:
    """Normalizer output: which extraction strategy matched and its items."""

    strategy: Optional[str]
    items: List[RawLineItem] = field(default_factory=list)
    order_count: int = 0


@dataclass
class NotificationSummary:
    """Summary handed to the email notifier."""

    product_count: int
    order_count: int
    total_incl_tax: int
