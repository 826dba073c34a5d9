# -*- coding: utf-8 -*-
"""Normalize raw Toteat payloads into line-item candidates.

Module: sales
Raw source: Toteat API responses (collection, orders, sales) already fetched
Pipeline stage: raw payload → RawLineItem sequence (pre-tax, pre-category)

Upstream payloads are inconsistent:
1. Collections come as arrays or as mappings keyed by id (pseudo-arrays)
2. Field names vary by endpoint and version ("registerName"/"resgisterName")
3. Amounts are numbers or locale-formatted strings
4. Some endpoints itemize products, others only report payments per till

Each logical field is resolved from an ordered table of candidate keys, and
each payload shape is handled by a named extraction strategy. Strategies are
tried in priority order and the first one yielding items wins. The payload is
only read, never modified.
"""

import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from src.modules.sales.models import NormalizedPayload, RawLineItem, RecordKind
from src.utils.data_cleaning import (
    clean_code,
    clean_item_name,
    parse_amount,
    parse_quantity,
)

logger = logging.getLogger(__name__)

# ============================================================================
# FIELD RESOLUTION TABLES
# ============================================================================

ITEM_FIELDS: Dict[str, Tuple[str, ...]] = {
    "name": (
        "name",
        "productName",
        "itemName",
        "product",
        "description",
        "nombre",
        "producto",
    ),
    "code": ("code", "productID", "productId", "sku", "id", "codigo"),
    "quantity": ("quantity", "qty", "quantitySold", "cantidad", "count"),
    "net_amount": (
        "netAmount",
        "netTotal",
        "totalNet",
        "net",
        "subtotal",
        "totalWithoutTax",
        "valorVenta",
    ),
    "unit_net_price": ("netPrice", "unitNetPrice", "unitPrice", "price", "precio"),
    "tax_amount": ("taxAmount", "tax", "taxes", "totalTax", "iva", "impuesto"),
    "gross_amount": ("grossAmount", "totalWithTax", "total", "gross", "totalAmount"),
    "category": ("category", "categoryName", "hierarchyName", "family", "categoria"),
}

PAYMENT_FIELDS: Dict[str, Tuple[str, ...]] = {
    "name": ("paymentMethod", "paymentMethodName", "name", "method"),
    "code": ("paymentMethodID", "paymentMethodId", "id", "code"),
    "amount": ("amount", "total", "monto"),
}

REGISTER_FIELDS: Dict[str, Tuple[str, ...]] = {
    "name": ("registerName", "resgisterName", "name"),
    "payments": ("paymentMethods", "payments", "mediosPago"),
    "movements": ("movements", "movimientos"),
    "final_amount": ("finalAmount", "closingAmount", "closeAmount", "montoFinal"),
    "initial_amount": ("initialAmount", "openingAmount", "montoInicial"),
    "closed_by": (
        "closedBy",
        "closingUser",
        "closedByName",
        "cashierClose",
        "userClose",
    ),
    "closed_date": ("closedDate", "closingDate", "dateClosed", "closeDate"),
    "opened_date": ("openedDate", "openingDate", "dateOpened"),
}

REGISTER_MARKERS: Tuple[str, ...] = (
    REGISTER_FIELDS["payments"]
    + REGISTER_FIELDS["final_amount"]
    + REGISTER_FIELDS["movements"]
    + REGISTER_FIELDS["name"]
)
AMOUNT_ENTRY_FIELDS: Tuple[str, ...] = ("amount", "value", "total", "monto")

ORDER_ITEM_ARRAYS: Tuple[str, ...] = (
    "products",
    "items",
    "orderItems",
    "details",
    "lines",
)
ORDER_ARRAYS: Tuple[str, ...] = ("orders", "data")
SALES_GROUP_ARRAYS: Tuple[str, ...] = ("products", "items")

QUANTITY_DEFAULTS: Dict[RecordKind, int] = {
    RecordKind.ORDER_ITEM: 1,
    RecordKind.SALES_ITEM: 0,
    RecordKind.MOVEMENT: 1,
    RecordKind.PAYMENT: 1,
    RecordKind.TILL_CLOSING: 1,
}

TILL_CLOSING_PREFIX = "Cierre de caja"
UNKNOWN_CASHIER = "sin cajero"
UNKNOWN_DATE = "sin fecha"


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================


def resolve_field(record: Any, candidates: Sequence[str]) -> Any:
    """Return the first present, non-null, non-blank value among candidate keys.

    Args:
        record: Mapping to search (anything else resolves to None)
        candidates: Ordered alternate key names for one logical field

    Returns:
        The resolved value or None
    """
    if not isinstance(record, Mapping):
        return None
    for key in candidates:
        value = record.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def as_sequence(value: Any) -> List[Any]:
    """Coerce an array-like value into an ordered list.

    Lists and tuples keep their order, mappings used as pseudo-arrays yield
    their values in insertion order (not necessarily chronological), and
    anything absent or scalar yields an empty list.
    """
    if value is None:
        return []
    if isinstance(value, Mapping):
        return list(value.values())
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def as_records(value: Any, marker_keys: Sequence[str]) -> List[Any]:
    """Like as_sequence, but a single record is wrapped instead of split.

    A mapping is a single record when it has a marker key or holds any scalar
    value; a mapping of only mappings and arrays is a pseudo-array.
    """
    if isinstance(value, Mapping):
        if any(key in value for key in marker_keys):
            return [value]
        if any(not isinstance(v, (Mapping, list, tuple)) for v in value.values()):
            return [value]
    return as_sequence(value)


def _optional_amount(value: Any, decimal_comma: bool) -> Optional[float]:
    """Parse an optional amount; None when absent.

    Breakdown arrays (e.g. one entry per tax) are summed, and entry mappings
    contribute their amount field. An array with no amounts counts as absent.
    """
    if value is None:
        return None
    if isinstance(value, Mapping):
        entry_amount = resolve_field(value, AMOUNT_ENTRY_FIELDS)
        return _optional_amount(entry_amount, decimal_comma)
    if isinstance(value, (list, tuple)):
        amounts = [_optional_amount(entry, decimal_comma) for entry in value]
        amounts = [amount for amount in amounts if amount is not None]
        return sum(amounts) if amounts else None
    return parse_amount(value, decimal_comma)


def _format_closing_date(value: Any) -> str:
    """Render a closing timestamp as YYYY-MM-DD, tolerating epoch milliseconds."""
    if value is None:
        return UNKNOWN_DATE
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        unit = "ms" if value > 1e11 else "s"
        parsed = pd.to_datetime(value, unit=unit, errors="coerce")
    else:
        parsed = pd.to_datetime(str(value), errors="coerce")
    if pd.isna(parsed):
        return UNKNOWN_DATE
    return parsed.strftime("%Y-%m-%d")


def build_item(
    record: Mapping,
    kind: RecordKind,
    category: str = "",
    decimal_comma: bool = True,
) -> RawLineItem:
    """Build one RawLineItem from an item-like record.

    When only a unit net price is given, the net amount is unit * quantity.

    Args:
        record: Item mapping from an order, sales group or register movement
        kind: Record kind (drives the quantity default)
        category: Category inherited from an enclosing sales group
        decimal_comma: Locale convention for string amounts

    Returns:
        RawLineItem
    """
    quantity = parse_quantity(
        resolve_field(record, ITEM_FIELDS["quantity"]),
        default=QUANTITY_DEFAULTS[kind],
        decimal_comma=decimal_comma,
    )

    net_amount = _optional_amount(
        resolve_field(record, ITEM_FIELDS["net_amount"]), decimal_comma
    )
    if net_amount is None:
        unit_price = _optional_amount(
            resolve_field(record, ITEM_FIELDS["unit_net_price"]), decimal_comma
        )
        if unit_price is not None:
            net_amount = unit_price * quantity

    own_category = clean_item_name(resolve_field(record, ITEM_FIELDS["category"]))

    return RawLineItem(
        name=clean_item_name(resolve_field(record, ITEM_FIELDS["name"])),
        code=clean_code(resolve_field(record, ITEM_FIELDS["code"])),
        quantity=quantity,
        net_amount=net_amount,
        tax_amount=_optional_amount(
            resolve_field(record, ITEM_FIELDS["tax_amount"]), decimal_comma
        ),
        gross_amount=_optional_amount(
            resolve_field(record, ITEM_FIELDS["gross_amount"]), decimal_comma
        ),
        category=own_category or category,
        kind=kind,
    )


def build_till_closing(register: Mapping, final_amount: float) -> RawLineItem:
    """Synthesize the line item standing in for a register without payment detail."""
    cashier = clean_item_name(resolve_field(register, REGISTER_FIELDS["closed_by"]))
    closed_on = _format_closing_date(
        resolve_field(register, REGISTER_FIELDS["closed_date"])
    )
    name = f"{TILL_CLOSING_PREFIX} {cashier or UNKNOWN_CASHIER} {closed_on}"
    return RawLineItem(
        name=name,
        code="",
        quantity=QUANTITY_DEFAULTS[RecordKind.TILL_CLOSING],
        gross_amount=final_amount,
        kind=RecordKind.TILL_CLOSING,
    )


def _unwrap(payload: Any) -> Any:
    """Strip the vendor response envelope ({"ok": ..., "data": ...}) if present."""
    if isinstance(payload, Mapping) and "ok" in payload and "data" in payload:
        return payload["data"]
    return payload


def _iter_registers(shift: Mapping) -> List[Mapping]:
    """All register records of a shift, flattening register-id keyed groups."""
    registers = []
    for group in as_sequence(shift.get("registers")):
        for record in as_records(group, REGISTER_MARKERS):
            if isinstance(record, Mapping):
                registers.append(record)
    return registers


# ============================================================================
# EXTRACTION STRATEGIES
# ============================================================================


def extract_orders(
    payload: Any, decimal_comma: bool = True
) -> Tuple[List[RawLineItem], int]:
    """Extract items from an array of order records with nested item arrays."""
    if isinstance(payload, Mapping):
        orders = as_sequence(resolve_field(payload, ORDER_ARRAYS))
    else:
        orders = as_sequence(payload)

    items = []
    order_count = 0
    for order in orders:
        if not isinstance(order, Mapping):
            continue
        order_items = as_sequence(resolve_field(order, ORDER_ITEM_ARRAYS))
        if not order_items:
            continue
        order_count += 1
        for record in order_items:
            if isinstance(record, Mapping):
                items.append(
                    build_item(
                        record, RecordKind.ORDER_ITEM, decimal_comma=decimal_comma
                    )
                )

    return items, order_count


def _extract_sales_groups(sales: Any, decimal_comma: bool) -> List[RawLineItem]:
    """Items from a shift's sales, grouped by category as array or mapping."""
    items = []

    if isinstance(sales, Mapping):
        groups = [(str(key), group) for key, group in sales.items()]
    else:
        groups = [("", group) for group in as_sequence(sales)]

    for key_category, group in groups:
        records = resolve_field(group, SALES_GROUP_ARRAYS)
        if records is not None:
            category = (
                clean_item_name(resolve_field(group, ITEM_FIELDS["category"]))
                or key_category
            )
            records = as_sequence(records)
        elif isinstance(group, Mapping):
            category = key_category
            records = [group]
        else:
            category = key_category
            records = as_sequence(group)

        for record in records:
            if isinstance(record, Mapping):
                items.append(
                    build_item(record, RecordKind.SALES_ITEM, category, decimal_comma)
                )

    return items


def extract_sales(
    payload: Any, decimal_comma: bool = True
) -> Tuple[List[RawLineItem], int]:
    """Extract items from per-shift sales-by-category groups and register movements."""
    if not isinstance(payload, Mapping):
        return [], 0

    items = []
    shift_count = 0
    for shift in as_sequence(payload.get("shifts")):
        if not isinstance(shift, Mapping):
            continue

        shift_items = _extract_sales_groups(shift.get("sales"), decimal_comma)

        for register in _iter_registers(shift):
            movements = resolve_field(register, REGISTER_FIELDS["movements"])
            for movement in as_sequence(movements):
                if isinstance(movement, Mapping):
                    shift_items.append(
                        build_item(
                            movement, RecordKind.MOVEMENT, decimal_comma=decimal_comma
                        )
                    )

        if shift_items:
            shift_count += 1
            items.extend(shift_items)

    return items, shift_count


def _payment_item(payment: Mapping, decimal_comma: bool) -> RawLineItem:
    amount = resolve_field(payment, PAYMENT_FIELDS["amount"])
    return RawLineItem(
        name=clean_item_name(resolve_field(payment, PAYMENT_FIELDS["name"])),
        code=clean_code(resolve_field(payment, PAYMENT_FIELDS["code"])),
        quantity=QUANTITY_DEFAULTS[RecordKind.PAYMENT],
        gross_amount=parse_amount(amount, decimal_comma),
        kind=RecordKind.PAYMENT,
    )


def extract_collection(
    payload: Any, decimal_comma: bool = True
) -> Tuple[List[RawLineItem], int]:
    """Extract payment items from shifts → registers → payment methods.

    Registers without a payment breakdown but with a non-zero final amount
    produce a till-closing item so their totals are not dropped.
    """
    if not isinstance(payload, Mapping):
        return [], 0

    shifts = payload.get("shifts") if "shifts" in payload else payload

    items = []
    register_count = 0
    for shift in as_sequence(shifts):
        if not isinstance(shift, Mapping):
            continue

        for register in _iter_registers(shift):
            register_count += 1
            payments = [
                payment
                for payment in as_sequence(
                    resolve_field(register, REGISTER_FIELDS["payments"])
                )
                if isinstance(payment, Mapping)
            ]

            for payment in payments:
                items.append(_payment_item(payment, decimal_comma))

            if not payments:
                final_amount = parse_amount(
                    resolve_field(register, REGISTER_FIELDS["final_amount"]),
                    decimal_comma,
                )
                if final_amount:
                    items.append(build_till_closing(register, final_amount))

    return items, register_count


Strategy = Callable[[Any, bool], Tuple[List[RawLineItem], int]]

EXTRACTION_STRATEGIES: List[Tuple[str, Strategy]] = [
    ("orders", extract_orders),
    ("sales", extract_sales),
    ("collection", extract_collection),
]


# ============================================================================
# MAIN FUNCTION
# ============================================================================


def normalize(
    payload: Any,
    decimal_comma: bool = True,
    strategies: Optional[Sequence[Tuple[str, Strategy]]] = None,
) -> NormalizedPayload:
    """Normalize a raw payload into line-item candidates.

    Args:
        payload: Vendor response (envelope or data), order array, or mapping
        decimal_comma: Locale convention for string amounts
        strategies: Prioritized (name, strategy) list; defaults to EXTRACTION_STRATEGIES

    Returns:
        NormalizedPayload with the winning strategy name (None when nothing matched)
    """
    data = _unwrap(payload)
    if strategies is None:
        strategies = EXTRACTION_STRATEGIES

    for name, strategy in strategies:
        items, order_count = strategy(data, decimal_comma)
        if items:
            logger.info(
                f"Normalized {len(items)} line items from {order_count} records "
                f"using '{name}' strategy"
            )
            return NormalizedPayload(
                strategy=name, items=items, order_count=order_count
            )
        logger.debug(f"Strategy '{name}' yielded no items")

    logger.warning("No extraction strategy produced line items; payload is empty")
    return NormalizedPayload(strategy=None)
