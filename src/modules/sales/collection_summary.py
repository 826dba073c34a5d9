# -*- coding: utf-8 -*-
"""Summarize a Toteat daily collection (shifts, registers, payment methods).

Module: sales
Raw source: Toteat /collection response data
Output: Per-register and per-shift totals, payment methods consolidated by
(id, name), and a flat CSV of every payment.

A register's total is its final amount plus the amounts of its payments.
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from src.modules.sales.normalize_records import (
    PAYMENT_FIELDS,
    REGISTER_FIELDS,
    REGISTER_MARKERS,
    as_records,
    as_sequence,
    resolve_field,
)
from src.utils.data_cleaning import clean_code, clean_item_name, parse_amount

logger = logging.getLogger(__name__)

COLLECTION_CSV_HEADER = ["Fecha", "Turno", "Caja", "Método de Pago", "Monto"]


@dataclass
class PaymentEntry:
    method_id: str
    method: str
    amount: float


@dataclass
class RegisterSummary:
    register_id: str
    name: str
    initial_amount: float
    final_amount: float
    opened_date: Optional[str] = None
    closed_date: Optional[str] = None
    payments: List[PaymentEntry] = field(default_factory=list)


@dataclass
class ShiftSummary:
    shift_id: str
    name: str
    total_amount: float = 0
    registers: List[RegisterSummary] = field(default_factory=list)


@dataclass
class PaymentMethodTotal:
    method_id: str
    method: str
    total_amount: float


@dataclass
class ParsedCollection:
    """Structured collection for one report date."""

    date: str
    restaurant_id: Optional[str] = None
    local_id: Optional[str] = None
    total_amount: float = 0
    shifts: List[ShiftSummary] = field(default_factory=list)
    payment_methods: List[PaymentMethodTotal] = field(default_factory=list)

    @property
    def total_shifts(self) -> int:
        return len(self.shifts)

    @property
    def total_registers(self) -> int:
        return sum(len(shift.registers) for shift in self.shifts)


def _keyed(value: Any) -> List[Tuple[str, Any]]:
    """(key, value) pairs of a mapping, or (position, value) pairs of a list."""
    if isinstance(value, dict):
        return [(str(key), item) for key, item in value.items()]
    return [(str(index), item) for index, item in enumerate(as_sequence(value))]


def _parse_register(
    register_id: str, record: Dict, decimal_comma: bool
) -> RegisterSummary:
    register = RegisterSummary(
        register_id=register_id,
        name=clean_item_name(resolve_field(record, REGISTER_FIELDS["name"])),
        initial_amount=parse_amount(
            resolve_field(record, REGISTER_FIELDS["initial_amount"]), decimal_comma
        ),
        final_amount=parse_amount(
            resolve_field(record, REGISTER_FIELDS["final_amount"]), decimal_comma
        ),
        opened_date=resolve_field(record, REGISTER_FIELDS["opened_date"]),
        closed_date=resolve_field(record, REGISTER_FIELDS["closed_date"]),
    )

    for payment in as_sequence(resolve_field(record, REGISTER_FIELDS["payments"])):
        if not isinstance(payment, dict):
            continue
        entry = PaymentEntry(
            method_id=clean_code(resolve_field(payment, PAYMENT_FIELDS["code"])),
            method=clean_item_name(resolve_field(payment, PAYMENT_FIELDS["name"])),
            amount=parse_amount(
                resolve_field(payment, PAYMENT_FIELDS["amount"]), decimal_comma
            ),
        )
        register.payments.append(entry)
        register.final_amount += entry.amount

    return register


def _consolidate_payments(shifts: List[ShiftSummary]) -> List[PaymentMethodTotal]:
    """Sum payments by (method id, method name), in first-seen order."""
    totals: Dict[Tuple[str, str], PaymentMethodTotal] = {}
    for shift in shifts:
        for register in shift.registers:
            for payment in register.payments:
                key = (payment.method_id, payment.method)
                if key in totals:
                    totals[key].total_amount += payment.amount
                else:
                    totals[key] = PaymentMethodTotal(
                        payment.method_id, payment.method, payment.amount
                    )
    return list(totals.values())


def parse_collection(
    payload: Any, report_date: str, decimal_comma: bool = True
) -> ParsedCollection:
    """Parse collection data into shifts, registers and payment totals.

    Args:
        payload: Collection data (the "data" member of the vendor response)
        report_date: Report date (YYYY-MM-DD)
        decimal_comma: Locale convention for string amounts

    Returns:
        ParsedCollection (empty when the payload has no shifts)
    """
    logger.info("Processing Toteat collection data")

    if not isinstance(payload, dict):
        logger.warning("Collection payload is not a mapping, nothing to parse")
        return ParsedCollection(date=report_date)

    parsed = ParsedCollection(
        date=report_date,
        restaurant_id=resolve_field(payload, ("restaurantID", "restaurantId")),
        local_id=resolve_field(payload, ("localID", "localId")),
    )

    for shift_id, shift in _keyed(payload.get("shifts")):
        if not isinstance(shift, dict):
            continue
        shift_summary = ShiftSummary(
            shift_id=shift_id, name=clean_item_name(shift.get("name")) or shift_id
        )

        for register_id, group in _keyed(shift.get("registers")):
            for record in as_records(group, REGISTER_MARKERS):
                if isinstance(record, dict):
                    register = _parse_register(register_id, record, decimal_comma)
                    shift_summary.registers.append(register)
                    shift_summary.total_amount += register.final_amount

        parsed.shifts.append(shift_summary)
        parsed.total_amount += shift_summary.total_amount

    parsed.payment_methods = _consolidate_payments(parsed.shifts)

    logger.info(
        f"Collection parsed: {parsed.total_shifts} shifts, "
        f"{parsed.total_registers} registers, "
        f"{len(parsed.payment_methods)} payment methods"
    )
    logger.info(f"Total: ${parsed.total_amount:,.0f}")
    return parsed


def _percentage(amount: float, total: float) -> str:
    if not total:
        return "0.00%"
    return f"{amount / total * 100:.2f}%"


def summarize_collection(parsed: ParsedCollection) -> Dict[str, Any]:
    """Flat summary with each payment method's share of the total."""
    return {
        "date": parsed.date,
        "restaurant_id": parsed.restaurant_id,
        "total_amount": parsed.total_amount,
        "total_shifts": parsed.total_shifts,
        "total_registers": parsed.total_registers,
        "payment_breakdown": [
            {
                "method": method.method,
                "amount": method.total_amount,
                "percentage": _percentage(method.total_amount, parsed.total_amount),
            }
            for method in parsed.payment_methods
        ],
    }


def _format_amount(amount: float) -> str:
    return str(int(amount)) if float(amount).is_integer() else str(amount)


def collection_to_csv(parsed: ParsedCollection) -> str:
    """One CSV row per payment: date, shift, register, method, amount."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(COLLECTION_CSV_HEADER)

    for shift in parsed.shifts:
        for register in shift.registers:
            for payment in register.payments:
                writer.writerow(
                    [
                        parsed.date,
                        shift.name,
                        register.name,
                        payment.method,
                        _format_amount(payment.amount),
                    ]
                )

    return buffer.getvalue()
