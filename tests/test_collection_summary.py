# -*- coding: utf-8 -*-
"""Tests for src/modules/sales/collection_summary.py."""

import json
from pathlib import Path

import pytest

from src.modules.sales.collection_summary import (
    collection_to_csv,
    parse_collection,
    summarize_collection,
)

SAMPLE_COLLECTION = Path(__file__).parent.parent / "data" / "sample-collection.json"


@pytest.fixture
def sample_data():
    """The "data" member of the sample vendor response."""
    return json.loads(SAMPLE_COLLECTION.read_text(encoding="utf-8"))["data"]


class TestParseCollection:
    """Test shift/register/payment breakdown."""

    def test_counts_and_ids(self, sample_data):
        parsed = parse_collection(sample_data, "2024-05-01")
        assert parsed.restaurant_id == "5123456789"
        assert parsed.local_id == "1"
        assert parsed.total_shifts == 2
        assert parsed.total_registers == 3
        assert [shift.name for shift in parsed.shifts] == ["Almuerzo", "Cena"]

    def test_register_total_is_final_amount_plus_payments(self, sample_data):
        parsed = parse_collection(sample_data, "2024-05-01")
        lunch_register = parsed.shifts[0].registers[0]
        assert lunch_register.name == "Caja Principal"
        assert lunch_register.final_amount == 85400 + 132600

        bar = parsed.shifts[1].registers[1]
        assert bar.name == "Barra"
        assert bar.payments == []
        assert bar.final_amount == 64200

    def test_misspelled_register_name_field(self, sample_data):
        parsed = parse_collection(sample_data, "2024-05-01")
        assert parsed.shifts[1].registers[0].name == "Caja Principal"

    def test_grand_total(self, sample_data):
        parsed = parse_collection(sample_data, "2024-05-01")
        assert parsed.total_amount == 85400 + 132600 + 241300 + 198750 + 64200

    def test_payment_methods_consolidated_by_id_and_name(self, sample_data):
        parsed = parse_collection(sample_data, "2024-05-01")
        methods = [
            (m.method_id, m.method, m.total_amount) for m in parsed.payment_methods
        ]
        assert methods == [
            ("1", "Efectivo", 85400),
            ("2", "Tarjeta Débito", 132600 + 241300),
            ("3", "Tarjeta Crédito", 198750),
        ]

    def test_non_mapping_payload(self):
        parsed = parse_collection(None, "2024-05-01")
        assert parsed.total_shifts == 0
        assert parsed.total_amount == 0
        assert parsed.payment_methods == []


class TestSummarizeCollection:
    """Test the flat summary with percentages."""

    def test_percentages(self):
        data = {
            "shifts": {
                "1": {
                    "name": "Turno",
                    "registers": {
                        "1": [
                            {
                                "registerName": "Caja",
                                "paymentMethods": [
                                    {"paymentMethod": "A", "amount": 75},
                                    {"paymentMethod": "B", "amount": 25},
                                ],
                            }
                        ]
                    },
                }
            }
        }
        summary = summarize_collection(parse_collection(data, "2024-05-01"))
        assert summary["total_amount"] == 100
        assert [p["percentage"] for p in summary["payment_breakdown"]] == [
            "75.00%",
            "25.00%",
        ]

    def test_zero_total(self):
        data = {
            "shifts": {
                "1": {"registers": {"1": [{"paymentMethods": [{"amount": 0}]}]}}
            }
        }
        summary = summarize_collection(parse_collection(data, "2024-05-01"))
        assert summary["payment_breakdown"][0]["percentage"] == "0.00%"


class TestCollectionToCsv:
    """Test the per-payment CSV export."""

    def test_rows(self, sample_data):
        csv_text = collection_to_csv(parse_collection(sample_data, "2024-05-01"))
        lines = csv_text.splitlines()
        assert lines[0] == "Fecha,Turno,Caja,Método de Pago,Monto"
        assert lines[1] == "2024-05-01,Almuerzo,Caja Principal,Efectivo,85400"
        assert len(lines) == 5

    def test_register_with_comma_is_quoted(self):
        data = {
            "shifts": {
                "1": {
                    "name": "Cena",
                    "registers": {
                        "1": [
                            {
                                "registerName": "Caja 1, Terraza",
                                "paymentMethods": [
                                    {"paymentMethod": "X", "amount": 1.5}
                                ],
                            }
                        ]
                    },
                }
            }
        }
        csv_text = collection_to_csv(parse_collection(data, "2024-05-01"))
        assert csv_text.splitlines()[1] == '2024-05-01,Cena,"Caja 1, Terraza",X,1.5'
