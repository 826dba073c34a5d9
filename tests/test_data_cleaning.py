# -*- coding: utf-8 -*-
"""Tests for src/utils/data_cleaning.py."""

import math

import pytest

from src.utils.data_cleaning import (
    clean_code,
    clean_item_name,
    decode_escapes,
    parse_amount,
    parse_quantity,
    round_currency,
    split_line,
)

# ============================================================================
# AMOUNT PARSING
# ============================================================================


class TestParseAmount:
    """Test parse_amount() with numbers and locale-formatted strings."""

    def test_numbers_returned_unchanged(self):
        assert parse_amount(1500) == 1500
        assert parse_amount(12.75) == 12.75

    def test_locale_thousands_and_decimal(self):
        assert parse_amount("1.234.567,89") == 1234567.89
        assert parse_amount("1.234.567,00") == 1234567.0

    def test_currency_symbol_and_spaces(self):
        assert parse_amount("$ 1.234,50") == 1234.5

    def test_trailing_comma_artifact(self):
        assert parse_amount("12,") == 12
        assert parse_amount("85400,") == 85400

    def test_thousands_grouped_under_decimal_comma_locale(self):
        assert parse_amount("10.000") == 10000
        assert parse_amount("241.300") == 241300

    def test_thousands_grouped_without_decimal_comma_locale(self):
        assert parse_amount("10.000", decimal_comma=False) == 10.0

    def test_plain_decimal_point(self):
        assert parse_amount("12.5") == 12.5

    def test_comma_thousands_with_decimal_point(self):
        assert parse_amount("$1,234.50") == 1234.5
        assert parse_amount("1,234,567.89") == 1234567.89
        assert parse_amount("1,234.50", decimal_comma=False) == 1234.5

    def test_negative_amount(self):
        assert parse_amount("-1.500,5") == -1500.5

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "-", True, float("nan")])
    def test_unparseable_returns_zero(self, value):
        assert parse_amount(value) == 0

    def test_non_string_objects_return_zero(self):
        assert parse_amount({"amount": 5}) == 0
        assert parse_amount([1, 2]) == 0

    @pytest.mark.parametrize("value", ["1.234,5", "12,", "$ 990", 42, 3.5, "10.000"])
    def test_idempotent_on_parsed_values(self, value):
        once = parse_amount(value)
        assert parse_amount(once) == once


class TestRoundCurrency:
    """Test round_currency() half-up rounding."""

    def test_rounds_half_up(self):
        assert round_currency(2.5) == 3
        assert round_currency(1187.5) == 1188
        assert round_currency(11899.999) == 11900

    def test_rounds_down_below_half(self):
        assert round_currency(10.49) == 10

    def test_none_is_zero(self):
        assert round_currency(None) == 0

    def test_returns_int(self):
        assert isinstance(round_currency(10000 * 1.19), int)
        assert round_currency(10000 * 1.19) == 11900


class TestParseQuantity:
    """Test parse_quantity() defaults and clamping."""

    def test_absent_uses_default(self):
        assert parse_quantity(None, default=1) == 1
        assert parse_quantity("  ", default=1) == 1

    def test_string_and_number(self):
        assert parse_quantity("3") == 3
        assert parse_quantity(4.0) == 4

    def test_fractional_rounded(self):
        assert parse_quantity("2,5") == 3

    def test_negative_clamped_to_zero(self):
        assert parse_quantity("-2") == 0

    def test_garbage_is_zero(self):
        assert parse_quantity("n/a", default=1) == 0


# ============================================================================
# TEXT CLEANING
# ============================================================================


class TestTextCleaning:
    """Test decode_escapes(), clean_item_name() and clean_code()."""

    def test_decode_unicode_escape(self):
        assert decode_escapes("Caf\\u00e9 Americano") == "Café Americano"

    def test_decode_html_entities(self):
        assert decode_escapes("Pizza &amp; Birra") == "Pizza & Birra"

    def test_clean_item_name_collapses_whitespace(self):
        assert clean_item_name("  Pizza   Margherita \\n") == "Pizza Margherita"

    def test_clean_item_name_missing(self):
        assert clean_item_name(None) == ""
        assert clean_item_name(math.nan) == ""

    def test_clean_item_name_non_string(self):
        assert clean_item_name(1234) == "1234"

    def test_clean_code(self):
        assert clean_code(123.0) == "123"
        assert clean_code(" A1 ") == "A1"
        assert clean_code(None) == ""
        assert clean_code(7) == "7"
        assert clean_code(float("nan")) == ""


# ============================================================================
# CSV FIELD SPLITTING
# ============================================================================


class TestSplitLine:
    """Test split_line() quoted-field handling."""

    def test_quoted_delimiter_kept_in_field(self):
        assert split_line('A,"B,C",D') == ["A", "B,C", "D"]

    def test_fields_trimmed(self):
        assert split_line(" a , b ,c ") == ["a", "b", "c"]

    def test_empty_line_yields_one_field(self):
        assert split_line("") == [""]

    def test_trailing_delimiter_yields_empty_field(self):
        assert split_line("a,b,") == ["a", "b", ""]

    def test_doubled_quotes_are_not_escapes(self):
        assert split_line('x,"say ""hi""",y') == ["x", "say hi", "y"]

    def test_custom_delimiter(self):
        assert split_line("a;b;c", delimiter=";") == ["a", "b", "c"]
