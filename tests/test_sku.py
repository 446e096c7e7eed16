# tests/test_sku.py
from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.services.sku import (
    SKU_MAX_LENGTH,
    UNKNOWN_BRAND,
    format_price,
    generate_sku,
    normalize_brand,
    sku_date_stamp,
)

DAY = date(2025, 7, 14)


def test_reference_code():
    assert generate_sku("Acme-Co!", 12.5, "B000123456", today=DAY) == "ACMECO_12.50_250714_B000123456"


def test_long_brand_is_truncated_to_fit():
    sku = generate_sku("ABCDEFGHIJKLMNOPQRSTUVWXYZ", 12.5, "B000123456", today=DAY)
    # 40 - (5 + 1 + 6 + 1 + 10 + 2) = 15 caractere de brand
    assert sku == "ABCDEFGHIJKLMNO_12.50_250714_B000123456"
    assert len(sku) == 39


def test_brand_segment_contains_only_alnum():
    sku = generate_sku("O'Brien & Sons", 5, "X1", today=DAY)
    brand = sku.split("_")[0]
    assert brand == "OBRIENSONS"
    assert re.fullmatch(r"[A-Z0-9]+", brand)
    assert sku == "OBRIENSONS_5.00_250714_X1"


@pytest.mark.parametrize("brand", [None, "", "   ", "!!!", "***"])
def test_empty_brand_uses_placeholder(brand):
    assert generate_sku(brand, 1, "B01", today=DAY).startswith(f"{UNKNOWN_BRAND}_")


def test_same_inputs_same_day_are_identical():
    a = generate_sku("Acme", Decimal("9.99"), "B0ABC", today=DAY)
    b = generate_sku("Acme", Decimal("9.99"), "B0ABC", today=DAY)
    assert a == b


def test_next_day_changes_only_the_date_segment():
    a = generate_sku("Acme", 9.99, "B0ABC", today=DAY)
    b = generate_sku("Acme", 9.99, "B0ABC", today=DAY + timedelta(days=1))
    assert a != b
    assert a.replace("250714", "250715") == b


@pytest.mark.parametrize("ident_len", [1, 5, 10, 15, 20])
@pytest.mark.parametrize("price", [0, 0.5, 12.5, 999.99, 123456.78])
@pytest.mark.parametrize("brand", ["A", "Acme", "Supercalifragilistic Brands International Ltd."])
def test_length_never_exceeds_limit_for_reasonable_identifiers(brand, price, ident_len):
    sku = generate_sku(brand, price, "B" * ident_len, today=DAY)
    assert len(sku) <= SKU_MAX_LENGTH


def test_identifier_filling_budget_leaves_empty_brand():
    ident = "X" * 30
    sku = generate_sku("Acme", 12.5, ident, today=DAY)
    assert sku == f"_12.50_250714_{ident}"


def test_identifier_is_never_truncated():
    ident = "Y" * 40
    sku = generate_sku("Acme", 1, ident, today=DAY)
    assert sku.endswith(ident)
    assert len(sku) > SKU_MAX_LENGTH


@pytest.mark.parametrize(
    "value, expected",
    [
        (12.5, "12.50"),
        (0, "0.00"),
        ("7", "7.00"),
        (2.675, "2.68"),
        (Decimal("1.005"), "1.01"),
        (1e6, "1000000.00"),
    ],
)
def test_price_has_two_decimals(value, expected):
    assert format_price(value) == expected


@pytest.mark.parametrize("bad", [-0.01, float("nan"), float("inf"), "abc", True])
def test_invalid_price_is_rejected(bad):
    with pytest.raises(ValueError):
        generate_sku("Acme", bad, "B01", today=DAY)


@pytest.mark.parametrize("ident", ["", "   ", None])
def test_empty_identifier_is_rejected(ident):
    with pytest.raises(ValueError):
        generate_sku("Acme", 1, ident, today=DAY)


def test_date_stamp_uses_utc():
    # 23:30 la UTC-5 = 04:30 a doua zi în UTC
    local = datetime(2025, 7, 14, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    assert sku_date_stamp(local) == "250715"
    assert sku_date_stamp(DAY) == "250714"
    assert re.fullmatch(r"\d{6}", sku_date_stamp())


def test_normalize_brand():
    assert normalize_brand("  acme co. 2000 ") == "ACMECO2000"
    assert normalize_brand("Ünïcode") == "NCODE"
