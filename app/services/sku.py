# app/services/sku.py
"""
Generator de SKU pentru listări.

Format: ``BRAND_PRICE_YYMMDD_ASIN``, țintă de 40 de caractere. Doar segmentul
de brand se trunchiază; prețul, data și identificatorul rămân întregi, deci un
identificator foarte lung poate depăși ținta. Codurile stocate sunt limitate
de `SKU_CODE_MAX_LENGTH` (lungimea coloanei ``listings.sku_code``); intrările API
sunt plafonate ca să încapă.
"""
from __future__ import annotations

import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

SKU_MAX_LENGTH = 40
# listings.sku_code VARCHAR(64)
SKU_CODE_MAX_LENGTH = 64
# Numeric(10, 2)
PRICE_MAX = Decimal("99999999.99")
# brand gol + preț maxim (11) + dată (6) + 3 separatoare + 40 = 61 <= 64
IDENTIFIER_MAX_LENGTH = 40
SKU_SEPARATOR = "_"
UNKNOWN_BRAND = "UNKNOWN"

_NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9]")

Number = Union[int, float, Decimal, str]


def normalize_brand(brand: Optional[str]) -> str:
    """Păstrează doar [A-Za-z0-9], uppercase; gol → UNKNOWN."""
    cleaned = _NON_ALNUM_RE.sub("", brand or "").upper()
    return cleaned or UNKNOWN_BRAND


def format_price(cost_price: Number) -> str:
    """Prețul cu exact 2 zecimale și '.' ca separator, independent de locale."""
    if isinstance(cost_price, bool):
        raise ValueError("cost_price must be a number")
    try:
        # str() evită artefactele binare ale float-ului (12.5 → '12.5')
        value = Decimal(str(cost_price).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"cost_price is not a number: {cost_price!r}") from e
    if not value.is_finite():
        raise ValueError(f"cost_price must be finite: {cost_price!r}")
    if value < 0:
        raise ValueError("cost_price must be >= 0")
    return f"{value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):.2f}"


def sku_date_stamp(today: Optional[Union[date, datetime]] = None) -> str:
    """YYMMDD din momentul generării (UTC), nu din câmpurile înregistrării."""
    if today is None:
        day = datetime.now(timezone.utc).date()
    elif isinstance(today, datetime):
        day = today.astimezone(timezone.utc).date() if today.tzinfo else today.date()
    else:
        day = today
    return day.strftime("%y%m%d")


def generate_sku(
    brand: Optional[str],
    cost_price: Number,
    identifier: str,
    *,
    today: Optional[Union[date, datetime]] = None,
) -> str:
    """
    Generează codul SKU pentru un produs.

    Aceleași intrări în aceeași zi (UTC) dau același cod; a doua zi codul diferă
    prin segmentul de dată.

    Raises:
        ValueError: identificator gol sau preț invalid/negativ.
    """
    ident = (identifier or "").strip()
    if not ident:
        raise ValueError("identifier must not be empty")

    price = format_price(cost_price)
    stamp = sku_date_stamp(today)
    brand_part = normalize_brand(brand)

    # Rezervă 1 (preț↔dată) + 1 (dată↔identificator) + 2; cu 3 separatoare reale
    # un brand trunchiat dă un cod de 39 de caractere.
    overhead = len(price) + 1 + len(stamp) + 1 + len(ident) + 2
    max_brand_len = SKU_MAX_LENGTH - overhead

    if max_brand_len <= 0:
        brand_part = ""
    elif len(brand_part) > max_brand_len:
        brand_part = brand_part[:max_brand_len]

    return SKU_SEPARATOR.join((brand_part, price, stamp, ident))


__all__ = [
    "SKU_MAX_LENGTH",
    "SKU_CODE_MAX_LENGTH",
    "PRICE_MAX",
    "IDENTIFIER_MAX_LENGTH",
    "UNKNOWN_BRAND",
    "normalize_brand",
    "format_price",
    "sku_date_stamp",
    "generate_sku",
]
