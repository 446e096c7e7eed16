from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

# simboluri monetare întâlnite în foaie (EUR/USD/GBP/JPY/INR)
_CURRENCY_RE = re.compile(r"[€$£¥₹]")
_WS_RE = re.compile(r"\s+")
# "> 29", "< 5", "~12" → doar cifre, separatoare și semn
_NON_NUMERIC_RE = re.compile(r"[^\d,.\-]")


def _to_decimal(raw: str) -> Optional[Decimal]:
    if not raw or raw in {"-", ".", ","}:
        return None
    # "1.234,56" / "1,234.56": ultimul separator e cel zecimal
    if "," in raw and "." in raw:
        dec = "," if raw.rfind(",") > raw.rfind(".") else "."
        thousands = "." if dec == "," else ","
        raw = raw.replace(thousands, "").replace(dec, ".")
    else:
        raw = raw.replace(",", ".")
    if raw.count(".") > 1:
        return None
    try:
        value = Decimal(raw)
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def parse_money(value: Any) -> Optional[Decimal]:
    """
    '€ 12,50' → Decimal('12.50'); '$1,234.00' → Decimal('1234.00').
    Gol sau text fără număr → None.
    """
    if value is None:
        return None
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return _to_decimal(str(value))
    cleaned = _WS_RE.sub("", _CURRENCY_RE.sub("", str(value)))
    return _to_decimal(cleaned)


def parse_percent(value: Any) -> Optional[Decimal]:
    """'15,5 %' → Decimal('15.5'). Valoarea rămâne în puncte procentuale."""
    if value is None:
        return None
    cleaned = _WS_RE.sub("", str(value).replace("%", ""))
    return _to_decimal(cleaned)


def parse_numeric(value: Any) -> Optional[Decimal]:
    """
    Extrage numărul din celule gen '> 29', '< 5', '~ 1,5'.
    Păstrează cifrele, separatoarele zecimale și semnul minus.
    """
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    return _to_decimal(_NON_NUMERIC_RE.sub("", s))


__all__ = ["parse_money", "parse_percent", "parse_numeric"]
