# app/services/deals.py
"""
Calculele pentru un deal de sourcing: profit, marjă și ROI.

Marja e raportată la prețul de vânzare, ROI-ul la costul de achiziție, ambele
în puncte procentuale. Un numitor zero dă 0, nu o eroare.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

_CENT = Decimal("0.01")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class DealMetrics:
    profit: Decimal
    profit_margin: Decimal
    roi: Decimal


def _pct(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= 0:
        return Decimal("0.00")
    return (part / whole * _HUNDRED).quantize(_CENT, rounding=ROUND_HALF_UP)


def compute_metrics(cost_price: Decimal, sale_price: Decimal) -> DealMetrics:
    cost = Decimal(cost_price)
    sale = Decimal(sale_price)
    profit = (sale - cost).quantize(_CENT, rounding=ROUND_HALF_UP)
    return DealMetrics(profit=profit, profit_margin=_pct(profit, sale), roi=_pct(profit, cost))


__all__ = ["DealMetrics", "compute_metrics"]
