# app/schemas/deal.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.services.sku import PRICE_MAX

DealStatus = Literal["new", "under_review", "winner", "no_go"]


class DealCreate(BaseModel):
    """Propunere de produs; profitul, marja și ROI-ul se calculează pe server."""
    asin: str = Field(..., min_length=1, max_length=64)
    product_name: str = Field(..., min_length=1)
    brand: Optional[str] = Field(None, max_length=255)
    cost_price: Decimal = Field(..., ge=0, le=PRICE_MAX)
    sale_price: Decimal = Field(..., ge=0, le=PRICE_MAX)
    source_url: Optional[str] = Field(None, max_length=2048)
    estimated_sales: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None
    sourcing_method: Optional[str] = Field(None, max_length=64)

    @field_validator("asin", "product_name")
    @classmethod
    def _strip_nonempty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("cost_price", "sale_price")
    @classmethod
    def _money(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("price must be finite")
        return v.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "asin": "B000123456",
                    "product_name": "Acme widget, 2-pack",
                    "brand": "Acme",
                    "cost_price": "12.50",
                    "sale_price": "24.99",
                    "estimated_sales": 30,
                }
            ]
        }
    )


class DealRead(BaseModel):
    id: int
    asin: str
    product_name: str
    brand: Optional[str] = None
    source_url: Optional[str] = None
    cost_price: Decimal
    sale_price: Decimal
    profit: Decimal
    profit_margin: Decimal
    roi: Decimal
    estimated_sales: Optional[int] = None
    notes: Optional[str] = None
    sourcing_method: Optional[str] = None
    status: DealStatus
    review_notes: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DealStatusUpdate(BaseModel):
    status: DealStatus
    review_notes: Optional[str] = Field(None, max_length=50_000)


class PipelineStats(BaseModel):
    total: int
    new: int
    under_review: int
    winner: int
    no_go: int
