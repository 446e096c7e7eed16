# app/schemas/listing.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.services.sku import IDENTIFIER_MAX_LENGTH, PRICE_MAX

SyncStatus = Literal["draft", "pending", "live", "error"]


class ListingCreate(BaseModel):
    """Payload pentru creare listare; SKU-ul se generează pe server."""
    brand: Optional[str] = Field(None, max_length=255)
    cost_price: Decimal = Field(..., ge=0, le=PRICE_MAX)
    asin: str = Field(..., min_length=1, max_length=IDENTIFIER_MAX_LENGTH)
    product_name: str = Field(..., min_length=1)

    @field_validator("asin", "product_name")
    @classmethod
    def _strip_nonempty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("brand")
    @classmethod
    def _brand_strip(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.strip() or None

    @field_validator("cost_price")
    @classmethod
    def _price_quantize(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("cost_price must be finite")
        return v.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "brand": "Acme-Co!",
                    "cost_price": "12.50",
                    "asin": "B000123456",
                    "product_name": "Acme widget, 2-pack",
                }
            ]
        }
    )


class ListingRead(BaseModel):
    id: int
    sku_code: str
    brand: Optional[str] = None
    buy_price: Decimal
    asin: str
    product_name: str
    generated_date: str
    amazon_sync_status: SyncStatus
    prep_sync_status: SyncStatus
    csv_exported: bool
    csv_exported_at: Optional[datetime] = None
    last_sync_at: Optional[datetime] = None
    sync_errors: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ListingPage(BaseModel):
    """Răspuns paginat: listă + meta."""
    items: List[ListingRead]
    total: int
    page: int
    page_size: int


class ListingSyncUpdate(BaseModel):
    amazon_sync_status: Optional[SyncStatus] = None
    prep_sync_status: Optional[SyncStatus] = None
    sync_errors: Optional[str] = None


class SkuPreview(BaseModel):
    sku: str
    length: int
    generated_date: str
