# app/schemas/sheets.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SheetRowRead(BaseModel):
    """Un rând activ din foaie; `row_position` = poziția în foaia nefiltrată."""
    row_position: int
    identifier: str
    display_name: str
    values: Dict[str, str]


class ActiveSheetView(BaseModel):
    tab: str
    headers: List[str]
    items: List[SheetRowRead]
    total_rows: int
    active_count: int
    archived_count: int


class FieldUpdate(BaseModel):
    """Payload pentru PATCH status / notes / sourcing-method."""
    value: str = Field(..., max_length=50_000)

    @field_validator("value")
    @classmethod
    def _strip(cls, v: str) -> str:
        return v.strip()


class FieldUpdateResult(BaseModel):
    tab: str
    row_position: int
    field: str
    column: str
    value: str


class SheetItemRead(BaseModel):
    id: int
    tab: str
    row_position: int
    asin: str
    product_name: str
    brand: Optional[str] = None
    cost_price: Optional[Decimal] = None
    sale_price: Optional[Decimal] = None
    notes: Optional[str] = None
    product_review: Optional[str] = None
    sourcing_method: Optional[str] = None
    estimated_sales: Optional[Decimal] = None
    profit_margin: Optional[Decimal] = None
    roi: Optional[Decimal] = None
    archived: bool
    raw: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DeleteResultRead(BaseModel):
    deleted: bool = True
    asin: str
    local_records_removed: int
    # false = rândul a dispărut din foaie, dar curățarea locală a eșuat (se reface la sync)
    local_consistent: bool


class SyncResultRead(BaseModel):
    tab: str
    total_rows: int
    active_count: int
    archived_count: int
    inserted: int
    failed: int
    cleared: int
    failed_identifiers: List[str] = Field(default_factory=list)


class ConnectionTestRead(BaseModel):
    ok: bool
    spreadsheet_id: Optional[str] = None
    title: Optional[str] = None
    worksheets: List[str] = Field(default_factory=list)
    tabs: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    error: Optional[str] = None
