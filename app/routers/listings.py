# app/routers/listings.py
from __future__ import annotations

import csv
import io
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status
from fastapi.responses import StreamingResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.crud import activity
from app.crud import listing as crud
from app.database import get_db
from app.integrations.google_sheets import RowPosition
from app.routers.deps import reconciler_dependency
from app.schemas.listing import (
    ListingCreate,
    ListingPage,
    ListingRead,
    ListingSyncUpdate,
    SkuPreview,
    SyncStatus,
)
from app.services.sheet_reconciler import InvalidRecordError, SheetReconciler
from app.services.sku import IDENTIFIER_MAX_LENGTH, PRICE_MAX, generate_sku, sku_date_stamp

router = APIRouter(tags=["listings"])

EXPORT_FIELDS = [
    "sku_code",
    "asin",
    "product_name",
    "brand",
    "buy_price",
    "generated_date",
    "amazon_sync_status",
    "prep_sync_status",
]


def _csv_response(fields: List[str], rows: List[Dict[str, Any]], filename: str) -> StreamingResponse:
    # lineterminator="\n": fără CRLF în fișierul exportat
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    w.writerow(fields)
    for r in rows:
        w.writerow([r.get(col) for col in fields])
    data = buf.getvalue().encode("utf-8")
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return StreamingResponse(io.BytesIO(data), media_type="text/csv; charset=utf-8", headers=headers)


def _create(db: Session, payload: ListingCreate):
    try:
        obj = crud.create(
            db,
            brand=payload.brand,
            cost_price=payload.cost_price,
            asin=payload.asin,
            product_name=payload.product_name,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    # DuplicateSKUError → 409 (handler global în main)
    activity.record(
        db, "create", "listing", f"Created listing {obj.sku_code} for {obj.asin}", entity_id=obj.id
    )
    return obj


@router.get("/sku/preview", response_model=SkuPreview, summary="Preview the SKU for given inputs (no write)")
def preview_sku(
    asin: str = Query(..., min_length=1, max_length=IDENTIFIER_MAX_LENGTH),
    cost_price: Decimal = Query(..., ge=0, le=PRICE_MAX),
    brand: Optional[str] = Query(default=None, max_length=255),
):
    try:
        sku = generate_sku(brand, cost_price, asin)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return SkuPreview(sku=sku, length=len(sku), generated_date=sku_date_stamp())


@router.get(
    "/listings",
    response_model=ListingPage,
    summary="List listings with status filter & pagination",
)
def list_listings(
    response: Response,
    status_filter: Optional[SyncStatus] = Query(default=None, alias="status"),
    asin: Optional[str] = Query(default=None, min_length=1, max_length=64),
    exported: Optional[bool] = Query(default=None),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    items, total = crud.list_listings(
        db, status=status_filter, asin=asin, exported=exported, page=page, page_size=page_size
    )
    response.headers["X-Total-Count"] = str(total)
    return ListingPage(items=items, total=total, page=page, page_size=page_size)


@router.get("/listings/export.csv", summary="Export listings as CSV and mark them exported")
def export_listings_csv(
    only_new: bool = Query(default=False, description="Doar listările încă neexportate"),
    db: Session = Depends(get_db),
):
    items = crud.list_for_export(db, only_new=only_new)
    rows = [{f: getattr(obj, f) for f in EXPORT_FIELDS} for obj in items]
    crud.mark_exported(db, [obj.id for obj in items])
    return _csv_response(EXPORT_FIELDS, rows, f"listings-{sku_date_stamp()}.csv")


@router.get("/listings/{listing_id}", response_model=ListingRead, summary="Get a listing by id")
def get_listing(listing_id: int, db: Session = Depends(get_db)):
    obj = crud.get(db, listing_id)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return obj


@router.post(
    "/listings",
    response_model=ListingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a listing (SKU generated server-side)",
)
def create_listing(payload: ListingCreate, db: Session = Depends(get_db)):
    return _create(db, payload)


@router.post(
    "/listings/from-sheet/{row_position}",
    response_model=ListingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a listing from a Sourcing sheet row",
)
def create_listing_from_sheet(
    row_position: int = Path(..., ge=0),
    reconciler: SheetReconciler = Depends(reconciler_dependency("sourcing")),
    db: Session = Depends(get_db),
):
    rec = reconciler.record_at(RowPosition(row_position))
    if not rec.is_valid:
        raise InvalidRecordError(f"Row position {row_position} has no identifier or product name")
    cost = rec.cost_price
    if cost is None or cost < 0:
        raise InvalidRecordError(f"Row position {row_position} has no usable cost price")
    try:
        payload = ListingCreate(
            brand=rec.brand,
            cost_price=cost,
            asin=rec.identifier,
            product_name=rec.display_name,
        )
    except ValidationError as e:
        raise InvalidRecordError(f"Row position {row_position} is not a valid listing: {e.errors()[0]['msg']}") from e
    return _create(db, payload)


@router.patch("/listings/{listing_id}/sync", response_model=ListingRead, summary="Update marketplace sync status")
def update_listing_sync(listing_id: int, payload: ListingSyncUpdate, db: Session = Depends(get_db)):
    obj = crud.get(db, listing_id)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    obj = crud.update_sync_status(
        db,
        obj,
        amazon_sync_status=payload.amazon_sync_status,
        prep_sync_status=payload.prep_sync_status,
        sync_errors=payload.sync_errors,
    )
    activity.record(
        db,
        "sync",
        "listing",
        f"Listing {obj.sku_code}: amazon={obj.amazon_sync_status} prep={obj.prep_sync_status}",
        entity_id=obj.id,
    )
    return obj
