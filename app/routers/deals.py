# app/routers/deals.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.crud import activity
from app.crud import deal as crud
from app.database import get_db
from app.schemas.deal import DealCreate, DealRead, DealStatus, DealStatusUpdate, PipelineStats

router = APIRouter(tags=["deals"])


@router.post(
    "/deals",
    response_model=DealRead,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a deal (profit, margin and ROI computed server-side)",
)
def submit_deal(payload: DealCreate, db: Session = Depends(get_db)):
    obj = crud.create(db, **payload.model_dump())
    activity.record(
        db, "deal_submitted", "deal", f"Deal submitted for {obj.product_name!r} ({obj.asin})", entity_id=obj.id
    )
    return obj


@router.get("/deals", response_model=List[DealRead], summary="List deals, newest first")
def list_deals(
    status_filter: Optional[DealStatus] = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return crud.list_deals(db, status=status_filter, limit=limit)


@router.get("/deals/{deal_id}", response_model=DealRead, summary="Get a deal by id")
def get_deal(deal_id: int, db: Session = Depends(get_db)):
    obj = crud.get(db, deal_id)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return obj


@router.patch("/deals/{deal_id}/status", response_model=DealRead, summary="Review a deal (set its status)")
def review_deal(deal_id: int, payload: DealStatusUpdate, db: Session = Depends(get_db)):
    obj = crud.get(db, deal_id)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    previous = obj.status
    obj = crud.update_status(db, obj, payload.status, payload.review_notes)
    activity.record(
        db, "deal_status_updated", "deal", f"Deal {obj.asin}: {previous} -> {obj.status}", entity_id=obj.id
    )
    return obj


@router.get("/dashboard/pipeline", response_model=PipelineStats, summary="Deal counts per status")
def pipeline(db: Session = Depends(get_db)):
    return crud.pipeline_counts(db)
