from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.crud import activity as crud
from app.database import get_db
from app.schemas.activity import ActivityRead

router = APIRouter(prefix="/activities", tags=["activity"])


@router.get("", response_model=List[ActivityRead], summary="Recent activity, newest first")
def list_activities(limit: int = Query(default=50, ge=1, le=500), db: Session = Depends(get_db)):
    return crud.list_recent(db, limit=limit)
