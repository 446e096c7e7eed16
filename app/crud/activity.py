# app/crud/activity.py
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.activity import ActivityLog

logger = logging.getLogger("resellerpro-api.activity")


def record(
    db: Session,
    action: str,
    entity_type: str,
    description: str,
    entity_id: Optional[object] = None,
) -> Optional[ActivityLog]:
    """
    Scrie o intrare în jurnal și face commit.
    Jurnalul nu trebuie să strice mutația care l-a declanșat: erorile DB se loghează.
    """
    obj = ActivityLog(
        action=action,
        entity_type=entity_type,
        entity_id=None if entity_id is None else str(entity_id),
        description=description,
    )
    db.add(obj)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to write activity %s for %s:%s", action, entity_type, entity_id)
        return None
    return obj


def list_recent(db: Session, limit: int = 50) -> List[ActivityLog]:
    limit = max(1, min(int(limit), 500))
    stmt = select(ActivityLog).order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(limit)
    return list(db.execute(stmt).scalars().all())
