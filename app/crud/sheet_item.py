# app/crud/sheet_item.py
from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.orm import Session

from app.models.sheet_item import SheetItem
from app.repositories import sheet_items as repo

# Notă: funcțiile de aici NU fac commit; granița tranzacției e în reconciler.


def upsert_by_identifier(db: Session, payload: Dict[str, Any]) -> SheetItem:
    return repo.upsert_by_identifier(db, payload)


def get_by_identifier(db: Session, tab: str, asin: str) -> SheetItem | None:
    return repo.get_by_identifier(db, tab, asin)


def list_by_archived(db: Session, tab: str, archived: bool) -> List[SheetItem]:
    """Partiția (activă sau arhivată) a unui tab, în ordinea din foaie."""
    stmt = (
        select(SheetItem)
        .where(SheetItem.tab == tab, SheetItem.archived.is_(archived))
        .order_by(SheetItem.row_position.asc(), SheetItem.id.asc())
    )
    return list(db.execute(stmt).scalars().all())


def count_archived(db: Session, tab: str) -> int:
    stmt = select(func.count(SheetItem.id)).where(SheetItem.tab == tab, SheetItem.archived.is_(True))
    return int(db.scalar(stmt) or 0)


def delete_by_row_position(db: Session, tab: str, row_position: int) -> int:
    """Returnează numărul de rânduri șterse."""
    res = db.execute(
        delete(SheetItem).where(SheetItem.tab == tab, SheetItem.row_position == row_position)
    )
    return int(res.rowcount or 0)


def delete_for_row(db: Session, tab: str, row_position: int, asin: str) -> int:
    """
    Șterge tot ce e legat de un rând: orice înregistrare de la poziția lui, plus
    cache-ul activ cu același identificator. Un override arhivat de la altă poziție
    (ASIN duplicat în foaie) rămâne.
    """
    res = db.execute(
        delete(SheetItem).where(
            SheetItem.tab == tab,
            or_(
                SheetItem.row_position == row_position,
                and_(SheetItem.asin == asin, SheetItem.archived.is_(False)),
            ),
        )
    )
    return int(res.rowcount or 0)


def shift_positions_after(db: Session, tab: str, row_position: int) -> int:
    """După ștergerea unui rând din foaie, rândurile de dedesubt urcă cu o poziție."""
    res = db.execute(
        update(SheetItem)
        .where(SheetItem.tab == tab, SheetItem.row_position > row_position)
        .values(row_position=SheetItem.row_position - 1)
    )
    return int(res.rowcount or 0)


def clear_active(db: Session, tab: str) -> int:
    res = db.execute(
        delete(SheetItem).where(SheetItem.tab == tab, SheetItem.archived.is_(False))
    )
    return int(res.rowcount or 0)


def insert_active(db: Session, payload: Dict[str, Any]) -> SheetItem:
    cols = {k: v for k, v in payload.items() if k in SheetItem.__table__.c and k != "id"}
    cols["archived"] = False
    obj = SheetItem(**cols)
    db.add(obj)
    db.flush()
    return obj


def unarchive(db: Session, tab: str, row_position: int) -> int:
    """Scoate override-ul de arhivare; rândul reapare la următoarea citire a foii."""
    res = db.execute(
        delete(SheetItem).where(
            SheetItem.tab == tab,
            SheetItem.row_position == row_position,
            SheetItem.archived.is_(True),
        )
    )
    return int(res.rowcount or 0)
