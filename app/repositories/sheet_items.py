from __future__ import annotations
from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session
from typing import Optional, Dict, Any

from app.models.sheet_item import SheetItem

_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}

def get_by_identifier(db: Session, tab: str, asin: str) -> Optional[SheetItem]:
    stmt = select(SheetItem).where(SheetItem.tab == tab, SheetItem.asin == asin)
    return db.execute(stmt).scalars().first()

def upsert_by_identifier(db: Session, payload: Dict[str, Any]) -> SheetItem:
    """
    Upsert pe (tab, asin). Returnează rândul stocat.
    Postgres/SQLite → INSERT .. ON CONFLICT DO UPDATE; alte dialecte → select + update.
    Nu face commit (îl face apelantul).
    """
    cols = {k: v for k, v in payload.items() if k in SheetItem.__table__.c and k != "id"}
    insert_fn = _INSERTS.get(db.get_bind().dialect.name)

    if insert_fn is None:
        item = get_by_identifier(db, cols["tab"], cols["asin"])
        if item is None:
            item = SheetItem(**cols)
            db.add(item)
        else:
            for k, v in cols.items():
                setattr(item, k, v)
        db.flush()
        return item

    stmt = insert_fn(SheetItem).values(**cols)
    update_cols = {k: stmt.excluded[k] for k in cols.keys() if k not in ("tab", "asin", "created_at")}
    update_cols["updated_at"] = func.now()
    stmt = stmt.on_conflict_do_update(
        index_elements=[SheetItem.tab, SheetItem.asin],
        set_=update_cols,
    ).returning(SheetItem.id)
    pk = db.execute(stmt).scalar_one()
    # identity map poate ține o versiune veche a rândului
    return db.get(SheetItem, pk, populate_existing=True)
