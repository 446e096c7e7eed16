# app/crud/listing.py
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.orm import Session

from app.models.listing import Listing
from app.services.sku import SKU_CODE_MAX_LENGTH, format_price, generate_sku, sku_date_stamp


class DuplicateSKUError(Exception):
    """Ridicată când codul SKU generat există deja (același brand/preț/zi/ASIN)."""
    pass


def _normalize_pagination(page: int, page_size: int, *, max_size: int = 200) -> tuple[int, int]:
    page = max(1, int(page))
    page_size = max(1, min(int(page_size), max_size))
    return page, page_size


def list_listings(
    db: Session,
    *,
    status: Optional[str] = None,
    asin: Optional[str] = None,
    exported: Optional[bool] = None,
    page: int = 1,
    page_size: int = 50,
) -> Tuple[List[Listing], int]:
    """
    Listează listările, cele mai noi primele.

    Filtre:
      - status: `amazon_sync_status` exact (draft|pending|live|error).
      - asin: potrivire exactă.
      - exported: doar exportate / neexportate în CSV.

    Returnează: (items, total)
    """
    page, page_size = _normalize_pagination(page, page_size)

    conditions = []
    if status:
        conditions.append(Listing.amazon_sync_status == status)
    if asin:
        conditions.append(Listing.asin == asin)
    if exported is not None:
        conditions.append(Listing.csv_exported.is_(exported))

    total = db.scalar(select(func.count(Listing.id)).where(*conditions)) or 0

    stmt = (
        select(Listing)
        .where(*conditions)
        .order_by(Listing.created_at.desc(), Listing.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(db.execute(stmt).scalars().all()), int(total)


def get(db: Session, listing_id: int) -> Optional[Listing]:
    return db.get(Listing, listing_id)


def get_by_sku(db: Session, sku_code: str) -> Optional[Listing]:
    if not sku_code:
        return None
    return db.execute(select(Listing).where(Listing.sku_code == sku_code)).scalar_one_or_none()


def create(
    db: Session,
    *,
    brand: Optional[str],
    cost_price: Decimal,
    asin: str,
    product_name: str,
    today=None,
) -> Listing:
    """
    Generează SKU-ul și salvează listarea.
    ValueError pe intrări invalide (înainte de orice scriere); DuplicateSKUError pe conflict.
    """
    # un singur moment pentru SKU și generated_date
    day = today or datetime.now(timezone.utc)
    sku_code = generate_sku(brand, cost_price, asin, today=day)
    if len(sku_code) > SKU_CODE_MAX_LENGTH:
        raise ValueError(f"SKU {sku_code!r} exceeds {SKU_CODE_MAX_LENGTH} characters; identifier too long.")
    if get_by_sku(db, sku_code) is not None:
        raise DuplicateSKUError(f"SKU {sku_code} already exists.")

    obj = Listing(
        sku_code=sku_code,
        brand=(brand or "").strip() or None,
        buy_price=Decimal(format_price(cost_price)),
        asin=asin.strip(),
        product_name=product_name.strip(),
        generated_date=sku_date_stamp(day),
    )
    db.add(obj)
    try:
        db.commit()
    except IntegrityError as e:
        # cursă între două request-uri identice
        db.rollback()
        raise DuplicateSKUError(f"SKU {sku_code} already exists.") from e
    except DataError as e:
        # valoare în afara coloanei (Postgres); SQLite nu verifică
        db.rollback()
        raise ValueError(f"Listing does not fit the listings table: {e.orig}") from e
    db.refresh(obj)
    return obj


def update_sync_status(
    db: Session,
    obj: Listing,
    *,
    amazon_sync_status: Optional[str] = None,
    prep_sync_status: Optional[str] = None,
    sync_errors: Optional[str] = None,
) -> Listing:
    """Actualizează statusurile furnizate și marchează `last_sync_at`."""
    if amazon_sync_status is not None:
        obj.amazon_sync_status = amazon_sync_status
    if prep_sync_status is not None:
        obj.prep_sync_status = prep_sync_status
    obj.sync_errors = sync_errors
    obj.last_sync_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(obj)
    return obj


def list_for_export(db: Session, *, only_new: bool = False) -> List[Listing]:
    stmt = select(Listing)
    if only_new:
        stmt = stmt.where(Listing.csv_exported.is_(False))
    return list(db.execute(stmt.order_by(Listing.id.asc())).scalars().all())


def mark_exported(db: Session, ids: Sequence[int]) -> int:
    if not ids:
        return 0
    res = db.execute(
        update(Listing)
        .where(Listing.id.in_(list(ids)))
        .values(csv_exported=True, csv_exported_at=datetime.now(timezone.utc))
    )
    db.commit()
    return int(res.rowcount or 0)
