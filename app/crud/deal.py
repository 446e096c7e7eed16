# app/crud/deal.py
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from app.models.deal import DEAL_STATUSES, Deal
from app.services.deals import compute_metrics


def create(
    db: Session,
    *,
    asin: str,
    product_name: str,
    cost_price: Decimal,
    sale_price: Decimal,
    brand: Optional[str] = None,
    source_url: Optional[str] = None,
    estimated_sales: Optional[int] = None,
    notes: Optional[str] = None,
    sourcing_method: Optional[str] = None,
) -> Deal:
    """Salvează un deal nou (status `new`) cu profit, marjă și ROI calculate."""
    m = compute_metrics(cost_price, sale_price)
    obj = Deal(
        asin=asin.strip(),
        product_name=product_name.strip(),
        brand=(brand or "").strip() or None,
        source_url=source_url,
        cost_price=cost_price,
        sale_price=sale_price,
        profit=m.profit,
        profit_margin=m.profit_margin,
        roi=m.roi,
        estimated_sales=estimated_sales,
        notes=notes,
        sourcing_method=sourcing_method,
        status="new",
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def get(db: Session, deal_id: int) -> Optional[Deal]:
    return db.get(Deal, deal_id)


def list_deals(db: Session, *, status: Optional[str] = None, limit: int = 50) -> List[Deal]:
    limit = max(1, min(int(limit), 500))
    stmt = select(Deal)
    if status:
        stmt = stmt.where(Deal.status == status)
    stmt = stmt.order_by(Deal.created_at.desc(), Deal.id.desc()).limit(limit)
    return list(db.execute(stmt).scalars().all())


def update_status(db: Session, obj: Deal, status: str, review_notes: Optional[str] = None) -> Deal:
    """Orice status cunoscut e permis din orice status (și re-deschiderea unui review)."""
    if status not in DEAL_STATUSES:
        raise ValueError(f"Unknown status {status!r}. Allowed: {list(DEAL_STATUSES)}")
    obj.status = status
    obj.review_notes = review_notes
    obj.reviewed_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(obj)
    return obj


def pipeline_counts(db: Session) -> Dict[str, int]:
    """Numărul total de deal-uri și câte sunt în fiecare status."""
    cols = [func.count(Deal.id).label("total")]
    cols += [func.count(case((Deal.status == s, 1))).label(s) for s in DEAL_STATUSES]
    row = db.execute(select(*cols)).one()
    return {k: int(v or 0) for k, v in row._mapping.items()}
