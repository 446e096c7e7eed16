# app/models/deal.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

DEAL_STATUSES = ("new", "under_review", "winner", "no_go")


class Deal(Base):
    """
    Produs propus pentru achiziție, cu profitul calculat la trimitere.

    `profit`, `profit_margin` și `roi` se recalculează doar din cost și preț de
    vânzare; `status` se schimbă la review (`reviewed_at`, `review_notes`).
    """
    __tablename__ = "deals"
    __table_args__ = (
        Index("ix_deals_status", "status"),
        Index("ix_deals_asin", "asin"),
        CheckConstraint("status IN ('new', 'under_review', 'winner', 'no_go')", name="status_known"),
        CheckConstraint("cost_price >= 0", name="cost_price_nonnegative"),
        CheckConstraint("sale_price >= 0", name="sale_price_nonnegative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    asin: Mapped[str] = mapped_column(String(64), nullable=False)
    product_name: Mapped[str] = mapped_column(Text, nullable=False)
    brand: Mapped[str | None] = mapped_column(String(255), nullable=True)
    source_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    cost_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    sale_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    profit: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    # procente; pot depăși mult 100 când costul e foarte mic
    profit_margin: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    roi: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    estimated_sales: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    sourcing_method: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="new", server_default=text("'new'")
    )
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<Deal id={self.id!r} asin={self.asin!r} status={self.status!r}>"
