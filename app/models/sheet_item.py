# app/models/sheet_item.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

SHEET_TABS = ("sourcing", "purchasing")


class SheetItem(Base):
    """
    Copie locală a unui rând din foaia Google (tab Sourcing sau Purchasing).

    Note:
    - `archived = false` → cache derivat din foaie, rescris complet la fiecare sync.
    - `archived = true` → override local autoritar (rândul e ascuns din vizualizarea activă).
    - `row_position` = offset 0-based în rândurile de date ale foii, la momentul scrierii.
    - `raw` păstrează rândul complet (header → valoare) pentru audit.
    """
    __tablename__ = "sheet_items"
    __table_args__ = (
        UniqueConstraint("tab", "asin", name="uq_sheet_items_tab_asin"),
        Index("ix_sheet_items_tab_archived", "tab", "archived"),
        Index("ix_sheet_items_tab_row_position", "tab", "row_position"),
        CheckConstraint("tab IN ('sourcing', 'purchasing')", name="tab_known"),
        CheckConstraint("row_position >= 0", name="row_position_nonnegative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    tab: Mapped[str] = mapped_column(String(16), nullable=False)
    row_position: Mapped[int] = mapped_column(Integer, nullable=False)
    asin: Mapped[str] = mapped_column(String(64), nullable=False)
    product_name: Mapped[str] = mapped_column(Text, nullable=False)
    brand: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cost_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    sale_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    product_review: Mapped[str | None] = mapped_column(String(64), nullable=True)
    sourcing_method: Mapped[str | None] = mapped_column(String(64), nullable=True)
    estimated_sales: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    profit_margin: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    roi: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    raw: Mapped[dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=dict
    )
    archived: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return (
            f"<SheetItem id={self.id!r} tab={self.tab!r} asin={self.asin!r} "
            f"pos={self.row_position!r} archived={self.archived!r}>"
        )
