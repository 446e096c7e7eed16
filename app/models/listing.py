# app/models/listing.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Numeric,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.services.sku import SKU_CODE_MAX_LENGTH

SYNC_STATUSES = ("draft", "pending", "live", "error")


class Listing(Base):
    """Listare generată dintr-un produs din sourcing; `sku_code` e imutabil după creare."""
    __tablename__ = "listings"
    __table_args__ = (
        Index("ix_listings_sku_code", "sku_code", unique=True),
        Index("ix_listings_asin", "asin"),
        CheckConstraint("buy_price >= 0", name="buy_price_nonnegative"),
        CheckConstraint(
            "amazon_sync_status IN ('draft', 'pending', 'live', 'error')",
            name="amazon_sync_status_known",
        ),
        CheckConstraint(
            "prep_sync_status IN ('draft', 'pending', 'live', 'error')",
            name="prep_sync_status_known",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    sku_code: Mapped[str] = mapped_column(String(SKU_CODE_MAX_LENGTH), nullable=False)
    brand: Mapped[str | None] = mapped_column(String(255), nullable=True)
    buy_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    asin: Mapped[str] = mapped_column(String(64), nullable=False)
    product_name: Mapped[str] = mapped_column(Text, nullable=False)
    # YYMMDD (UTC) din momentul generării SKU-ului
    generated_date: Mapped[str] = mapped_column(String(6), nullable=False)
    amazon_sync_status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="draft", server_default=text("'draft'")
    )
    prep_sync_status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="draft", server_default=text("'draft'")
    )
    csv_exported: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    csv_exported_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_sync_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    sync_errors: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<Listing id={self.id!r} sku={self.sku_code!r} asin={self.asin!r}>"
