"""initial schema: sheet_items, listings, activity_log"""

from __future__ import annotations

import os
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _schema() -> str | None:
    # SQLite nu are scheme
    if op.get_bind().dialect.name == "sqlite":
        return None
    return (os.getenv("DB_SCHEMA") or "app").strip() or None


def _false() -> sa.TextClause:
    return sa.text("false")


def upgrade() -> None:
    schema = _schema()
    json_type = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")

    op.create_table(
        "sheet_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tab", sa.String(16), nullable=False),
        sa.Column("row_position", sa.Integer(), nullable=False),
        sa.Column("asin", sa.String(64), nullable=False),
        sa.Column("product_name", sa.Text(), nullable=False),
        sa.Column("brand", sa.String(255), nullable=True),
        sa.Column("cost_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("sale_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("product_review", sa.String(64), nullable=True),
        sa.Column("sourcing_method", sa.String(64), nullable=True),
        sa.Column("raw", json_type, nullable=False),
        sa.Column("archived", sa.Boolean(), nullable=False, server_default=_false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_sheet_items"),
        sa.UniqueConstraint("tab", "asin", name="uq_sheet_items_tab_asin"),
        sa.CheckConstraint("tab IN ('sourcing', 'purchasing')", name="ck_sheet_items_tab_known"),
        sa.CheckConstraint("row_position >= 0", name="ck_sheet_items_row_position_nonnegative"),
        schema=schema,
    )
    op.create_index("ix_sheet_items_tab_archived", "sheet_items", ["tab", "archived"], schema=schema)
    op.create_index("ix_sheet_items_tab_row_position", "sheet_items", ["tab", "row_position"], schema=schema)

    op.create_table(
        "listings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sku_code", sa.String(64), nullable=False),
        sa.Column("brand", sa.String(255), nullable=True),
        sa.Column("buy_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("asin", sa.String(64), nullable=False),
        sa.Column("product_name", sa.Text(), nullable=False),
        sa.Column("generated_date", sa.String(6), nullable=False),
        sa.Column("amazon_sync_status", sa.String(16), nullable=False, server_default=sa.text("'draft'")),
        sa.Column("prep_sync_status", sa.String(16), nullable=False, server_default=sa.text("'draft'")),
        sa.Column("csv_exported", sa.Boolean(), nullable=False, server_default=_false()),
        sa.Column("csv_exported_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_sync_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sync_errors", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_listings"),
        sa.CheckConstraint("buy_price >= 0", name="ck_listings_buy_price_nonnegative"),
        sa.CheckConstraint(
            "amazon_sync_status IN ('draft', 'pending', 'live', 'error')",
            name="ck_listings_amazon_sync_status_known",
        ),
        sa.CheckConstraint(
            "prep_sync_status IN ('draft', 'pending', 'live', 'error')",
            name="ck_listings_prep_sync_status_known",
        ),
        schema=schema,
    )
    op.create_index("ix_listings_sku_code", "listings", ["sku_code"], unique=True, schema=schema)
    op.create_index("ix_listings_asin", "listings", ["asin"], schema=schema)

    op.create_table(
        "activity_log",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(64), nullable=False),
        sa.Column("entity_type", sa.String(64), nullable=False),
        sa.Column("entity_id", sa.String(64), nullable=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_activity_log"),
        schema=schema,
    )
    op.create_index("ix_activity_log_created_at", "activity_log", ["created_at"], schema=schema)


def downgrade() -> None:
    schema = _schema()
    op.drop_index("ix_activity_log_created_at", table_name="activity_log", schema=schema)
    op.drop_table("activity_log", schema=schema)
    op.drop_index("ix_listings_asin", table_name="listings", schema=schema)
    op.drop_index("ix_listings_sku_code", table_name="listings", schema=schema)
    op.drop_table("listings", schema=schema)
    op.drop_index("ix_sheet_items_tab_row_position", table_name="sheet_items", schema=schema)
    op.drop_index("ix_sheet_items_tab_archived", table_name="sheet_items", schema=schema)
    op.drop_table("sheet_items", schema=schema)
