"""deals table; parsed sales/margin/ROI on sheet_items"""

from __future__ import annotations

import os
from alembic import op
import sqlalchemy as sa

revision = "0002_deals_metrics"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def _schema() -> str | None:
    if op.get_bind().dialect.name == "sqlite":
        return None
    return (os.getenv("DB_SCHEMA") or "app").strip() or None


def upgrade() -> None:
    schema = _schema()

    with op.batch_alter_table("sheet_items", schema=schema) as batch:
        batch.add_column(sa.Column("estimated_sales", sa.Numeric(12, 2), nullable=True))
        batch.add_column(sa.Column("profit_margin", sa.Numeric(12, 2), nullable=True))
        batch.add_column(sa.Column("roi", sa.Numeric(12, 2), nullable=True))

    op.create_table(
        "deals",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("asin", sa.String(64), nullable=False),
        sa.Column("product_name", sa.Text(), nullable=False),
        sa.Column("brand", sa.String(255), nullable=True),
        sa.Column("source_url", sa.Text(), nullable=True),
        sa.Column("cost_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("sale_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("profit", sa.Numeric(10, 2), nullable=False),
        sa.Column("profit_margin", sa.Numeric(16, 2), nullable=False),
        sa.Column("roi", sa.Numeric(16, 2), nullable=False),
        sa.Column("estimated_sales", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("sourcing_method", sa.String(64), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'new'")),
        sa.Column("review_notes", sa.Text(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_deals"),
        sa.CheckConstraint(
            "status IN ('new', 'under_review', 'winner', 'no_go')", name="ck_deals_status_known"
        ),
        sa.CheckConstraint("cost_price >= 0", name="ck_deals_cost_price_nonnegative"),
        sa.CheckConstraint("sale_price >= 0", name="ck_deals_sale_price_nonnegative"),
        schema=schema,
    )
    op.create_index("ix_deals_status", "deals", ["status"], schema=schema)
    op.create_index("ix_deals_asin", "deals", ["asin"], schema=schema)


def downgrade() -> None:
    schema = _schema()
    op.drop_index("ix_deals_asin", table_name="deals", schema=schema)
    op.drop_index("ix_deals_status", table_name="deals", schema=schema)
    op.drop_table("deals", schema=schema)

    with op.batch_alter_table("sheet_items", schema=schema) as batch:
        batch.drop_column("roi")
        batch.drop_column("profit_margin")
        batch.drop_column("estimated_sales")
