"""Create deliveries, delivery_items and stock_transactions."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "004_deliveries_stock"
down_revision = "003_tender_association_arrays"
branch_labels = None
depends_on = None


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _utc_now() -> sa.TextClause:
    return sa.text("timezone('utc', now())")


def upgrade() -> None:
    op.create_table(
        "deliveries",
        _uuid_pk(),
        sa.Column("delivery_number", sa.Integer(), nullable=False),
        sa.Column("tender_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("delivery_personnel", sa.Text(), nullable=False),
        sa.Column("delivery_date", sa.Date(), nullable=False),
        sa.Column("delivery_notes", sa.Text(), nullable=True),
        sa.Column("delivery_chalan", sa.Text(), nullable=True),
        sa.Column("chalan_file_path", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Text(), nullable=True),
        sa.Column(
            "created_at", postgresql.TIMESTAMP(timezone=True), nullable=False, server_default=_utc_now()
        ),
        sa.Column(
            "updated_at", postgresql.TIMESTAMP(timezone=True), nullable=False, server_default=_utc_now()
        ),
        sa.ForeignKeyConstraint(
            ["tender_id"], ["tenders.id"], name="fk_deliveries_tender", ondelete="CASCADE"
        ),
        sa.UniqueConstraint("tender_id", "delivery_number", name="uq_deliveries_tender_number"),
        sa.CheckConstraint("btrim(delivery_personnel) <> ''", name="ck_deliveries_personnel"),
    )

    op.create_table(
        "delivery_items",
        _uuid_pk(),
        sa.Column("delivery_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("item_master_id", sa.Text(), nullable=False),
        sa.Column("item_name", sa.Text(), nullable=False, server_default=""),
        sa.Column("delivery_qty", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["delivery_id"], ["deliveries.id"], name="fk_delivery_items_delivery", ondelete="CASCADE"
        ),
        sa.CheckConstraint("delivery_qty > 0", name="ck_delivery_items_qty_positive"),
    )
    op.create_index("ix_delivery_items_delivery_id", "delivery_items", ["delivery_id"])

    op.create_table(
        "stock_transactions",
        _uuid_pk(),
        sa.Column("tender_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("item_master_id", sa.Text(), nullable=False),
        sa.Column("total_quantity_received", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("pricing_confirmed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at", postgresql.TIMESTAMP(timezone=True), nullable=False, server_default=_utc_now()
        ),
        sa.ForeignKeyConstraint(["tender_id"], ["tenders.id"], name="fk_stock_transactions_tender"),
    )
    op.create_index("ix_stock_transactions_tender_id", "stock_transactions", ["tender_id"])


def downgrade() -> None:
    op.drop_index("ix_stock_transactions_tender_id", table_name="stock_transactions")
    op.drop_table("stock_transactions")
    op.drop_index("ix_delivery_items_delivery_id", table_name="delivery_items")
    op.drop_table("delivery_items")
    op.drop_table("deliveries")
