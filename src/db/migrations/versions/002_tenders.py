"""Create vendors and tenders with single office / wing / DEC columns."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "002_tenders"
down_revision = "001_org_hierarchy"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "vendors",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("vendor_name", sa.Text(), nullable=False),
    )

    op.create_table(
        "tenders",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("reference_number", sa.Text(), nullable=True),
        sa.Column("tender_number", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("estimated_value", sa.Numeric(18, 2), nullable=True),
        sa.Column("tender_type", sa.Text(), nullable=True),
        sa.Column("tender_spot_type", sa.Text(), nullable=True),
        sa.Column("tender_status", sa.Text(), nullable=False, server_default="Open"),
        sa.Column("is_finalized", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("vendor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("office_id", sa.Integer(), nullable=True),
        sa.Column("wing_id", sa.Integer(), nullable=True),
        sa.Column("dec_id", sa.Integer(), nullable=True),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("timezone('utc', now())"),
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("timezone('utc', now())"),
        ),
        sa.ForeignKeyConstraint(["vendor_id"], ["vendors.id"], name="fk_tenders_vendor"),
        sa.ForeignKeyConstraint(["office_id"], ["offices.id"], name="fk_tenders_office"),
        sa.ForeignKeyConstraint(["wing_id"], ["wings.id"], name="fk_tenders_wing"),
        sa.ForeignKeyConstraint(["dec_id"], ["decs.id"], name="fk_tenders_dec"),
    )
    op.create_index("ix_tenders_created_at", "tenders", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_tenders_created_at", table_name="tenders")
    op.drop_table("tenders")
    op.drop_table("vendors")
