"""Replace tenders.office_id / wing_id / dec_id with integer arrays.

Existing single associations are copied into one-element arrays before the
old columns are dropped. The arrays carry no foreign keys; unknown ids are
resolved to placeholder labels when read.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "003_tender_association_arrays"
down_revision = "002_tenders"
branch_labels = None
depends_on = None

_PAIRS = (("office_id", "office_ids"), ("wing_id", "wing_ids"), ("dec_id", "dec_ids"))


def upgrade() -> None:
    for _, array_column in _PAIRS:
        op.add_column(
            "tenders",
            sa.Column(
                array_column,
                postgresql.ARRAY(sa.Integer()),
                nullable=False,
                server_default=sa.text("'{}'::integer[]"),
            ),
        )

    # Block concurrent tender writes while the backfill runs.
    op.execute("LOCK TABLE tenders IN SHARE ROW EXCLUSIVE MODE")
    for single_column, array_column in _PAIRS:
        op.execute(
            f"UPDATE tenders SET {array_column} = ARRAY[{single_column}] "
            f"WHERE {single_column} IS NOT NULL"
        )

    for single_column, array_column in _PAIRS:
        op.drop_constraint(f"fk_tenders_{single_column[:-3]}", "tenders", type_="foreignkey")
        op.drop_column("tenders", single_column)
        op.create_index(
            f"ix_tenders_{array_column}", "tenders", [array_column], postgresql_using="gin"
        )


def downgrade() -> None:
    for single_column, array_column in _PAIRS:
        op.add_column("tenders", sa.Column(single_column, sa.Integer(), nullable=True))
        # Only the first association survives a downgrade.
        op.execute(f"UPDATE tenders SET {single_column} = {array_column}[1]")
        op.drop_index(f"ix_tenders_{array_column}", table_name="tenders")
        op.drop_column("tenders", array_column)
