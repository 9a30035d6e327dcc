"""Install the delivery SQL functions from src/db/functions/deliveries.sql."""

from __future__ import annotations

from pathlib import Path

from alembic import op

revision = "005_delivery_functions"
down_revision = "004_deliveries_stock"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute(_load_sql("deliveries.sql"))


def downgrade() -> None:
    op.execute(
        "DROP FUNCTION IF EXISTS save_delivery_with_items("
        "uuid, text, jsonb, date, text, text, text, text)"
    )
    op.execute("DROP FUNCTION IF EXISTS get_tender_deliveries(uuid)")
    op.execute("DROP FUNCTION IF EXISTS get_delivery_by_id(uuid)")


def _load_sql(name: str) -> str:
    sql_path = Path(__file__).resolve().parents[2] / "functions" / name
    return sql_path.read_text(encoding="utf-8")
