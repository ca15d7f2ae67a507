"""create records

Revision ID: 5a1c7e2b9d40
Revises:
Create Date: 2026-10-19 09:12:44.518203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5a1c7e2b9d40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        "records",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("type", sa.String(10), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("original_title", sa.String(300), nullable=True),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=False, server_default=""),
        sa.Column("cover_url", sa.String(1000), nullable=True),
        sa.Column("cover_tone", sa.String(16), nullable=False),
        sa.Column("cover_accent", sa.String(16), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="planned"),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("progress_current", sa.Integer(), nullable=True),
        sa.Column("progress_total", sa.Integer(), nullable=True),
        sa.Column("progress_unit", sa.String(20), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("history", sa.JSON(), nullable=False),
        sa.CheckConstraint("type IN ('book','film','series','game')", name="ck_records_type"),
        sa.CheckConstraint(
            "status IN ('planned','in_progress','completed','paused')",
            name="ck_records_status",
        ),
        sa.CheckConstraint("rating IS NULL OR (rating >= 0 AND rating <= 10)", name="ck_records_rating"),
    )

    op.create_index("ix_records_updated_at", "records", ["updated_at"])
    op.create_index("ix_records_type_status", "records", ["type", "status"])


def downgrade():
    op.drop_index("ix_records_type_status", table_name="records")
    op.drop_index("ix_records_updated_at", table_name="records")
    op.drop_table("records")
