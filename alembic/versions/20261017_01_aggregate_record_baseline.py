"""Aggregate record baseline

Revision ID: 20261017_01
Revises: None
Create Date: 2026-10-17
"""
# pylint: disable=no-member,invalid-name,wrong-import-order

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "20261017_01"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")

    op.create_table(
        "aggregate_record",
        sa.Column("record_id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("owner_id", sa.Text(), nullable=False),
        sa.Column("slot_count", sa.Integer(), nullable=False),
        sa.Column("slots", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("completed_at_utc", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("slot_count >= 1", name="ck_aggregate_record_slot_count_positive"),
        sa.CheckConstraint(
            "jsonb_typeof(slots) = 'array' AND jsonb_array_length(slots) = slot_count",
            name="ck_aggregate_record_slots_length",
        ),
        sa.CheckConstraint(
            "NOT completed OR completed_at_utc IS NOT NULL",
            name="ck_aggregate_record_completed_at",
        ),
    )
    op.create_index("ix_aggregate_record_owner_id", "aggregate_record", ["owner_id"])
    op.create_index(
        "ix_aggregate_record_incomplete_updated",
        "aggregate_record",
        ["updated_at_utc"],
        postgresql_where=sa.text("completed = false"),
    )


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_index("ix_aggregate_record_incomplete_updated", table_name="aggregate_record")
    op.drop_index("ix_aggregate_record_owner_id", table_name="aggregate_record")
    op.drop_table("aggregate_record")
