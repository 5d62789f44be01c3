"""Create ledger_records and ledger_indexes tables

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19

Append-only money-movement records plus the aggregate-key table that holds
the recent-activity list.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261019_000001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


RECORD_KINDS = ("TRANSFER", "MONEY_REQUEST", "BILL_PAYMENT")
RECORD_STATUSES = ("COMPLETED", "PENDING", "FAILED")
DIRECTIONS = ("OUTGOING", "INCOMING")
CATEGORIES = (
    "FOOD", "TRANSPORT", "ENTERTAINMENT", "SHOPPING", "UTILITIES",
    "HEALTHCARE", "INCOME", "TRANSFER", "BILLS", "REQUEST",
)


def upgrade() -> None:
    op.create_table(
        "ledger_records",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("kind", sa.Enum(*RECORD_KINDS, name="record_kind", create_constraint=True), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("direction", sa.Enum(*DIRECTIONS, name="record_direction", create_constraint=True), nullable=False),
        sa.Column("counterparty", sa.String(255), nullable=False),
        sa.Column("category", sa.Enum(*CATEGORIES, name="record_category", create_constraint=True), nullable=False),
        sa.Column("status", sa.Enum(*RECORD_STATUSES, name="record_status", create_constraint=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("idempotency_key", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("idempotency_key", name="uq_ledger_records_idempotency_key"),
        sa.CheckConstraint("amount > 0", name="ck_ledger_records_amount_positive"),
    )
    op.create_index("ix_ledger_records_kind", "ledger_records", ["kind"])
    op.create_index("ix_ledger_records_category", "ledger_records", ["category"])
    op.create_index("ix_ledger_records_status", "ledger_records", ["status"])
    op.create_index("ix_ledger_records_created_at", "ledger_records", ["created_at"])

    op.create_table(
        "ledger_indexes",
        sa.Column("key", sa.String(100), nullable=False),
        sa.Column("value", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("key"),
    )


def downgrade() -> None:
    op.drop_table("ledger_indexes")
    op.drop_index("ix_ledger_records_created_at", table_name="ledger_records")
    op.drop_index("ix_ledger_records_status", table_name="ledger_records")
    op.drop_index("ix_ledger_records_category", table_name="ledger_records")
    op.drop_index("ix_ledger_records_kind", table_name="ledger_records")
    op.drop_table("ledger_records")
