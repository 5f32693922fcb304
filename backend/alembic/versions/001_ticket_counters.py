"""Ticket counters and discount code projection.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "ticket_counters",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("ticket_type_id", sa.String(100), nullable=False),
        sa.Column("remaining", sa.Integer(), nullable=False),
        sa.Column("maximum", sa.Integer(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        # Last line of defence against overselling and over-release
        sa.CheckConstraint("remaining >= 0", name="check_remaining_non_negative"),
        sa.CheckConstraint("maximum >= 0", name="check_maximum_non_negative"),
        sa.CheckConstraint("remaining <= maximum", name="check_remaining_lte_maximum"),
    )
    op.create_index("ix_ticket_counters_ticket_type_id", "ticket_counters", ["ticket_type_id"], unique=True)

    op.create_table(
        "discount_codes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(100), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("discount_type", sa.JSON(), nullable=False),
        sa.Column("available_from", sa.DateTime(timezone=True), nullable=True),
        sa.Column("available_to", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    # Discount codes are case-sensitive keys
    op.create_index("ix_discount_codes_code", "discount_codes", ["code"], unique=True)


def downgrade() -> None:
    op.drop_table("discount_codes")
    op.drop_table("ticket_counters")
