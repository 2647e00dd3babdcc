"""create orders table

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00
"""
from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "orders",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("contact", sa.JSON(), nullable=False),
        sa.Column("fulfillment_method", sa.Enum("PICKUP", "POST", name="fulfillmentmethod"), nullable=False),
        sa.Column("address", sa.JSON(), nullable=True),
        sa.Column("postage_code", sa.String(), nullable=True),
        sa.Column("payment_transaction_id", sa.String(), nullable=True),
        sa.Column(
            "reconciliation_status",
            sa.Enum("PENDING", "SYNCED", "FAILED", name="reconciliationstatus"),
            nullable=True,
        ),
        sa.Column("reconciliation_amount", sa.Integer(), nullable=True),
        sa.Column("reconciliation_attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reconciliation_error", sa.String(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_orders_reconciliation_status", "orders", ["reconciliation_status"])


def downgrade() -> None:
    op.drop_index("ix_orders_reconciliation_status", table_name="orders")
    op.drop_table("orders")
    sa.Enum(name="reconciliationstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="fulfillmentmethod").drop(op.get_bind(), checkfirst=True)
