from sqlalchemy import Table, Column, String, Integer, Enum, DateTime, JSON, MetaData
from sqlalchemy.sql import func

from scarf_orders.domain.models import FulfillmentMethod, ReconciliationStatus

metadata = MetaData()


orders_tbl = Table(
    "orders",
    metadata,
    Column("id", String, primary_key=True),
    Column("quantity", Integer, nullable=False),
    Column("contact", JSON, nullable=False),
    Column("fulfillment_method", Enum(FulfillmentMethod), nullable=False),
    Column("address", JSON, nullable=True),
    Column("postage_code", String, nullable=True),
    Column("payment_transaction_id", String, nullable=True),
    Column("reconciliation_status", Enum(ReconciliationStatus), nullable=True, index=True),
    Column("reconciliation_amount", Integer, nullable=True),
    Column("reconciliation_attempts", Integer, nullable=False, default=0),
    Column("reconciliation_error", String, nullable=True),
    Column("version", Integer, nullable=False, default=1),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
)
