"""initial marketplace schema: users, crops, orders, deliveries, bids

Revision ID: c4a1e7d2b9f0
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "c4a1e7d2b9f0"
down_revision = None
branch_labels = None
depends_on = None


def _table_exists(bind, table_name: str) -> bool:
    try:
        return sa.inspect(bind).has_table(table_name)
    except Exception:
        return False


def upgrade():
    bind = op.get_bind()

    if not _table_exists(bind, "users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=120), nullable=False, server_default=""),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("password_hash", sa.String(length=255), nullable=False),
            sa.Column("role", sa.String(length=16), nullable=False, server_default="CUSTOMER"),
            sa.Column("address", sa.String(length=255), nullable=True),
            sa.Column("account_name", sa.String(length=120), nullable=True),
            sa.Column("account_number", sa.String(length=64), nullable=True),
            sa.Column("bank_name", sa.String(length=120), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_users_email", "users", ["email"], unique=True)

    if not _table_exists(bind, "crops"):
        op.create_table(
            "crops",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("farmer_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=120), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("category", sa.String(length=32), nullable=False, server_default="vegetables"),
            sa.Column("price_per_unit", sa.Float(), nullable=False, server_default="0"),
            sa.Column("available_quantity", sa.Float(), nullable=False, server_default="0"),
            sa.Column("unit", sa.String(length=32), nullable=False, server_default="kg"),
            sa.Column("location", sa.String(length=255), nullable=True),
            sa.Column("image_url", sa.String(length=1024), nullable=True),
            sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["farmer_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_crops_farmer_id", "crops", ["farmer_id"], unique=False)

    if not _table_exists(bind, "orders"):
        op.create_table(
            "orders",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("buyer_id", sa.Integer(), nullable=False),
            sa.Column("crop_id", sa.Integer(), nullable=False),
            sa.Column("quantity", sa.Float(), nullable=False),
            sa.Column("total_price", sa.Float(), nullable=False, server_default="0"),
            sa.Column("status", sa.String(length=32), nullable=False, server_default="PENDING_PAYMENT"),
            sa.Column("delivery_address", sa.String(length=255), nullable=False, server_default=""),
            sa.Column("payment_proof", sa.String(length=1024), nullable=True),
            sa.Column("admin_payment", sa.Float(), nullable=False, server_default="0"),
            sa.Column("farmer_payment", sa.Float(), nullable=False, server_default="0"),
            sa.Column("driver_payment", sa.Float(), nullable=False, server_default="0"),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["buyer_id"], ["users.id"]),
            sa.ForeignKeyConstraint(["crop_id"], ["crops.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_orders_buyer_id", "orders", ["buyer_id"], unique=False)
        op.create_index("ix_orders_crop_id", "orders", ["crop_id"], unique=False)
        op.create_index("ix_orders_status", "orders", ["status"], unique=False)

    if not _table_exists(bind, "deliveries"):
        op.create_table(
            "deliveries",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("order_id", sa.Integer(), nullable=False),
            sa.Column("driver_id", sa.Integer(), nullable=True),
            sa.Column("status", sa.String(length=32), nullable=False, server_default="PENDING"),
            sa.Column("pickup_date", sa.DateTime(), nullable=True),
            sa.Column("delivery_date", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["order_id"], ["orders.id"]),
            sa.ForeignKeyConstraint(["driver_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("order_id"),
        )
        op.create_index("ix_deliveries_driver_id", "deliveries", ["driver_id"], unique=False)
        op.create_index("ix_deliveries_status", "deliveries", ["status"], unique=False)

    if not _table_exists(bind, "delivery_requests"):
        op.create_table(
            "delivery_requests",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("delivery_id", sa.Integer(), nullable=False),
            sa.Column("driver_id", sa.Integer(), nullable=False),
            sa.Column("custom_fee", sa.Float(), nullable=False, server_default="0"),
            sa.Column("message", sa.String(length=500), nullable=True),
            sa.Column("status", sa.String(length=16), nullable=False, server_default="PENDING"),
            sa.Column("admin_commission_paid", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("payment_proof", sa.String(length=1024), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["delivery_id"], ["deliveries.id"]),
            sa.ForeignKeyConstraint(["driver_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("delivery_id", "driver_id", name="uq_delivery_request_driver"),
        )
        op.create_index("ix_delivery_requests_delivery_id", "delivery_requests", ["delivery_id"], unique=False)
        op.create_index("ix_delivery_requests_driver_id", "delivery_requests", ["driver_id"], unique=False)
        op.create_index("ix_delivery_requests_status", "delivery_requests", ["status"], unique=False)

    if not _table_exists(bind, "status_transitions"):
        op.create_table(
            "status_transitions",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("entity_type", sa.String(length=32), nullable=False),
            sa.Column("entity_id", sa.Integer(), nullable=False),
            sa.Column("from_status", sa.String(length=32), nullable=False, server_default=""),
            sa.Column("to_status", sa.String(length=32), nullable=False),
            sa.Column("actor_id", sa.Integer(), nullable=True),
            sa.Column("reason", sa.String(length=240), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_status_transitions_entity_type", "status_transitions", ["entity_type"], unique=False)
        op.create_index("ix_status_transitions_entity_id", "status_transitions", ["entity_id"], unique=False)


def downgrade():
    bind = op.get_bind()
    for table in ("status_transitions", "delivery_requests", "deliveries", "orders", "crops", "users"):
        if _table_exists(bind, table):
            op.drop_table(table)
