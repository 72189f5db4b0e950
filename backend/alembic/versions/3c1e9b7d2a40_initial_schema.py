"""initial warehouse schema

Revision ID: 3c1e9b7d2a40
Revises:
Create Date: 2026-10-19 09:12:31.402117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1e9b7d2a40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LOCATION_TYPES = ("PICKING", "PACKING", "BULK_STORAGE", "RECEIVING", "SHIPPING")
ACTION_TYPES = ("ADDED", "REMOVED", "MOVED", "COUNTED", "QUARANTINED")
ORDER_STATUSES = ("CREATED", "PROCESSING", "PICKING", "PACKING", "SHIPPED", "DELIVERED", "CANCELED")


def upgrade() -> None:
    """Upgrade schema: catalog, locations, inventory ledger + audit trail, order book."""
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sku", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=1000), nullable=True),
        sa.Column("weight", sa.Float(), nullable=False),
        sa.Column("width", sa.Float(), nullable=False),
        sa.Column("height", sa.Float(), nullable=False),
        sa.Column("depth", sa.Float(), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("stock_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_products_sku", "products", ["sku"], unique=True)
    op.create_index("ix_products_category", "products", ["category"])

    op.create_table(
        "warehouse_locations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("aisle", sa.String(length=20), nullable=False),
        sa.Column("rack", sa.String(length=20), nullable=False),
        sa.Column("shelf", sa.String(length=20), nullable=False),
        sa.Column("bin", sa.String(length=20), nullable=False),
        sa.Column("type", sa.Enum(*LOCATION_TYPES, name="locationtype"), nullable=False),
        sa.Column("max_weight", sa.Float(), nullable=False),
        sa.Column("is_occupied", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("current_weight", sa.Float(), nullable=False, server_default="0"),
        sa.Column("display_code", sa.String(length=100), nullable=True),
        sa.UniqueConstraint("aisle", "rack", "shelf", "bin", name="uq_location_address"),
    )
    op.create_index("ix_warehouse_locations_type", "warehouse_locations", ["type"])
    op.create_index("ix_warehouse_locations_is_occupied", "warehouse_locations", ["is_occupied"])

    op.create_table(
        "inventory_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("location_id", sa.Integer(), sa.ForeignKey("warehouse_locations.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("batch_number", sa.String(length=100), nullable=True),
        sa.Column("expiry_date", sa.DateTime(), nullable=True),
        sa.Column("is_quarantined", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_counted_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_inventory_items_quantity_positive"),
    )
    for col in ("product_id", "location_id", "batch_number", "expiry_date", "is_quarantined"):
        op.create_index(f"ix_inventory_items_{col}", "inventory_items", [col])

    op.create_table(
        "inventory_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("inventory_item_id", sa.Integer(), nullable=True),
        sa.Column("action_type", sa.Enum(*ACTION_TYPES, name="inventoryactiontype"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("source_location_id", sa.Integer(), nullable=True),
        sa.Column("destination_location_id", sa.Integer(), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("username", sa.String(length=100), nullable=True),
        sa.Column("batch_number", sa.String(length=100), nullable=True),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("notes", sa.String(length=500), nullable=True),
    )
    for col in ("product_id", "inventory_item_id", "action_type", "timestamp"):
        op.create_index(f"ix_inventory_history_{col}", "inventory_history", [col])

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_number", sa.String(length=50), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("shipping_address", sa.String(length=1000), nullable=False),
        sa.Column("priority_level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("status", sa.Enum(*ORDER_STATUSES, name="orderstatus"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_orders_order_number", "orders", ["order_number"], unique=True)
    for col in ("customer_id", "priority_level", "status"):
        op.create_index(f"ix_orders_{col}", "orders", [col])

    op.create_table(
        "order_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("product_sku", sa.String(length=50), nullable=False),
        sa.Column("product_name", sa.String(length=255), nullable=False),
        sa.Column("is_picked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_packed", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])


def downgrade() -> None:
    """Downgrade schema: drop everything (children first)."""
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("inventory_history")
    op.drop_table("inventory_items")
    op.drop_table("warehouse_locations")
    op.drop_table("products")

    bind = op.get_bind()
    if bind is not None and bind.dialect.name == "postgresql":
        for enum_name in ("orderstatus", "inventoryactiontype", "locationtype"):
            op.execute(f"DROP TYPE IF EXISTS {enum_name}")
