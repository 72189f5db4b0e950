"""
Aggregate export for all SQLModel table classes and API schemas.

Having each model re-exported here guarantees that
`import wms.models` will register every table in
`SQLModel.metadata`, so Alembic can discover them
during `--autogenerate`.
"""

# --- Catalog -----------------------------------------------------------------
from .product import Product, ProductCreate, ProductRead, ProductUpdate  # noqa: F401

# --- Locations ---------------------------------------------------------------
from .location import (  # noqa: F401
    LocationCreate,
    LocationRead,
    LocationType,
    WarehouseLocation,
)

# --- Inventory ledger / audit trail -----------------------------------------
from .inventory import InventoryActionType, InventoryHistory, InventoryItem  # noqa: F401

# --- Order book --------------------------------------------------------------
from .order import (  # noqa: F401
    Order,
    OrderCreate,
    OrderItem,
    OrderItemCreate,
    OrderItemRead,
    OrderRead,
    OrderStatus,
    OrderStatusUpdate,
)

__all__ = [
    "Product",
    "ProductCreate",
    "ProductRead",
    "ProductUpdate",
    "WarehouseLocation",
    "LocationCreate",
    "LocationRead",
    "LocationType",
    "InventoryItem",
    "InventoryHistory",
    "InventoryActionType",
    "Order",
    "OrderCreate",
    "OrderItem",
    "OrderItemCreate",
    "OrderItemRead",
    "OrderRead",
    "OrderStatus",
    "OrderStatusUpdate",
]
