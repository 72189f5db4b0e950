from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime
from sqlmodel import Field, SQLModel

from wms.models.common import utcnow


class InventoryItem(SQLModel, table=True):
    """One lot of a product stored at one location."""

    __tablename__ = "inventory_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_inventory_items_quantity_positive"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="products.id", index=True)
    location_id: int = Field(foreign_key="warehouse_locations.id", index=True)

    quantity: int = Field(description="Units in this lot")
    batch_number: Optional[str] = Field(default=None, max_length=100, index=True)
    expiry_date: Optional[datetime] = Field(default=None, index=True, sa_type=DateTime)

    is_quarantined: bool = Field(default=False, index=True)
    last_counted_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    created_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=DateTime)


class InventoryActionType(str, enum.Enum):
    ADDED = "ADDED"
    REMOVED = "REMOVED"
    MOVED = "MOVED"
    COUNTED = "COUNTED"
    QUARANTINED = "QUARANTINED"


class InventoryHistory(SQLModel, table=True):
    """Append-only audit record; one row per atomic inventory change.

    ``product_id`` and ``inventory_item_id`` are plain columns (no FK): the
    audit trail outlives removed items and deleted products.
    """

    __tablename__ = "inventory_history"

    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(index=True)
    inventory_item_id: Optional[int] = Field(default=None, index=True)
    action_type: InventoryActionType = Field(index=True)
    quantity: int

    source_location_id: Optional[int] = Field(default=None)
    destination_location_id: Optional[int] = Field(default=None)

    user_id: Optional[int] = Field(default=None)
    username: Optional[str] = Field(default=None, max_length=100)
    batch_number: Optional[str] = Field(default=None, max_length=100)

    timestamp: datetime = Field(default_factory=utcnow, nullable=False, index=True, sa_type=DateTime)
    notes: Optional[str] = Field(default=None, max_length=500)
