"""Order book models.

An Order owns its OrderItems (``cascade="all, delete-orphan"``). Items carry
only the ``order_id`` column, no ORM back-reference; code that needs the
parent order is handed it explicitly.

No ``from __future__ import annotations`` here: SQLModel resolves
``Relationship`` annotations at class creation.
"""

import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime
from sqlmodel import Field, Relationship, SQLModel

from wms.models.common import utcnow


class OrderStatus(str, enum.Enum):
    CREATED = "CREATED"
    PROCESSING = "PROCESSING"
    PICKING = "PICKING"
    PACKING = "PACKING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELED = "CANCELED"


# --------------------------------------------------------------------------- #
# Order items                                                                 #
# --------------------------------------------------------------------------- #
class OrderItemBase(SQLModel):
    product_id: int
    quantity: int = Field(gt=0)
    price: float = Field(ge=0)


class OrderItem(OrderItemBase, table=True):
    __tablename__ = "order_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: Optional[int] = Field(
        default=None, foreign_key="orders.id", index=True, nullable=False
    )

    # Snapshot of the product at order time
    product_sku: str = Field(max_length=50)
    product_name: str = Field(max_length=255)

    is_picked: bool = Field(default=False)
    is_packed: bool = Field(default=False)


class OrderItemCreate(OrderItemBase):
    pass


class OrderItemRead(OrderItemBase):
    id: int
    order_id: int
    product_sku: str
    product_name: str
    is_picked: bool
    is_packed: bool


# --------------------------------------------------------------------------- #
# Orders                                                                      #
# --------------------------------------------------------------------------- #
class OrderBase(SQLModel):
    order_number: str = Field(min_length=1, max_length=50, unique=True, index=True)
    customer_id: int = Field(index=True)
    shipping_address: str = Field(min_length=1, max_length=1000)
    priority_level: int = Field(default=1, ge=1, le=5, index=True)


class Order(OrderBase, table=True):
    __tablename__ = "orders"

    id: Optional[int] = Field(default=None, primary_key=True)
    status: OrderStatus = Field(default=OrderStatus.CREATED, index=True)
    created_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=DateTime)
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime)

    items: List["OrderItem"] = Relationship(
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "lazy": "selectin",
            "order_by": "OrderItem.id",
        }
    )


class OrderCreate(OrderBase):
    items: List[OrderItemCreate] = Field(min_length=1)


class OrderRead(OrderBase):
    id: int
    status: OrderStatus
    created_at: datetime
    updated_at: Optional[datetime] = None
    items: List[OrderItemRead] = []


class OrderStatusUpdate(SQLModel):
    status: str
