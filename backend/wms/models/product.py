from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import field_validator
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from wms.models.common import utcnow


class ProductDetails(SQLModel):
    """Client-editable product attributes (everything except SKU and stock)."""

    name: str = Field(min_length=2, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    # Physical attributes (kg / cm)
    weight: float = Field(gt=0, description="Unit weight")
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    depth: float = Field(gt=0)
    category: str = Field(min_length=1, max_length=100, index=True)


class Product(ProductDetails, table=True):
    __tablename__ = "products"

    id: Optional[int] = Field(default=None, primary_key=True)
    sku: str = Field(max_length=50, unique=True, index=True, description="Stock keeping unit")

    # Cached sum of non-quarantined inventory; the ledger is the source of truth
    stock_quantity: int = Field(default=0, description="Available units (derived)")

    created_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=DateTime)
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime)


class ProductCreate(ProductDetails):
    sku: str = Field(min_length=3, max_length=50)

    @field_validator("sku", mode="before")
    @classmethod
    def _strip_sku(cls, value):
        return value.strip() if isinstance(value, str) else value


class ProductUpdate(ProductDetails):
    pass


class ProductRead(ProductDetails):
    id: int
    sku: str
    stock_quantity: int
    created_at: datetime
    updated_at: Optional[datetime] = None
