from __future__ import annotations

import enum
from typing import Optional

from sqlalchemy import UniqueConstraint, event
from sqlmodel import Field, SQLModel


class LocationType(str, enum.Enum):
    PICKING = "PICKING"
    PACKING = "PACKING"
    BULK_STORAGE = "BULK_STORAGE"
    RECEIVING = "RECEIVING"
    SHIPPING = "SHIPPING"


class LocationBase(SQLModel):
    # Address (aisle, rack, shelf, bin) is unique per warehouse
    aisle: str = Field(min_length=1, max_length=20)
    rack: str = Field(min_length=1, max_length=20)
    shelf: str = Field(min_length=1, max_length=20)
    bin: str = Field(min_length=1, max_length=20)

    type: LocationType = Field(index=True)
    max_weight: float = Field(gt=0, description="Weight capacity")


class WarehouseLocation(LocationBase, table=True):
    """A storage slot.

    ``is_occupied`` and ``current_weight`` are derived from the inventory
    stored here and are recomputed by the inventory service on every change.
    """

    __tablename__ = "warehouse_locations"
    __table_args__ = (
        UniqueConstraint("aisle", "rack", "shelf", "bin", name="uq_location_address"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    is_occupied: bool = Field(default=False, index=True)
    current_weight: float = Field(default=0.0)
    display_code: Optional[str] = Field(default=None, max_length=100)

    def has_capacity_for(self, weight: float) -> bool:
        return (self.current_weight or 0.0) + weight <= self.max_weight

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<WarehouseLocation {self.display_code or self.id} type={self.type} "
            f"weight={self.current_weight}/{self.max_weight} occupied={self.is_occupied}>"
        )


class LocationCreate(LocationBase):
    pass


class LocationRead(LocationBase):
    id: int
    is_occupied: bool
    current_weight: float
    display_code: Optional[str] = None


# --- Event helpers to keep derived fields consistent ------------------------

def format_display_code(aisle: str, rack: str, shelf: str, bin_: str) -> str:
    return "-".join(str(part).strip().upper() for part in (aisle, rack, shelf, bin_))


def _compute_display_code(target: WarehouseLocation) -> None:
    target.display_code = format_display_code(target.aisle, target.rack, target.shelf, target.bin)


@event.listens_for(WarehouseLocation, "before_insert")
def _before_insert(mapper, connection, target: WarehouseLocation) -> None:  # pragma: no cover
    _compute_display_code(target)


@event.listens_for(WarehouseLocation, "before_update")
def _before_update(mapper, connection, target: WarehouseLocation) -> None:  # pragma: no cover
    _compute_display_code(target)
