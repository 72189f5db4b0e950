"""Warehouse location store."""
from __future__ import annotations

import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from wms.core.database import transaction
from wms.core.errors import ConflictError, NotFoundError
from wms.models import LocationCreate, LocationType, WarehouseLocation

logger = logging.getLogger(__name__)

# A location counts as "having space" below this share of its capacity
SPACE_AVAILABLE_RATIO = 0.9


def get_location(session: Session, location_id: int) -> WarehouseLocation:
    location = session.get(WarehouseLocation, location_id)
    if location is None:
        raise NotFoundError(f"Location not found with id: {location_id}")
    return location


def list_locations(session: Session) -> List[WarehouseLocation]:
    return list(session.exec(select(WarehouseLocation).order_by(WarehouseLocation.id)).all())


def get_locations_by_type(session: Session, location_type: LocationType) -> List[WarehouseLocation]:
    stmt = select(WarehouseLocation).where(WarehouseLocation.type == location_type).order_by(WarehouseLocation.id)
    return list(session.exec(stmt).all())


def get_locations_with_space(session: Session) -> List[WarehouseLocation]:
    stmt = (
        select(WarehouseLocation)
        .where(WarehouseLocation.current_weight < WarehouseLocation.max_weight * SPACE_AVAILABLE_RATIO)
        .order_by(WarehouseLocation.id)
    )
    return list(session.exec(stmt).all())


def get_available_locations_by_type(session: Session, location_type: LocationType) -> List[WarehouseLocation]:
    """Unoccupied locations of ``location_type``."""
    stmt = (
        select(WarehouseLocation)
        .where(
            WarehouseLocation.is_occupied == False,  # noqa: E712
            WarehouseLocation.type == location_type,
        )
        .order_by(WarehouseLocation.id)
    )
    return list(session.exec(stmt).all())


def find_by_address(session: Session, aisle: str, rack: str, shelf: str, bin_: str) -> WarehouseLocation | None:
    stmt = select(WarehouseLocation).where(
        WarehouseLocation.aisle == aisle,
        WarehouseLocation.rack == rack,
        WarehouseLocation.shelf == shelf,
        WarehouseLocation.bin == bin_,
    )
    return session.exec(stmt).first()


def create_location(session: Session, payload: LocationCreate) -> WarehouseLocation:
    duplicate = f"Location {payload.aisle}-{payload.rack}-{payload.shelf}-{payload.bin} already exists"
    if find_by_address(session, payload.aisle, payload.rack, payload.shelf, payload.bin) is not None:
        raise ConflictError(duplicate)
    try:
        with transaction(session):
            location = WarehouseLocation(**payload.model_dump())
            session.add(location)
    except IntegrityError:
        raise ConflictError(duplicate) from None
    session.refresh(location)
    logger.info("Created location %s (id=%s)", location.display_code, location.id)
    return location
