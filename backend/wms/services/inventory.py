"""
inventory.py

Inventory rule engine: allocation, move / split, FEFO removal, quarantine
and cycle counts.

Each public mutation runs inside one ``transaction(session)`` so that the
item change, its audit row(s) and the derived fields

* ``Product.stock_quantity``  – sum of non-quarantined item quantities
* ``WarehouseLocation.current_weight`` / ``is_occupied``

commit or roll back together. Product and location rows are read with
``SELECT ... FOR UPDATE`` before any capacity or stock decision, so two
concurrent allocations against the same slot serialize instead of both
passing the capacity check.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from sqlalchemy import and_
from sqlmodel import Session, func, select

from wms.core.database import transaction
from wms.core.errors import BadRequestError, ConflictError, NotFoundError
from wms.models import (
    InventoryActionType,
    InventoryItem,
    LocationType,
    Product,
    WarehouseLocation,
)
from wms.models.common import to_naive_utc, utcnow
from wms.services import history

logger = logging.getLogger(__name__)

# Upper bound for expiry look-ahead queries; keeps now + days inside datetime range
MAX_EXPIRY_WINDOW_DAYS = 36500


# --------------------------------------------------------------------------- #
# Reads                                                                       #
# --------------------------------------------------------------------------- #
def get_item(session: Session, item_id: int) -> InventoryItem:
    item = session.get(InventoryItem, item_id)
    if item is None:
        raise NotFoundError(f"Inventory item not found with id: {item_id}")
    return item


def get_inventory_by_product(session: Session, product_id: int) -> List[InventoryItem]:
    stmt = select(InventoryItem).where(InventoryItem.product_id == product_id).order_by(InventoryItem.id)
    return list(session.exec(stmt).all())


def get_inventory_by_location(session: Session, location_id: int) -> List[InventoryItem]:
    stmt = select(InventoryItem).where(InventoryItem.location_id == location_id).order_by(InventoryItem.id)
    return list(session.exec(stmt).all())


def get_available_quantity(session: Session, product_id: int) -> int:
    """Sum of non-quarantined quantities for ``product_id`` (0 when none)."""
    stmt = select(func.coalesce(func.sum(InventoryItem.quantity), 0)).where(
        InventoryItem.product_id == product_id,
        InventoryItem.is_quarantined == False,  # noqa: E712
    )
    return int(session.exec(stmt).one() or 0)


def get_expired_items(session: Session, *, now: Optional[datetime] = None) -> List[InventoryItem]:
    now = now or utcnow()
    stmt = (
        select(InventoryItem)
        .where(InventoryItem.expiry_date.is_not(None), InventoryItem.expiry_date < now)
        .order_by(InventoryItem.expiry_date, InventoryItem.id)
    )
    return list(session.exec(stmt).all())


def get_items_expiring_within_days(
    session: Session, days: int, *, now: Optional[datetime] = None
) -> List[InventoryItem]:
    if days < 0:
        raise BadRequestError("days must not be negative")
    if days > MAX_EXPIRY_WINDOW_DAYS:
        raise BadRequestError(f"days must be at most {MAX_EXPIRY_WINDOW_DAYS}")
    now = now or utcnow()
    horizon = now + timedelta(days=days)
    stmt = (
        select(InventoryItem)
        .where(InventoryItem.expiry_date >= now, InventoryItem.expiry_date <= horizon)
        .order_by(InventoryItem.expiry_date, InventoryItem.id)
    )
    return list(session.exec(stmt).all())


def get_stock_by_category(session: Session) -> Dict[str, int]:
    """Available (non-quarantined) units per product category."""
    stmt = (
        select(Product.category, func.coalesce(func.sum(InventoryItem.quantity), 0))
        .select_from(Product)
        .join(
            InventoryItem,
            and_(InventoryItem.product_id == Product.id, InventoryItem.is_quarantined == False),  # noqa: E712
            isouter=True,
        )
        .group_by(Product.category)
        .order_by(Product.category)
    )
    return {category: int(total or 0) for category, total in session.exec(stmt).all()}


# --------------------------------------------------------------------------- #
# Locking & derived-field helpers                                             #
# --------------------------------------------------------------------------- #
def _lock_product(session: Session, product_id: int) -> Product:
    stmt = (
        select(Product)
        .where(Product.id == product_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    product = session.exec(stmt).first()
    if product is None:
        raise NotFoundError(f"Product not found with id: {product_id}")
    return product


def _lock_locations(session: Session, location_ids: Iterable[int]) -> Dict[int, WarehouseLocation]:
    """Lock locations in id order (stable order avoids lock cycles)."""
    locked: Dict[int, WarehouseLocation] = {}
    for location_id in sorted(set(location_ids)):
        stmt = (
            select(WarehouseLocation)
            .where(WarehouseLocation.id == location_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        location = session.exec(stmt).first()
        if location is None:
            raise NotFoundError(f"Location not found with id: {location_id}")
        locked[location_id] = location
    return locked


def _refresh_product_stock(session: Session, product: Product) -> None:
    available = get_available_quantity(session, product.id)
    if product.stock_quantity != available:
        product.stock_quantity = available
        product.updated_at = utcnow()
        session.add(product)


def _refresh_location_state(session: Session, location: WarehouseLocation) -> None:
    stmt = (
        select(InventoryItem.quantity, Product.weight)
        .join(Product, Product.id == InventoryItem.product_id)
        .where(InventoryItem.location_id == location.id)
    )
    rows = session.exec(stmt).all()
    location.current_weight = round(sum(float(w or 0.0) * int(q) for q, w in rows), 6)
    location.is_occupied = bool(rows)
    session.add(location)


def _find_suitable_location(session: Session, product: Product) -> WarehouseLocation:
    """
    Pick a storage slot for one more unit of ``product``.

    1. a location already holding this product with spare weight capacity
    2. an unoccupied BULK_STORAGE location with spare weight capacity
    """
    holding = (
        select(WarehouseLocation)
        .where(
            WarehouseLocation.id.in_(
                select(InventoryItem.location_id).where(InventoryItem.product_id == product.id)
            )
        )
        .order_by(WarehouseLocation.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    for location in session.exec(holding).all():
        if location.has_capacity_for(product.weight):
            return location

    empty_bulk = (
        select(WarehouseLocation)
        .where(
            WarehouseLocation.is_occupied == False,  # noqa: E712
            WarehouseLocation.type == LocationType.BULK_STORAGE,
        )
        .order_by(WarehouseLocation.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    for location in session.exec(empty_bulk).all():
        if location.has_capacity_for(product.weight):
            return location

    raise ConflictError(f"No suitable location found for product {product.sku}")


def _expiry_sort_key(item: InventoryItem):
    # soonest expiry first; lots without expiry go last
    return (item.expiry_date is None, item.expiry_date or datetime.max, item.id or 0)


def _require_positive(quantity: int) -> None:
    if quantity is None or int(quantity) <= 0:
        raise BadRequestError("quantity must be a positive integer")


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


# --------------------------------------------------------------------------- #
# Mutations                                                                   #
# --------------------------------------------------------------------------- #
def add_inventory(
    session: Session,
    product_id: int,
    quantity: int,
    location_id: Optional[int] = None,
    batch_number: Optional[str] = None,
    expiry_date: Optional[datetime] = None,
    *,
    user_id: Optional[int] = None,
    username: Optional[str] = None,
) -> InventoryItem:
    """Receive ``quantity`` units; auto-assigns a location when none is given."""
    _require_positive(quantity)
    batch_number = _clean(batch_number)

    with transaction(session):
        product = _lock_product(session, product_id)
        if location_id is not None:
            location = _lock_locations(session, [location_id])[location_id]
        else:
            location = _find_suitable_location(session, product)

        now = utcnow()
        item = InventoryItem(
            product_id=product.id,
            location_id=location.id,
            quantity=int(quantity),
            batch_number=batch_number,
            expiry_date=to_naive_utc(expiry_date),
            last_counted_at=now,
            created_at=now,
        )
        session.add(item)
        session.flush()

        history.record_entry(
            session,
            product_id=product.id,
            inventory_item_id=item.id,
            action_type=InventoryActionType.ADDED,
            quantity=item.quantity,
            destination_location_id=location.id,
            batch_number=batch_number,
            user_id=user_id,
            username=username,
            notes="Initial inventory addition",
        )
        _refresh_product_stock(session, product)
        _refresh_location_state(session, location)

    session.refresh(item)
    logger.info(
        "Added %s x %s at location %s (item=%s)", item.quantity, product.sku, location.id, item.id
    )
    return item


def move_inventory(
    session: Session,
    item_id: int,
    new_location_id: int,
    quantity: int,
    *,
    user_id: Optional[int] = None,
    username: Optional[str] = None,
) -> InventoryItem:
    """
    Move ``quantity`` units of an item to ``new_location_id``.

    Full quantity: the same row is relocated. Partial: the original row is
    decremented and a new row (same batch / expiry / quarantine flag) is
    created at the destination; the new row is returned.
    """
    _require_positive(quantity)

    with transaction(session):
        item = get_item(session, item_id)
        if quantity > item.quantity:
            raise ConflictError("Cannot move more than available quantity")

        product = _lock_product(session, item.product_id)
        source_id = item.location_id
        locked = _lock_locations(session, [source_id, new_location_id])
        source, destination = locked[source_id], locked[new_location_id]

        now = utcnow()
        if quantity == item.quantity:
            item.location_id = destination.id
            item.last_counted_at = now
            session.add(item)
            moved = item
            notes = "Moved entire inventory item"
        else:
            item.quantity -= quantity
            session.add(item)
            moved = InventoryItem(
                product_id=item.product_id,
                location_id=destination.id,
                quantity=int(quantity),
                batch_number=item.batch_number,
                expiry_date=item.expiry_date,
                is_quarantined=item.is_quarantined,
                last_counted_at=now,
                created_at=now,
            )
            session.add(moved)
            notes = f"Split from inventory item #{item.id}"
        session.flush()

        history.record_entry(
            session,
            product_id=item.product_id,
            inventory_item_id=moved.id,
            action_type=InventoryActionType.MOVED,
            quantity=int(quantity),
            source_location_id=source.id,
            destination_location_id=destination.id,
            batch_number=item.batch_number,
            user_id=user_id,
            username=username,
            notes=notes,
        )
        for location in locked.values():
            _refresh_location_state(session, location)
        _refresh_product_stock(session, product)

    session.refresh(moved)
    logger.info(
        "Moved %s units of item %s from location %s to %s (result item=%s)",
        quantity, item_id, source_id, new_location_id, moved.id,
    )
    return moved


def remove_inventory(
    session: Session,
    product_id: int,
    quantity: int,
    *,
    user_id: Optional[int] = None,
    username: Optional[str] = None,
) -> bool:
    """
    Remove ``quantity`` units, soonest-expiring non-quarantined lots first.

    All-or-nothing: returns ``False`` without touching anything when the
    available quantity is short.
    """
    _require_positive(quantity)

    with transaction(session):
        product = _lock_product(session, product_id)
        stmt = (
            select(InventoryItem)
            .where(
                InventoryItem.product_id == product_id,
                InventoryItem.is_quarantined == False,  # noqa: E712
            )
            .with_for_update()
        )
        eligible = sorted(session.exec(stmt).all(), key=_expiry_sort_key)

        available = sum(i.quantity for i in eligible)
        if available < quantity:
            logger.info(
                "Refused removal of %s x %s: only %s available", quantity, product.sku, available
            )
            return False

        remaining = int(quantity)
        touched_locations: set[int] = set()
        for item in eligible:
            if remaining == 0:
                break
            taken = min(item.quantity, remaining)
            touched_locations.add(item.location_id)
            if taken == item.quantity:
                session.delete(item)
                notes = "Completely removed inventory item"
            else:
                item.quantity -= taken
                session.add(item)
                notes = "Partially removed from inventory item"

            history.record_entry(
                session,
                product_id=product_id,
                inventory_item_id=item.id,
                action_type=InventoryActionType.REMOVED,
                quantity=taken,
                source_location_id=item.location_id,
                batch_number=item.batch_number,
                user_id=user_id,
                username=username,
                notes=notes,
            )
            remaining -= taken
        session.flush()

        _refresh_product_stock(session, product)
        for location in _lock_locations(session, touched_locations).values():
            _refresh_location_state(session, location)

    logger.info("Removed %s x %s", quantity, product.sku)
    return True


def quarantine_inventory(
    session: Session,
    item_id: int,
    *,
    user_id: Optional[int] = None,
    username: Optional[str] = None,
) -> InventoryItem:
    """Flag an item unavailable for allocation; it stays where it is."""
    with transaction(session):
        item = get_item(session, item_id)
        if item.is_quarantined:
            return item

        product = _lock_product(session, item.product_id)
        item.is_quarantined = True
        session.add(item)

        history.record_entry(
            session,
            product_id=item.product_id,
            inventory_item_id=item.id,
            action_type=InventoryActionType.QUARANTINED,
            quantity=item.quantity,
            source_location_id=item.location_id,
            batch_number=item.batch_number,
            user_id=user_id,
            username=username,
            notes="Inventory quarantined",
        )
        session.flush()
        _refresh_product_stock(session, product)

    session.refresh(item)
    logger.info("Quarantined item %s (%s units of %s)", item.id, item.quantity, product.sku)
    return item


def cycle_count(
    session: Session,
    location_id: int,
    *,
    user_id: Optional[int] = None,
    username: Optional[str] = None,
) -> List[InventoryItem]:
    """Stamp ``last_counted_at`` on every item at a location; quantities unchanged."""
    with transaction(session):
        _lock_locations(session, [location_id])
        items = get_inventory_by_location(session, location_id)
        now = utcnow()
        for item in items:
            item.last_counted_at = now
            session.add(item)
            history.record_entry(
                session,
                product_id=item.product_id,
                inventory_item_id=item.id,
                action_type=InventoryActionType.COUNTED,
                quantity=item.quantity,
                source_location_id=location_id,
                batch_number=item.batch_number,
                user_id=user_id,
                username=username,
                notes="Cycle count performed",
            )

    for item in items:
        session.refresh(item)
    logger.info("Cycle count at location %s: %s item(s)", location_id, len(items))
    return items


def refresh_product_stock(session: Session, product_id: int) -> Product:
    """Recompute the cached ``stock_quantity`` from the ledger."""
    with transaction(session):
        product = _lock_product(session, product_id)
        _refresh_product_stock(session, product)
    session.refresh(product)
    return product
