"""Inventory operations; mutations take their arguments as query parameters."""
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Query

from wms.core.errors import ConflictError
from wms.models import InventoryItem
from wms.routers.deps import SesDep
from wms.services import inventory
from wms.services.inventory import MAX_EXPIRY_WINDOW_DAYS

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


@router.get("/expired", response_model=List[InventoryItem])
def expired_items(ses: SesDep):
    return inventory.get_expired_items(ses)


@router.get("/expiring", response_model=List[InventoryItem])
def expiring_items(ses: SesDep, days: int = Query(7, ge=0, le=MAX_EXPIRY_WINDOW_DAYS)):
    return inventory.get_items_expiring_within_days(ses, days)


@router.get("/stock-by-category")
def stock_by_category(ses: SesDep) -> Dict[str, int]:
    return inventory.get_stock_by_category(ses)


@router.get("/product/{product_id}", response_model=List[InventoryItem])
def inventory_by_product(product_id: int, ses: SesDep):
    return inventory.get_inventory_by_product(ses, product_id)


@router.get("/product/{product_id}/quantity")
def available_quantity(product_id: int, ses: SesDep) -> int:
    return inventory.get_available_quantity(ses, product_id)


@router.get("/location/{location_id}", response_model=List[InventoryItem])
def inventory_by_location(location_id: int, ses: SesDep):
    return inventory.get_inventory_by_location(ses, location_id)


@router.get("/{item_id}", response_model=InventoryItem)
def get_item(item_id: int, ses: SesDep):
    return inventory.get_item(ses, item_id)


# ----------------------------- mutations -------------------------------
@router.post("/add", response_model=InventoryItem)
def add_inventory(
    ses: SesDep,
    product_id: int = Query(...),
    quantity: int = Query(..., gt=0),
    location_id: Optional[int] = Query(None),
    batch_number: Optional[str] = Query(None, max_length=100),
    expiry_date: Optional[datetime] = Query(None),
    user_id: Optional[int] = Query(None),
    username: Optional[str] = Query(None, max_length=100),
):
    return inventory.add_inventory(
        ses, product_id, quantity, location_id, batch_number, expiry_date,
        user_id=user_id, username=username,
    )


@router.post("/remove")
def remove_inventory(
    ses: SesDep,
    product_id: int = Query(...),
    quantity: int = Query(..., gt=0),
    user_id: Optional[int] = Query(None),
    username: Optional[str] = Query(None, max_length=100),
):
    removed = inventory.remove_inventory(ses, product_id, quantity, user_id=user_id, username=username)
    if not removed:
        raise ConflictError(f"Insufficient available inventory to remove {quantity} unit(s) of product {product_id}")
    return {"removed": True, "product_id": product_id, "quantity": quantity}


@router.post("/location/{location_id}/count", response_model=List[InventoryItem])
def cycle_count(
    location_id: int,
    ses: SesDep,
    user_id: Optional[int] = Query(None),
    username: Optional[str] = Query(None, max_length=100),
):
    return inventory.cycle_count(ses, location_id, user_id=user_id, username=username)


@router.post("/{item_id}/move", response_model=InventoryItem)
def move_inventory(
    item_id: int,
    ses: SesDep,
    new_location_id: int = Query(...),
    quantity: int = Query(..., gt=0),
    user_id: Optional[int] = Query(None),
    username: Optional[str] = Query(None, max_length=100),
):
    return inventory.move_inventory(ses, item_id, new_location_id, quantity, user_id=user_id, username=username)


@router.post("/{item_id}/quarantine", response_model=InventoryItem)
def quarantine_inventory(
    item_id: int,
    ses: SesDep,
    user_id: Optional[int] = Query(None),
    username: Optional[str] = Query(None, max_length=100),
):
    return inventory.quarantine_inventory(ses, item_id, user_id=user_id, username=username)
