from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query, status

from wms.models import OrderCreate, OrderRead, OrderStatusUpdate
from wms.routers.deps import NotifierDep, SesDep
from wms.services import orders

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("", response_model=List[OrderRead])
def list_orders(ses: SesDep, status: Optional[str] = Query(None)):
    if status:
        return orders.get_orders_by_status(ses, orders.parse_status(status))
    return orders.list_orders(ses)


@router.get("/priority", response_model=List[OrderRead])
def high_priority_orders(ses: SesDep, min_priority: int = Query(5, ge=1, le=5)):
    return orders.get_high_priority_orders(ses, min_priority)


@router.get("/number/{order_number}", response_model=OrderRead)
def get_order_by_number(order_number: str, ses: SesDep):
    return orders.get_order_by_number(ses, order_number)


@router.get("/customer/{customer_id}", response_model=List[OrderRead])
def orders_by_customer(customer_id: int, ses: SesDep):
    return orders.get_orders_by_customer(ses, customer_id)


@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: int, ses: SesDep):
    return orders.get_order(ses, order_id)


@router.post("", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
def create_order(payload: OrderCreate, ses: SesDep, notifier: NotifierDep):
    return orders.create_order(ses, payload, notifier)


@router.patch("/{order_id}/status", response_model=OrderRead)
def update_order_status(order_id: int, body: OrderStatusUpdate, ses: SesDep, notifier: NotifierDep):
    return orders.update_order_status(ses, order_id, orders.parse_status(body.status), notifier)


@router.post("/{order_id}/cancel", response_model=OrderRead)
def cancel_order(order_id: int, ses: SesDep, notifier: NotifierDep):
    return orders.cancel_order(ses, order_id, notifier)
