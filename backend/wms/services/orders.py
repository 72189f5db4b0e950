"""
orders.py

Order rule engine: creation with a stock check, the status state machine and
cancellation.

Status-change notifications are dispatched only after the transaction that
changed the status has committed.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, FrozenSet, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from wms.core import config
from wms.core.database import transaction
from wms.core.errors import BadRequestError, ConflictError, NotFoundError
from wms.models import Order, OrderCreate, OrderItem, OrderStatus
from wms.models.common import utcnow
from wms.services import catalog, inventory
from wms.services.notifications import (
    LoggingNotifier,
    Notifier,
    OrderStatusChanged,
    dispatch_status_change,
)

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------- #
# State machine                                                               #
# --------------------------------------------------------------------------- #
ALLOWED_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.CREATED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.PICKING, OrderStatus.CANCELED}),
    OrderStatus.PICKING: frozenset({OrderStatus.PACKING, OrderStatus.CANCELED}),
    OrderStatus.PACKING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELED: frozenset(),
}

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELED})


def allowed_transitions(allow_cancel_shipped: Optional[bool] = None) -> Dict[OrderStatus, FrozenSet[OrderStatus]]:
    if allow_cancel_shipped is None:
        allow_cancel_shipped = config.ALLOW_CANCEL_SHIPPED
    table = dict(ALLOWED_TRANSITIONS)
    if allow_cancel_shipped:
        table[OrderStatus.SHIPPED] = table[OrderStatus.SHIPPED] | {OrderStatus.CANCELED}
    return table


def is_valid_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return new in allowed_transitions()[current]


def validate_status_transition(current: OrderStatus, new: OrderStatus) -> None:
    if not is_valid_transition(current, new):
        raise ConflictError(f"Cannot transition from {current.value} to {new.value}")


def parse_status(value) -> OrderStatus:
    """Case-insensitive ``OrderStatus`` lookup."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().upper())
    except ValueError:
        valid = ", ".join(s.value for s in OrderStatus)
        raise BadRequestError(f"Invalid order status: {value!r} (expected one of {valid})") from None


# --------------------------------------------------------------------------- #
# Reads                                                                       #
# --------------------------------------------------------------------------- #
def get_order(session: Session, order_id: int) -> Order:
    order = session.get(Order, order_id)
    if order is None:
        raise NotFoundError(f"Order not found with id: {order_id}")
    return order


def get_order_by_number(session: Session, order_number: str) -> Order:
    order = session.exec(select(Order).where(Order.order_number == order_number)).first()
    if order is None:
        raise NotFoundError(f"Order not found with number: {order_number}")
    return order


def list_orders(session: Session) -> List[Order]:
    return list(session.exec(select(Order).order_by(Order.id)).all())


def get_orders_by_customer(session: Session, customer_id: int) -> List[Order]:
    stmt = select(Order).where(Order.customer_id == customer_id).order_by(Order.id)
    return list(session.exec(stmt).all())


def get_orders_by_status(session: Session, status: OrderStatus) -> List[Order]:
    stmt = select(Order).where(Order.status == parse_status(status)).order_by(Order.id)
    return list(session.exec(stmt).all())


def get_high_priority_orders(session: Session, min_priority: int = 5) -> List[Order]:
    stmt = (
        select(Order)
        .where(Order.priority_level >= min_priority)
        .order_by(Order.priority_level.desc(), Order.id)
    )
    return list(session.exec(stmt).all())


# --------------------------------------------------------------------------- #
# Mutations                                                                   #
# --------------------------------------------------------------------------- #
def _dispatch(order: Order, old: Optional[OrderStatus], notifier: Optional[Notifier]) -> None:
    dispatch_status_change(
        OrderStatusChanged(order_id=order.id, old_status=old, new_status=order.status),
        notifier or LoggingNotifier(),
    )


def _order_number_exists(session: Session, order_number: str) -> bool:
    return session.exec(select(Order.id).where(Order.order_number == order_number)).first() is not None


def create_order(session: Session, payload: OrderCreate, notifier: Optional[Notifier] = None) -> Order:
    """
    Create an order in CREATED status.

    Every line must be covered by available (non-quarantined) stock; lines for
    the same product are checked against their combined quantity. SKU and
    name are snapshotted from the catalog.
    """
    duplicate = f"Order with number {payload.order_number} already exists"
    if _order_number_exists(session, payload.order_number):
        raise ConflictError(duplicate)

    requested: Dict[int, int] = defaultdict(int)
    for line in payload.items:
        requested[line.product_id] += line.quantity

    try:
        with transaction(session):
            products = {}
            for product_id, qty in requested.items():
                product = catalog.get_product(session, product_id)
                if inventory.get_available_quantity(session, product_id) < qty:
                    raise ConflictError(f"Not enough stock for product {product.name} (SKU: {product.sku})")
                products[product_id] = product

            order = Order(
                **payload.model_dump(exclude={"items"}),
                status=OrderStatus.CREATED,
                created_at=utcnow(),
            )
            for line in payload.items:
                product = products[line.product_id]
                order.items.append(
                    OrderItem(
                        product_id=product.id,
                        product_sku=product.sku,
                        product_name=product.name,
                        quantity=line.quantity,
                        price=line.price,
                    )
                )
            session.add(order)
    except IntegrityError:
        # lost a race with a concurrent insert of the same order number
        raise ConflictError(duplicate) from None

    session.refresh(order)
    logger.info("Created order %s (id=%s, %s line(s))", order.order_number, order.id, len(order.items))
    _dispatch(order, None, notifier)
    return order


def update_order_status(
    session: Session,
    order_id: int,
    new_status: OrderStatus,
    notifier: Optional[Notifier] = None,
) -> Order:
    new_status = parse_status(new_status)

    with transaction(session):
        stmt = (
            select(Order)
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        order = session.exec(stmt).first()
        if order is None:
            raise NotFoundError(f"Order not found with id: {order_id}")

        old_status = order.status
        if old_status == new_status:
            return order

        validate_status_transition(old_status, new_status)
        order.status = new_status
        order.updated_at = utcnow()
        session.add(order)

    session.refresh(order)
    _dispatch(order, old_status, notifier)
    return order


def cancel_order(session: Session, order_id: int, notifier: Optional[Notifier] = None) -> Order:
    order = get_order(session, order_id)
    if order.status in TERMINAL_STATUSES:
        raise ConflictError(f"Cannot cancel order that has already been {order.status.value}")
    return update_order_status(session, order_id, OrderStatus.CANCELED, notifier)
