import itertools

import pytest

from wms.core import config
from wms.core.errors import BadRequestError, ConflictError, NotFoundError
from wms.models import OrderCreate, OrderItemCreate, OrderStatus
from wms.services import inventory, orders

LEGAL = {
    (OrderStatus.CREATED, OrderStatus.PROCESSING),
    (OrderStatus.CREATED, OrderStatus.CANCELED),
    (OrderStatus.PROCESSING, OrderStatus.PICKING),
    (OrderStatus.PROCESSING, OrderStatus.CANCELED),
    (OrderStatus.PICKING, OrderStatus.PACKING),
    (OrderStatus.PICKING, OrderStatus.CANCELED),
    (OrderStatus.PACKING, OrderStatus.SHIPPED),
    (OrderStatus.PACKING, OrderStatus.CANCELED),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
}


@pytest.fixture()
def stocked(session, make_product, make_location):
    product = make_product(sku="ELEC001", name="Smartphone X12")
    inventory.add_inventory(session, product.id, 3, make_location().id)
    return product


def _payload(product_id, qty=1, number="ORD-1", **kw):
    return OrderCreate(
        order_number=number,
        customer_id=kw.pop("customer_id", 1001),
        shipping_address="1 Dock Road",
        priority_level=kw.pop("priority_level", 1),
        items=[OrderItemCreate(product_id=product_id, quantity=qty, price=9.5)],
    )


def _order_in(session, product, status, notifier, number="ORD-1"):
    order = orders.create_order(session, _payload(product.id, number=number), notifier)
    order.status = status
    session.add(order)
    session.commit()
    return order


# ----------------------------- creation --------------------------------
def test_create_order_snapshots_product_and_starts_created(session, stocked, notifier):
    order = orders.create_order(session, _payload(stocked.id, qty=2), notifier)

    assert order.status == OrderStatus.CREATED
    (line,) = order.items
    assert (line.product_sku, line.product_name, line.order_id) == ("ELEC001", "Smartphone X12", order.id)
    assert line.is_picked is False and line.is_packed is False
    # CREATED has no outbound route
    assert notifier.messages == []


def test_create_order_without_enough_stock_names_product(session, stocked, notifier):
    with pytest.raises(ConflictError, match=r"Not enough stock for product Smartphone X12 \(SKU: ELEC001\)"):
        orders.create_order(session, _payload(stocked.id, qty=5), notifier)
    assert orders.list_orders(session) == []


def test_create_order_ignores_quarantined_stock(session, stocked, notifier):
    (item,) = inventory.get_inventory_by_product(session, stocked.id)
    inventory.quarantine_inventory(session, item.id)

    with pytest.raises(ConflictError):
        orders.create_order(session, _payload(stocked.id, qty=1), notifier)


def test_order_number_race_on_unique_index_is_a_conflict(session, stocked, notifier, monkeypatch):
    orders.create_order(session, _payload(stocked.id), notifier)
    monkeypatch.setattr(orders, "_order_number_exists", lambda session, number: False)

    with pytest.raises(ConflictError, match="Order with number ORD-1 already exists"):
        orders.create_order(session, _payload(stocked.id), notifier)

    assert len(orders.list_orders(session)) == 1


def test_create_order_checks_combined_lines(session, stocked, notifier):
    payload = _payload(stocked.id, qty=2)
    payload.items.append(OrderItemCreate(product_id=stocked.id, quantity=2, price=9.5))

    with pytest.raises(ConflictError):
        orders.create_order(session, payload, notifier)


def test_create_order_rejects_unknown_product_and_duplicate_number(session, stocked, notifier):
    with pytest.raises(NotFoundError):
        orders.create_order(session, _payload(999), notifier)
    orders.create_order(session, _payload(stocked.id), notifier)
    with pytest.raises(ConflictError):
        orders.create_order(session, _payload(stocked.id), notifier)


# ----------------------------- transitions -----------------------------
@pytest.mark.parametrize("current,new", list(itertools.permutations(OrderStatus, 2)))
def test_transition_table(session, stocked, notifier, current, new):
    order = _order_in(session, stocked, current, notifier)

    if (current, new) in LEGAL:
        updated = orders.update_order_status(session, order.id, new, notifier)
        assert updated.status == new
        assert updated.updated_at is not None
    else:
        with pytest.raises(ConflictError, match=f"Cannot transition from {current.value} to {new.value}"):
            orders.update_order_status(session, order.id, new, notifier)
        session.refresh(order)
        assert order.status == current


def test_created_to_processing_notifies_once(session, stocked, notifier):
    order = orders.create_order(session, _payload(stocked.id), notifier)

    orders.update_order_status(session, order.id, OrderStatus.PROCESSING, notifier)

    assert notifier.messages == [
        ("wms-notifications", "warehouse-staff", f"New order {order.id} ready for processing")
    ]


def test_same_status_update_is_a_silent_noop(session, stocked, notifier):
    order = orders.create_order(session, _payload(stocked.id), notifier)

    again = orders.update_order_status(session, order.id, OrderStatus.CREATED, notifier)

    assert again.status == OrderStatus.CREATED
    assert again.updated_at is None
    assert notifier.messages == []


def test_illegal_transition_sends_nothing(session, stocked, notifier):
    order = orders.create_order(session, _payload(stocked.id), notifier)
    with pytest.raises(ConflictError):
        orders.update_order_status(session, order.id, OrderStatus.PACKING, notifier)
    assert notifier.messages == []


def test_shipped_cancel_follows_flag(session, stocked, notifier, monkeypatch):
    order = _order_in(session, stocked, OrderStatus.SHIPPED, notifier)
    with pytest.raises(ConflictError):
        orders.cancel_order(session, order.id, notifier)

    monkeypatch.setattr(config, "ALLOW_CANCEL_SHIPPED", True)
    canceled = orders.cancel_order(session, order.id, notifier)
    assert canceled.status == OrderStatus.CANCELED
    assert notifier.messages[-1] == (
        "wms-operations", "inventory-release", f"Release inventory for canceled order {order.id}"
    )


@pytest.mark.parametrize("terminal", [OrderStatus.DELIVERED, OrderStatus.CANCELED])
def test_cancel_terminal_order(session, stocked, notifier, terminal):
    order = _order_in(session, stocked, terminal, notifier)
    with pytest.raises(ConflictError, match=f"Cannot cancel order that has already been {terminal.value}"):
        orders.cancel_order(session, order.id, notifier)


def test_update_unknown_order(session, notifier):
    with pytest.raises(NotFoundError):
        orders.update_order_status(session, 404, OrderStatus.PROCESSING, notifier)


# ----------------------------- parsing / queries -----------------------
def test_parse_status():
    assert orders.parse_status("picking") == OrderStatus.PICKING
    assert orders.parse_status(" Shipped ") == OrderStatus.SHIPPED
    with pytest.raises(BadRequestError):
        orders.parse_status("LOST")


def test_order_queries(session, stocked, notifier):
    low = orders.create_order(session, _payload(stocked.id, number="A", priority_level=2), notifier)
    high = orders.create_order(session, _payload(stocked.id, number="B", priority_level=5, customer_id=7), notifier)
    orders.update_order_status(session, high.id, OrderStatus.PROCESSING, notifier)

    assert [o.id for o in orders.get_high_priority_orders(session)] == [high.id]
    assert [o.id for o in orders.get_high_priority_orders(session, 1)] == [high.id, low.id]
    assert [o.id for o in orders.get_orders_by_customer(session, 7)] == [high.id]
    assert [o.id for o in orders.get_orders_by_status(session, OrderStatus.CREATED)] == [low.id]
    assert orders.get_order_by_number(session, "B").id == high.id
    with pytest.raises(NotFoundError):
        orders.get_order_by_number(session, "nope")
