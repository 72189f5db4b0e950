import random

from sqlmodel import select

from wms.models import InventoryItem, Order, OrderStatus, Product
from wms.services import inventory
from wms.services.seed import DEMO_PRODUCTS, seed_demo_data


def test_seed_populates_once(session):
    counts = seed_demo_data(session, rng=random.Random(7))

    assert counts["locations"] == 151
    assert counts["products"] == len(DEMO_PRODUCTS)
    assert counts["orders"] == 10
    assert len(session.exec(select(InventoryItem)).all()) == counts["inventory_items"]
    assert {o.status for o in session.exec(select(Order)).all()} == {OrderStatus.CREATED}

    for product in session.exec(select(Product)).all():
        assert product.stock_quantity == inventory.get_available_quantity(session, product.id)

    assert seed_demo_data(session) == {"locations": 0, "products": 0, "inventory_items": 0, "orders": 0}
