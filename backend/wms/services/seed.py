"""Demo warehouse: location grid, a small catalog, stock and open orders.

Runs on startup when ``WMS_SEED_DEMO_DATA`` is enabled and the location table
is empty. Stock goes through the inventory engine so the audit trail and the
derived fields start out consistent.
"""
from __future__ import annotations

import logging
import random
from datetime import timedelta
from typing import Dict, List

from sqlmodel import Session, func, select

from wms.core.database import transaction
from wms.models import (
    LocationType,
    OrderCreate,
    OrderItemCreate,
    Product,
    WarehouseLocation,
)
from wms.models.common import utcnow
from wms.services import inventory, orders

logger = logging.getLogger(__name__)

SEED_USERNAME = "System"

# (sku, name, description, weight, width, height, depth, category)
DEMO_PRODUCTS = [
    ("ELEC001", "Smartphone X12", "Latest smartphone with 5G capabilities", 0.18, 7.5, 15, 0.8, "Electronics"),
    ("ELEC002", "Laptop Pro", "Professional laptop with 16GB RAM", 2.1, 35, 23, 1.5, "Electronics"),
    ("ELEC003", "Wireless Headphones", "Noise-canceling Bluetooth headphones", 0.25, 18, 20, 8, "Electronics"),
    ("CLO001", "Men's T-Shirt", "100% cotton t-shirt", 0.2, 60, 80, 1, "Clothing"),
    ("CLO002", "Women's Jeans", "Slim fit denim jeans", 0.5, 40, 100, 2, "Clothing"),
    ("FOOD001", "Organic Coffee Beans", "Fair trade coffee beans, 500g", 0.5, 10, 20, 5, "Food"),
    ("FOOD002", "Chocolate Gift Box", "Assorted chocolates, 250g", 0.25, 15, 15, 3, "Food"),
    ("BOOK001", "Modern Programming", "Guide to modern programming techniques", 0.8, 20, 25, 3, "Books"),
    ("BOOK002", "Business Strategy", "Business strategy and management", 0.9, 20, 28, 3, "Books"),
    ("FURN001", "Office Chair", "Ergonomic office chair", 15, 60, 110, 60, "Furniture"),
    ("FURN002", "Coffee Table", "Wooden coffee table", 25, 90, 45, 60, "Furniture"),
    ("SPORT001", "Yoga Mat", "Anti-slip yoga mat", 1.2, 60, 180, 0.5, "Sports"),
    ("SPORT002", "Dumbbell Set", "Set of 2 dumbbells, 5kg each", 10, 40, 15, 15, "Sports"),
]


def _location_grid() -> List[WarehouseLocation]:
    locs: List[WarehouseLocation] = []

    def add(aisle: str, rack: int, shelf: int, bin_: int, loc_type: LocationType, max_weight: float) -> None:
        locs.append(
            WarehouseLocation(
                aisle=aisle,
                rack=f"{rack:02d}",
                shelf=f"{shelf:02d}",
                bin=f"{bin_:02d}",
                type=loc_type,
                max_weight=max_weight,
            )
        )

    # A: bulk storage, B: picking, C: packing, D: receiving, E: shipping
    for aisle in range(1, 4):
        for rack in range(1, 6):
            for shelf in range(1, 5):
                for bin_ in range(1, 3):
                    add(f"A{aisle}", rack, shelf, bin_, LocationType.BULK_STORAGE, 500.0)
    for aisle in range(1, 3):
        for rack in range(1, 5):
            for shelf in range(1, 4):
                add(f"B{aisle}", rack, shelf, 1, LocationType.PICKING, 200.0)
    for rack in range(1, 4):
        add("C1", rack, 1, 1, LocationType.PACKING, 100.0)
    for rack in range(1, 3):
        add("D1", rack, 1, 1, LocationType.RECEIVING, 400.0)
        add("E1", rack, 1, 1, LocationType.SHIPPING, 400.0)
    return locs


def seed_demo_data(session: Session, *, rng: random.Random | None = None) -> Dict[str, int]:
    """Populate an empty database; returns what was created (all zero when skipped)."""
    counts = {"locations": 0, "products": 0, "inventory_items": 0, "orders": 0}
    if session.exec(select(func.count()).select_from(WarehouseLocation)).one():
        logger.info("Database already contains locations, skipping demo seed")
        return counts

    rng = rng or random.Random(42)

    with transaction(session):
        locs = _location_grid()
        session.add_all(locs)
        products = [
            Product(
                sku=sku, name=name, description=desc, weight=w, width=wd, height=h, depth=d,
                category=cat, stock_quantity=0,
            )
            for sku, name, desc, w, wd, h, d, cat in DEMO_PRODUCTS
        ]
        session.add_all(products)
    counts["locations"], counts["products"] = len(locs), len(products)

    bulk = [loc.id for loc in locs if loc.type == LocationType.BULK_STORAGE]
    picking = [loc.id for loc in locs if loc.type == LocationType.PICKING]
    now = utcnow()

    for product in products:
        expiry = now + timedelta(days=180) if product.category == "Food" else None
        placements = [
            (rng.choice(bulk), rng.randint(20, 99), f"B{product.id}{rng.randint(0, 999)}"),
            (rng.choice(picking), rng.randint(5, 19), f"P{product.id}{rng.randint(0, 999)}"),
        ]
        for location_id, qty, batch in placements:
            inventory.add_inventory(
                session, product.id, qty, location_id, batch, expiry, username=SEED_USERNAME
            )
            counts["inventory_items"] += 1

        # some damaged stock on hold
        if rng.random() < 0.2:
            item = inventory.add_inventory(
                session, product.id, rng.randint(2, 7), rng.choice(bulk),
                f"Q{product.id}{rng.randint(0, 999)}", username=SEED_USERNAME,
            )
            inventory.quarantine_inventory(session, item.id, username=SEED_USERNAME)
            counts["inventory_items"] += 1

    for n in range(1, 11):
        picks = rng.sample(products, k=rng.randint(1, 4))
        payload = OrderCreate(
            order_number=f"ORD{100 + n}",
            customer_id=1000 + rng.randint(0, 99),
            shipping_address=f"123 Customer Street, City, Country, {rng.randint(10000, 99999)}",
            priority_level=rng.randint(1, 5),
            items=[
                OrderItemCreate(product_id=p.id, quantity=rng.randint(1, 5), price=round(p.weight * 10 + 15, 2))
                for p in picks
            ],
        )
        orders.create_order(session, payload)
        counts["orders"] += 1

    logger.info("Seeded demo data: %s", counts)
    return counts
