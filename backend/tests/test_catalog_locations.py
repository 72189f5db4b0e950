import pytest
from pydantic import ValidationError
from sqlalchemy import DateTime

from wms.core.errors import ConflictError, NotFoundError
from wms.models import (
    InventoryHistory,
    InventoryItem,
    LocationCreate,
    LocationType,
    Order,
    Product,
    ProductCreate,
    ProductUpdate,
)
from wms.services import catalog, inventory, locations


def _product_payload(sku="SPORT001", **kw):
    data = dict(sku=sku, name="Yoga Mat", weight=1.2, width=60, height=180, depth=0.5, category="Sports")
    data.update(kw)
    return ProductCreate(**data)


def test_create_and_lookup_product(session):
    product = catalog.create_product(session, _product_payload())

    assert product.stock_quantity == 0
    assert catalog.get_product_by_sku(session, "SPORT001").id == product.id
    assert [p.id for p in catalog.get_products_by_category(session, "Sports")] == [product.id]
    with pytest.raises(ConflictError):
        catalog.create_product(session, _product_payload())
    with pytest.raises(NotFoundError, match="Product not found with id: 77"):
        catalog.get_product(session, 77)


def test_update_leaves_sku_and_stock_alone(session, make_location):
    product = catalog.create_product(session, _product_payload())
    inventory.add_inventory(session, product.id, 4, make_location().id)

    updated = catalog.update_product(
        session,
        product.id,
        ProductUpdate(name="Pro Yoga Mat", weight=1.4, width=61, height=183, depth=0.6, category="Fitness"),
    )

    assert (updated.sku, updated.stock_quantity) == ("SPORT001", 4)
    assert updated.name == "Pro Yoga Mat" and updated.category == "Fitness"
    assert updated.updated_at is not None


def test_delete_refused_while_inventory_exists(session, make_location):
    product = catalog.create_product(session, _product_payload())
    inventory.add_inventory(session, product.id, 2, make_location().id)

    with pytest.raises(ConflictError):
        catalog.delete_product(session, product.id)

    assert inventory.remove_inventory(session, product.id, 2)
    catalog.delete_product(session, product.id)
    with pytest.raises(NotFoundError):
        catalog.get_product(session, product.id)


def test_low_stock_and_live_stock(session, make_location):
    low = catalog.create_product(session, _product_payload("LOW01"))
    high = catalog.create_product(session, _product_payload("HIGH01"))
    loc = make_location()
    inventory.add_inventory(session, low.id, 3, loc.id)
    inventory.add_inventory(session, high.id, 25, loc.id)

    assert [p.sku for p in catalog.get_low_stock_products(session)] == ["LOW01"]
    live = {row["sku"]: row["stock_quantity"] for row in catalog.get_products_with_stock(session)}
    assert live == {"LOW01": 3, "HIGH01": 25}


def test_location_create_sets_display_code_and_rejects_duplicates(session):
    payload = LocationCreate(aisle="a1", rack="02", shelf="03", bin="01", type=LocationType.PICKING, max_weight=200)
    location = locations.create_location(session, payload)

    assert location.display_code == "A1-02-03-01"
    assert location.is_occupied is False and location.current_weight == 0
    with pytest.raises(ConflictError):
        locations.create_location(session, payload)


def test_location_availability_queries(session, make_product, make_location):
    heavy = make_product(sku="FURN002", weight=25.0)
    nearly_full = make_location(loc_type=LocationType.BULK_STORAGE, max_weight=100.0)
    empty_bulk = make_location(loc_type=LocationType.BULK_STORAGE, max_weight=100.0)
    picking = make_location(loc_type=LocationType.PICKING, max_weight=100.0)
    inventory.add_inventory(session, heavy.id, 4, nearly_full.id)  # 100 / 100

    assert {loc.id for loc in locations.get_locations_with_space(session)} == {empty_bulk.id, picking.id}
    assert [loc.id for loc in locations.get_available_locations_by_type(session, LocationType.BULK_STORAGE)] == [
        empty_bulk.id
    ]
    assert [loc.id for loc in locations.get_locations_by_type(session, LocationType.PICKING)] == [picking.id]
    with pytest.raises(NotFoundError, match="Location not found with id: 500"):
        locations.get_location(session, 500)


def test_sku_is_stripped_before_length_check():
    assert _product_payload(" SPORT002 ").sku == "SPORT002"
    with pytest.raises(ValidationError):
        _product_payload(" AB ")


def test_sku_race_on_unique_index_is_a_conflict(session, monkeypatch):
    catalog.create_product(session, _product_payload())
    monkeypatch.setattr(catalog, "_sku_exists", lambda session, sku: False)

    with pytest.raises(ConflictError, match="Product with SKU SPORT001 already exists"):
        catalog.create_product(session, _product_payload())

    assert len(catalog.list_products(session)) == 1


def test_location_race_on_unique_address_is_a_conflict(session, monkeypatch):
    payload = LocationCreate(aisle="B2", rack="01", shelf="01", bin="01", type=LocationType.PICKING, max_weight=50)
    locations.create_location(session, payload)
    monkeypatch.setattr(locations, "find_by_address", lambda *args: None)

    with pytest.raises(ConflictError, match="Location B2-01-01-01 already exists"):
        locations.create_location(session, payload)


@pytest.mark.parametrize(
    "column",
    [
        Product.__table__.c.created_at,
        Product.__table__.c.updated_at,
        InventoryItem.__table__.c.expiry_date,
        InventoryItem.__table__.c.last_counted_at,
        InventoryItem.__table__.c.created_at,
        InventoryHistory.__table__.c.timestamp,
        Order.__table__.c.created_at,
        Order.__table__.c.updated_at,
    ],
    ids=str,
)
def test_datetime_columns_store_naive_utc(column):
    assert type(column.type) is DateTime
    assert column.type.timezone is False
