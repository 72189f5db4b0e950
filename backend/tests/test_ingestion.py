import pytest

from wms.core.errors import BadRequestError
from wms.models import LocationType
from wms.services import catalog, ingestion, locations
from wms.utils.file_parser import read_dataframe

PRODUCTS_CSV = (
    "SKU,Name,Weight,Width,Height,Depth,Category,Description\n"
    "ELEC001,Smartphone X12,0.18,7.5,15,0.8,Electronics,Latest smartphone\n"
    "ELEC002,Laptop Pro,not-a-number,35,23,1.5,Electronics,\n"
    "ELEC001,Duplicate Phone,0.2,7,15,1,Electronics,\n"
    "BOOK001,Modern Programming,0.8,20,25,3,Books,\n"
)


def test_import_products_reports_bad_and_duplicate_rows(session):
    result = ingestion.import_products(session, read_dataframe(PRODUCTS_CSV.encode()))

    assert result["total_rows"] == 4
    assert result["success_rows"] == 2
    assert [e["row"] for e in result["errors"]] == [2, 3]
    assert "weight" in result["errors"][0]["error"]
    assert "already exists" in result["errors"][1]["error"]

    phone = catalog.get_product_by_sku(session, "ELEC001")
    assert phone.description == "Latest smartphone"
    assert catalog.get_product_by_sku(session, "BOOK001").description is None


def test_import_products_skips_existing_skus(session, make_product):
    make_product(sku="BOOK001")

    result = ingestion.import_products(session, read_dataframe(PRODUCTS_CSV.encode()))

    assert result["success_rows"] == 1
    assert len(result["errors"]) == 3


def test_import_requires_columns(session):
    with pytest.raises(BadRequestError, match="category"):
        ingestion.import_products(session, read_dataframe(b"sku,name,weight,width,height,depth\nA1,x,1,1,1,1\n"))


def test_import_locations_normalises_type(session):
    raw = (
        "Aisle,Rack,Shelf,Bin,Location Type,Max Weight\n"
        "A1,01,01,01,bulk storage,500\n"
        "B1,01,01,01,picking,200\n"
        "B1,01,01,01,picking,200\n"
        "C1,01,01,01,freezer,100\n"
    ).encode()

    result = ingestion.import_locations(session, read_dataframe(raw))

    assert result["success_rows"] == 2
    assert [e["row"] for e in result["errors"]] == [3, 4]
    bulk = locations.get_locations_by_type(session, LocationType.BULK_STORAGE)
    assert [loc.display_code for loc in bulk] == ["A1-01-01-01"]
