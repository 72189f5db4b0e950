import os

# Must be set before anything under ``wms`` is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["WMS_NOTIFIER"] = "log"
os.environ["WMS_SEED_DEMO_DATA"] = "0"

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from wms.core.database import build_engine, get_session, init_db
from wms.models import LocationType, Product, WarehouseLocation
from wms.routers.deps import get_notifier


class RecordingNotifier:
    def __init__(self):
        self.messages = []

    def notify(self, topic, key, payload):
        self.messages.append((topic, key, payload))


@pytest.fixture()
def engine():
    eng = build_engine("sqlite://")
    init_db(eng)
    yield eng
    SQLModel.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture()
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def make_product(session):
    def _make(sku="ELEC001", name="Smartphone X12", weight=1.0, category="Electronics", **kw):
        product = Product(
            sku=sku, name=name, weight=weight, width=kw.pop("width", 10.0), height=kw.pop("height", 10.0),
            depth=kw.pop("depth", 10.0), category=category, **kw,
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make


@pytest.fixture()
def make_location(session):
    counter = {"n": 0}

    def _make(loc_type=LocationType.BULK_STORAGE, max_weight=500.0, aisle="A1", **kw):
        counter["n"] += 1
        location = WarehouseLocation(
            aisle=aisle,
            rack=kw.pop("rack", f"{counter['n']:02d}"),
            shelf=kw.pop("shelf", "01"),
            bin=kw.pop("bin", "01"),
            type=loc_type,
            max_weight=max_weight,
            **kw,
        )
        session.add(location)
        session.commit()
        session.refresh(location)
        return location

    return _make


@pytest.fixture()
def client(engine, notifier):
    from wms.main import app

    def _session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
