from datetime import datetime

import pytest

from wms.core.errors import BadRequestError, NotFoundError
from wms.models import InventoryActionType, InventoryHistory
from wms.services import history, inventory


def _entry(session, product_id, action, qty, ts):
    session.add(
        InventoryHistory(product_id=product_id, action_type=action, quantity=qty, timestamp=ts)
    )


def test_record_entry_requires_existing_product(session):
    with pytest.raises(NotFoundError, match="Product not found with id: 42"):
        history.record_entry(session, product_id=42, action_type=InventoryActionType.ADDED, quantity=1)


def test_record_entry_joins_caller_transaction(session, make_product):
    product = make_product()
    history.record_entry(session, product_id=product.id, action_type=InventoryActionType.COUNTED, quantity=3)
    session.rollback()

    assert history.get_history_by_product(session, product.id) == []


def test_history_ordering_and_recent_limit(session, make_product, make_location):
    product = make_product()
    loc = make_location()
    item = inventory.add_inventory(session, product.id, 10, loc.id)
    inventory.quarantine_inventory(session, item.id)
    inventory.cycle_count(session, loc.id)

    newest_first = history.get_history_by_product(session, product.id)
    assert [h.action_type for h in newest_first] == [
        InventoryActionType.COUNTED,
        InventoryActionType.QUARANTINED,
        InventoryActionType.ADDED,
    ]
    assert [h.action_type for h in history.get_history_by_item(session, item.id)][0] == InventoryActionType.ADDED
    assert len(history.get_recent_history(session, product.id, limit=2)) == 2
    with pytest.raises(BadRequestError):
        history.get_recent_history(session, product.id, limit=0)


def test_monthly_summary_groups_by_month_newest_first(session, make_product):
    product = make_product()
    _entry(session, product.id, InventoryActionType.ADDED, 10, datetime(2025, 1, 5))
    _entry(session, product.id, InventoryActionType.ADDED, 5, datetime(2025, 1, 20))
    _entry(session, product.id, InventoryActionType.REMOVED, 4, datetime(2025, 1, 25))
    _entry(session, product.id, InventoryActionType.MOVED, 99, datetime(2025, 1, 26))
    _entry(session, product.id, InventoryActionType.REMOVED, 7, datetime(2025, 3, 2))
    _entry(session, product.id, InventoryActionType.ADDED, 1, datetime(2024, 6, 1))  # outside range
    session.commit()

    summary = history.get_monthly_summary(session, product.id, datetime(2025, 1, 1), datetime(2025, 3, 31))

    assert summary == [
        {"month": "Mar", "year": 2025, "month_value": 3, "additions": 0, "removals": 7},
        {"month": "Jan", "year": 2025, "month_value": 1, "additions": 15, "removals": 4},
    ]


def test_monthly_summary_empty_range_and_bad_bounds(session, make_product):
    product = make_product()
    assert history.get_monthly_summary(session, product.id, datetime(2025, 1, 1), datetime(2025, 2, 1)) == []
    with pytest.raises(BadRequestError):
        history.get_monthly_summary(session, product.id, datetime(2025, 2, 1), datetime(2025, 1, 1))


def test_totals(session, make_product):
    product = make_product()
    _entry(session, product.id, InventoryActionType.ADDED, 10, datetime(2025, 2, 1))
    _entry(session, product.id, InventoryActionType.REMOVED, 3, datetime(2025, 2, 2))
    _entry(session, product.id, InventoryActionType.QUARANTINED, 10, datetime(2025, 2, 3))
    session.commit()

    totals = history.get_totals(session, product.id, datetime(2025, 1, 1), datetime(2025, 12, 31))

    assert totals == {"added": 10, "removed": 3}
