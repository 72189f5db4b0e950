"""
history.py

Inventory audit trail: append-only ``InventoryHistory`` rows and the
read-side summaries built on them.

``record_entry`` never commits; it joins the caller's transaction so the
audit row lands atomically with the inventory change it describes.
"""
from __future__ import annotations

import calendar
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd
from sqlalchemy import case
from sqlmodel import Session, func, select

from wms.core.errors import BadRequestError, NotFoundError
from wms.models import InventoryActionType, InventoryHistory, Product
from wms.models.common import utcnow


def record_entry(
    session: Session,
    *,
    product_id: int,
    action_type: InventoryActionType,
    quantity: int,
    inventory_item_id: Optional[int] = None,
    source_location_id: Optional[int] = None,
    destination_location_id: Optional[int] = None,
    user_id: Optional[int] = None,
    username: Optional[str] = None,
    batch_number: Optional[str] = None,
    notes: Optional[str] = None,
) -> InventoryHistory:
    if session.get(Product, product_id) is None:
        raise NotFoundError(f"Product not found with id: {product_id}")

    entry = InventoryHistory(
        product_id=product_id,
        inventory_item_id=inventory_item_id,
        action_type=action_type,
        quantity=quantity,
        source_location_id=source_location_id,
        destination_location_id=destination_location_id,
        user_id=user_id,
        username=username,
        batch_number=batch_number,
        notes=notes,
        timestamp=utcnow(),
    )
    session.add(entry)
    return entry


# --------------------------------------------------------------------------- #
# Queries                                                                     #
# --------------------------------------------------------------------------- #
def get_history_by_product(session: Session, product_id: int) -> List[InventoryHistory]:
    stmt = (
        select(InventoryHistory)
        .where(InventoryHistory.product_id == product_id)
        .order_by(InventoryHistory.timestamp.desc(), InventoryHistory.id.desc())
    )
    return list(session.exec(stmt).all())


def get_history_by_item(session: Session, inventory_item_id: int) -> List[InventoryHistory]:
    stmt = (
        select(InventoryHistory)
        .where(InventoryHistory.inventory_item_id == inventory_item_id)
        .order_by(InventoryHistory.timestamp, InventoryHistory.id)
    )
    return list(session.exec(stmt).all())


def get_recent_history(session: Session, product_id: int, limit: int = 10) -> List[InventoryHistory]:
    if limit < 1:
        raise BadRequestError("limit must be at least 1")
    stmt = (
        select(InventoryHistory)
        .where(InventoryHistory.product_id == product_id)
        .order_by(InventoryHistory.timestamp.desc(), InventoryHistory.id.desc())
        .limit(limit)
    )
    return list(session.exec(stmt).all())


def _range_stmt(product_id: int, start: datetime, end: datetime):
    if start > end:
        raise BadRequestError("start must not be after end")
    return select(InventoryHistory).where(
        InventoryHistory.product_id == product_id,
        InventoryHistory.timestamp >= start,
        InventoryHistory.timestamp <= end,
    )


def get_monthly_summary(
    session: Session,
    product_id: int,
    start: datetime,
    end: datetime,
) -> List[Dict[str, object]]:
    """
    Additions / removals per calendar month, newest month first.

    Only months that have at least one history row in ``[start, end]`` are
    returned. Each entry is
    ``{"month": "Jan", "year": 2025, "month_value": 1, "additions": 10, "removals": 4}``.
    """
    rows = session.exec(_range_stmt(product_id, start, end)).all()
    if not rows:
        return []

    df = pd.DataFrame(
        {
            "ts": [r.timestamp for r in rows],
            "action": [InventoryActionType(r.action_type).value for r in rows],
            "qty": [int(r.quantity) for r in rows],
        }
    )
    df["ts"] = pd.to_datetime(df["ts"])
    df["year"] = df["ts"].dt.year
    df["month_value"] = df["ts"].dt.month
    df["additions"] = df["qty"].where(df["action"] == InventoryActionType.ADDED.value, 0)
    df["removals"] = df["qty"].where(df["action"] == InventoryActionType.REMOVED.value, 0)

    monthly = (
        df.groupby(["year", "month_value"], as_index=False)[["additions", "removals"]]
        .sum()
        .sort_values(["year", "month_value"], ascending=False)
    )
    return [
        {
            "month": calendar.month_abbr[int(rec.month_value)],
            "year": int(rec.year),
            "month_value": int(rec.month_value),
            "additions": int(rec.additions),
            "removals": int(rec.removals),
        }
        for rec in monthly.itertuples(index=False)
    ]


def get_totals(session: Session, product_id: int, start: datetime, end: datetime) -> Dict[str, int]:
    """Total ADDED / REMOVED quantities for a product in ``[start, end]``."""
    if start > end:
        raise BadRequestError("start must not be after end")
    added = func.sum(
        case((InventoryHistory.action_type == InventoryActionType.ADDED, InventoryHistory.quantity), else_=0)
    )
    removed = func.sum(
        case((InventoryHistory.action_type == InventoryActionType.REMOVED, InventoryHistory.quantity), else_=0)
    )
    stmt = select(added, removed).where(
        InventoryHistory.product_id == product_id,
        InventoryHistory.timestamp >= start,
        InventoryHistory.timestamp <= end,
    )
    total_added, total_removed = session.exec(stmt).one()
    return {"added": int(total_added or 0), "removed": int(total_removed or 0)}
