from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query

from wms.models import InventoryHistory
from wms.models.common import utcnow
from wms.routers.deps import SesDep
from wms.services import history

router = APIRouter(prefix="/api/inventory-history", tags=["inventory-history"])


def _six_months_back(now: datetime) -> datetime:
    """First day of the month six months before ``now``."""
    month_index = now.year * 12 + (now.month - 1) - 6
    return datetime(month_index // 12, month_index % 12 + 1, 1)


@router.get("/product/{product_id}", response_model=List[InventoryHistory])
def history_by_product(product_id: int, ses: SesDep):
    return history.get_history_by_product(ses, product_id)


@router.get("/item/{item_id}", response_model=List[InventoryHistory])
def history_by_item(item_id: int, ses: SesDep):
    return history.get_history_by_item(ses, item_id)


@router.get("/product/{product_id}/recent", response_model=List[InventoryHistory])
def recent_history(product_id: int, ses: SesDep, limit: int = Query(10, ge=1, le=500)):
    return history.get_recent_history(ses, product_id, limit)


@router.get("/product/{product_id}/monthly-summary")
def monthly_summary(
    product_id: int,
    ses: SesDep,
    start_date: Optional[date] = Query(None, description="Inclusive; defaults to six months back"),
    end_date: Optional[date] = Query(None, description="Inclusive; defaults to today"),
) -> List[Dict[str, Any]]:
    now = utcnow()
    start = datetime.combine(start_date, time.min) if start_date else _six_months_back(now)
    end = datetime.combine(end_date, time.max) if end_date else now
    return history.get_monthly_summary(ses, product_id, start, end)


@router.get("/product/{product_id}/totals")
def totals(
    product_id: int,
    ses: SesDep,
    start_date: Optional[date] = Query(None, description="Inclusive; defaults to six months back"),
    end_date: Optional[date] = Query(None, description="Inclusive; defaults to today"),
) -> Dict[str, int]:
    now = utcnow()
    start = datetime.combine(start_date, time.min) if start_date else _six_months_back(now)
    end = datetime.combine(end_date, time.max) if end_date else now
    return history.get_totals(ses, product_id, start, end)
