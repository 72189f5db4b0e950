"""Read-back of the notification buffer the worker keeps in Redis."""
from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Query

from wms.services import notification_tasks

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("/{topic}")
def recent_notifications(topic: str, limit: int = Query(20, ge=1, le=500)) -> List[Dict[str, Any]]:
    """Newest last; empty when Redis is unreachable."""
    return notification_tasks.get_recent_notifications(topic, limit)
