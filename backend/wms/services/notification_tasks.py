"""
Celery worker side of order notifications.

``notifications.publish`` keeps a short, capped buffer of recent messages per
topic in Redis (``wms:notifications:<topic>``) for downstream consumers and
dashboards to poll.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from celery import shared_task

from wms.core.config import BROKER_URL, NOTIFICATION_BUFFER, NOTIFICATION_TTL

logger = logging.getLogger(__name__)

KEY_PREFIX = "wms:notifications:"

_redis_client = None


def _get_redis():
    """Lazy-load Redis client."""
    global _redis_client
    if _redis_client is None:
        try:
            import redis

            _redis_client = redis.from_url(BROKER_URL, decode_responses=True)
        except Exception as e:
            logger.warning(f"Failed to connect to Redis: {e}")
            return None
    return _redis_client


def buffer_key(topic: str) -> str:
    return f"{KEY_PREFIX}{topic}"


@shared_task(name="notifications.publish")
def publish_notification(topic: str, key: str, payload: str) -> Dict[str, Any]:
    record = {
        "topic": topic,
        "key": key,
        "payload": payload,
        "published_at": datetime.now(timezone.utc).isoformat(),
    }
    logger.info("notification topic=%s key=%s payload=%s", topic, key, payload)

    r = _get_redis()
    if r is None:
        return {"stored": False, **record}
    try:
        name = buffer_key(topic)
        pipe = r.pipeline()
        pipe.rpush(name, json.dumps(record, ensure_ascii=False))
        pipe.ltrim(name, -NOTIFICATION_BUFFER, -1)
        pipe.expire(name, NOTIFICATION_TTL)
        pipe.execute()
    except Exception as e:
        logger.warning(f"Failed to store notification in Redis: {e}")
        return {"stored": False, **record}
    return {"stored": True, **record}


def get_recent_notifications(topic: str, limit: int = 20) -> List[Dict[str, Any]]:
    """Most recent buffered notifications for ``topic``, newest last."""
    r = _get_redis()
    if r is None or limit < 1:
        return []
    try:
        raw = r.lrange(buffer_key(topic), -limit, -1)
    except Exception as e:
        logger.warning(f"Failed to read notifications from Redis: {e}")
        return []
    return [json.loads(item) for item in raw]
