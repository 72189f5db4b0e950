"""
notifications.py

Order status-change notifications.

The order engine hands an ``OrderStatusChanged`` event to
``dispatch_status_change`` *after* its transaction has committed. Delivery is
best-effort: a failing notifier is logged and ignored, so broker outages never
roll back or fail an order update.

Two notifiers are provided:

* ``LoggingNotifier`` – writes the message to the log (default, tests, dev)
* ``CeleryNotifier``  – enqueues ``notifications.publish`` on the
  ``notifications`` queue for the worker to fan out
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Protocol, Tuple

from wms.models import OrderStatus

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, topic: str, key: str, payload: str) -> None: ...


class LoggingNotifier:
    def notify(self, topic: str, key: str, payload: str) -> None:
        logger.info("[notify] topic=%s key=%s payload=%s", topic, key, payload)


class CeleryNotifier:
    """Fire-and-forget publish through Celery; never raises."""

    task_name = "notifications.publish"

    def __init__(self, app=None):
        if app is None:
            from wms.core.celery_app import celery_app as app
        self.app = app

    def notify(self, topic: str, key: str, payload: str) -> None:
        from wms.core.celery_app import NOTIFICATION_QUEUE

        try:
            self.app.send_task(
                self.task_name,
                args=[topic, key, payload],
                queue=NOTIFICATION_QUEUE,
                retry=False,
            )
        except Exception as exc:
            logger.warning("Failed to enqueue notification topic=%s key=%s: %s", topic, key, exc)


@dataclass(frozen=True)
class OrderStatusChanged:
    order_id: int
    old_status: Optional[OrderStatus]
    new_status: OrderStatus


# new status -> (topic, key, message template)
STATUS_ROUTES: Dict[OrderStatus, Tuple[str, str, str]] = {
    OrderStatus.PROCESSING: ("wms-notifications", "warehouse-staff", "New order {order_id} ready for processing"),
    OrderStatus.PICKING: ("wms-operations", "inventory-allocation", "Allocate inventory for order {order_id}"),
    OrderStatus.PACKING: ("wms-operations", "packing-station", "Order {order_id} ready for packing"),
    OrderStatus.SHIPPED: ("wms-external", "customer-notifications", "Order {order_id} has been shipped"),
    OrderStatus.DELIVERED: ("wms-analytics", "completed-orders", "Order {order_id} completed successfully"),
    OrderStatus.CANCELED: ("wms-operations", "inventory-release", "Release inventory for canceled order {order_id}"),
}


def route_for(status: OrderStatus) -> Optional[Tuple[str, str, str]]:
    return STATUS_ROUTES.get(status)


def dispatch_status_change(event: OrderStatusChanged, notifier: Notifier) -> bool:
    """
    Log the change and publish the routed message.

    Returns ``True`` when a message was handed to the notifier without error.
    """
    old = event.old_status.value if event.old_status else None
    logger.info("Order %s status changed from %s to %s", event.order_id, old, event.new_status.value)

    route = route_for(event.new_status)
    if route is None:
        return False

    topic, key, template = route
    try:
        notifier.notify(topic, key, template.format(order_id=event.order_id))
    except Exception as exc:
        logger.warning("Notification for order %s failed: %s", event.order_id, exc)
        return False
    return True
