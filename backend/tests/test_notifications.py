import json

import pytest

from wms.models import OrderStatus
from wms.services import notification_tasks
from wms.services.notifications import (
    STATUS_ROUTES,
    CeleryNotifier,
    LoggingNotifier,
    OrderStatusChanged,
    dispatch_status_change,
)


class ExplodingNotifier:
    def notify(self, topic, key, payload):
        raise ConnectionError("broker down")


class FakeCelery:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def send_task(self, name, args=None, **options):
        if self.fail:
            raise OSError("connection refused")
        self.sent.append((name, args, options))


class FakePipeline:
    def __init__(self, store):
        self.store = store
        self.ops = []

    def rpush(self, name, value):
        self.ops.append(("rpush", name, value))

    def ltrim(self, name, start, end):
        self.ops.append(("ltrim", name, start, end))

    def expire(self, name, ttl):
        self.ops.append(("expire", name, ttl))

    def execute(self):
        for op in self.ops:
            if op[0] == "rpush":
                self.store.setdefault(op[1], []).append(op[2])
            elif op[0] == "ltrim":
                self.store[op[1]] = self.store[op[1]][op[2]:]


class FakeRedis:
    def __init__(self):
        self.store = {}

    def pipeline(self):
        return FakePipeline(self.store)

    def lrange(self, name, start, end):
        return self.store.get(name, [])[start:]


@pytest.mark.parametrize(
    "status,topic,key,message",
    [
        (OrderStatus.PROCESSING, "wms-notifications", "warehouse-staff", "New order 12 ready for processing"),
        (OrderStatus.PICKING, "wms-operations", "inventory-allocation", "Allocate inventory for order 12"),
        (OrderStatus.PACKING, "wms-operations", "packing-station", "Order 12 ready for packing"),
        (OrderStatus.SHIPPED, "wms-external", "customer-notifications", "Order 12 has been shipped"),
        (OrderStatus.DELIVERED, "wms-analytics", "completed-orders", "Order 12 completed successfully"),
        (OrderStatus.CANCELED, "wms-operations", "inventory-release", "Release inventory for canceled order 12"),
    ],
)
def test_routes(notifier, status, topic, key, message):
    sent = dispatch_status_change(OrderStatusChanged(12, OrderStatus.CREATED, status), notifier)

    assert sent is True
    assert notifier.messages == [(topic, key, message)]


def test_created_is_not_routed(notifier):
    assert OrderStatus.CREATED not in STATUS_ROUTES
    assert dispatch_status_change(OrderStatusChanged(1, None, OrderStatus.CREATED), notifier) is False
    assert notifier.messages == []


def test_notifier_failure_is_swallowed(caplog):
    event = OrderStatusChanged(3, OrderStatus.PACKING, OrderStatus.SHIPPED)

    assert dispatch_status_change(event, ExplodingNotifier()) is False
    assert "Notification for order 3 failed" in caplog.text


def test_logging_notifier_logs(caplog):
    caplog.set_level("INFO")
    LoggingNotifier().notify("wms-operations", "packing-station", "Order 1 ready for packing")
    assert "packing-station" in caplog.text


def test_celery_notifier_publishes_without_retry():
    app = FakeCelery()
    CeleryNotifier(app).notify("wms-external", "customer-notifications", "Order 9 has been shipped")

    ((name, args, options),) = app.sent
    assert name == "notifications.publish"
    assert args == ["wms-external", "customer-notifications", "Order 9 has been shipped"]
    assert options == {"queue": "notifications", "retry": False}


def test_celery_notifier_swallows_broker_errors(caplog):
    CeleryNotifier(FakeCelery(fail=True)).notify("t", "k", "p")
    assert "Failed to enqueue notification" in caplog.text


def test_publish_task_buffers_in_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(notification_tasks, "_get_redis", lambda: fake)
    monkeypatch.setattr(notification_tasks, "NOTIFICATION_BUFFER", 2)

    for n in range(3):
        result = notification_tasks.publish_notification("wms-operations", "packing-station", f"Order {n}")
        assert result["stored"] is True

    stored = [json.loads(x) for x in fake.store["wms:notifications:wms-operations"]]
    assert [s["payload"] for s in stored] == ["Order 1", "Order 2"]
    recent = notification_tasks.get_recent_notifications("wms-operations", limit=5)
    assert recent[-1]["key"] == "packing-station"


def test_publish_task_without_redis(monkeypatch):
    monkeypatch.setattr(notification_tasks, "_get_redis", lambda: None)

    result = notification_tasks.publish_notification("wms-analytics", "completed-orders", "Order 5 completed")

    assert result["stored"] is False
    assert notification_tasks.get_recent_notifications("wms-analytics") == []
