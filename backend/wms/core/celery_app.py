"""
Central Celery application object for the warehouse-management backend.

Usage
-----
* **Worker**: ``celery -A wms.core.celery_app worker -Q notifications,default --loglevel=info``

The broker/result backend URLs can be overridden via environment variables:

    CELERY_BROKER_URL   (default: redis://localhost:6379/0)
    CELERY_RESULT_BACKEND (default: same as broker)

The API process only ever *sends* tasks (fire-and-forget order status
notifications); it never waits on results.
"""

from __future__ import annotations

from datetime import timedelta

from celery import Celery
from kombu import Exchange, Queue

from wms.core.config import BROKER_URL, RESULT_BACKEND, TIMEZONE

NOTIFICATION_QUEUE = "notifications"

# --------------------------------------------------------------------------- #
# Celery application                                                          #
# --------------------------------------------------------------------------- #

celery_app = Celery(
    "wms",
    broker=BROKER_URL,
    backend=RESULT_BACKEND,
    include=[
        "wms.services.notification_tasks",
    ],
)

# --------------------------------------------------------------------------- #
# Default settings                                                            #
# --------------------------------------------------------------------------- #

celery_app.conf.update(
    # Serialisation
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    # Reliability
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    # Publishing from the API must stay bounded when the broker is down
    broker_connection_timeout=2,
    broker_connection_retry_on_startup=False,
    # Time
    timezone=TIMEZONE,
    enable_utc=True,
    # Queues / routing
    task_default_queue="default",
    task_default_exchange="default",
    task_default_routing_key="default",
    task_queues=(
        Queue("default", Exchange("default"), routing_key="default"),
        Queue(NOTIFICATION_QUEUE, Exchange(NOTIFICATION_QUEUE), routing_key=NOTIFICATION_QUEUE),
    ),
    task_routes={
        "notifications.*": {"queue": NOTIFICATION_QUEUE, "routing_key": NOTIFICATION_QUEUE},
    },
    # Notifications are not queried for results
    task_ignore_result=True,
    result_expires=timedelta(days=1),
)


def init_celery() -> None:
    """
    Import all celery tasks so they are registered in the API process too.
    """
    from importlib import import_module

    for module in celery_app.conf.include:
        import_module(module)
