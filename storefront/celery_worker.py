# storefront/celery_worker.py
from celery import Celery

from storefront.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# taski importowane jawnie, zeby celery je zarejestrowal
celery_app.conf.imports = (
    "storefront.tasks.stale_orders",
    "storefront.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "report-stale-pending-orders": {
        "task": "storefront.tasks.stale_orders.report_stale_pending_orders_task",
        "schedule": 60.0 * 60,  # co godzine
    },
}

celery_app.conf.timezone = "UTC"
