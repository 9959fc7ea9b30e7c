# storefront/tasks/stale_orders.py
from datetime import datetime, timezone, timedelta

from sqlalchemy.orm import Session

from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.repos.order_repo import OrderRepo
from storefront.utils.settings import load_settings
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def report_stale_pending_orders(db: Session, max_age_hours: int, now: datetime | None = None) -> list[int]:
    """
    Tylko raport dla operatora, zamowienia pending_payment nie sa anulowane automatycznie.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(hours=max_age_hours)

    stale = OrderRepo(db).list_pending_older_than(cutoff)
    ids = [o.id for o in stale]

    if ids:
        logger.warning(f"{len(ids)} orders pending payment for more than {max_age_hours}h: {ids}")
    else:
        logger.info("No stale pending_payment orders")

    return ids


@celery_app.task(name="storefront.tasks.stale_orders.report_stale_pending_orders_task")
def report_stale_pending_orders_task():
    logger.info("Stale pending orders report started")

    settings = load_settings()
    db = SessionLocal()
    try:
        return report_stale_pending_orders(db, settings.stale_order_hours)
    finally:
        db.close()
