import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def rebuild_all_stock_levels():
    # import lazily to avoid circular imports at module import time
    from .models import StockItem
    from .services.stock import rebuild_stock

    drifted = 0
    for item_id in StockItem.objects.order_by("pk").values_list("pk", flat=True):
        result = rebuild_stock(item_id)
        if result.drift:
            drifted += 1

    logger.info("Stock levels rebuilt", extra={"drifted_items": drifted})
    return drifted


@shared_task
def mark_overdue_invoices(today=None):
    from datetime import date

    from .services.sales import mark_overdue_invoices as mark_overdue

    # celery serializes dates as ISO strings
    if isinstance(today, str):
        today = date.fromisoformat(today)
    return mark_overdue(today)
