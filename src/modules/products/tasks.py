"""Asynchronous tasks of the products module."""

import structlog
from celery import shared_task

from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import ProductService

logger = structlog.get_logger(__name__)


@shared_task(name="products.stock_report")
def stock_report():
    """Log catalogue totals; scheduled by Celery beat or the in-process trigger."""
    summary = ProductService(repository=ProductDjangoRepository()).stock_summary()
    logger.info("stock_report.generated", **summary)
    return summary
