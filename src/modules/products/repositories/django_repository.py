"""Django ORM implementation of the Product repository.

Satisfies ``IProductRepository`` using Django's QuerySet API.
Error handling follows the Null Object pattern: methods return ``None``
or ``False`` instead of raising for missing rows, and the Service Layer
decides how to translate a missing entity into an API response.  Store
failures (``DatabaseError`` and subclasses) are re-raised as
``StoreError``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.db import DatabaseError, transaction

from modules.core.exceptions import StoreError
from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def create(self, entity: Product) -> Product:
        """Insert a new product; the database assigns ``entity.id``."""
        try:
            with transaction.atomic():
                entity.save(force_insert=True)
        except DatabaseError as exc:
            logger.error("product.create_failed", error=str(exc))
            raise StoreError(f"Could not create product: {exc}") from exc
        logger.info("product.inserted", product_id=entity.id)
        return entity

    def find_by_id(self, id: int) -> Optional[Product]:
        """Retrieve a product by primary key.

        Returns ``None`` for non-existent or malformed IDs.
        """
        try:
            return Product.objects.filter(pk=id).first()
        except (ValueError, TypeError):
            return None
        except DatabaseError as exc:
            raise StoreError(f"Could not load product {id}: {exc}") from exc

    def find_all(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """List products with optional Django ORM look-ups.

        Examples of valid filters::

            {"quantity": 0}
            {"name__icontains": "widget"}
        """
        queryset = Product.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        try:
            return list(queryset)
        except DatabaseError as exc:
            raise StoreError(f"Could not list products: {exc}") from exc

    def update(self, entity: Product) -> Product:
        """Persist changes to an existing product."""
        try:
            with transaction.atomic():
                entity.save(force_update=True)
        except DatabaseError as exc:
            logger.error("product.update_failed", product_id=entity.id, error=str(exc))
            raise StoreError(f"Could not update product {entity.id}: {exc}") from exc
        logger.info("product.saved", product_id=entity.id)
        return entity

    def delete(self, id: int) -> bool:
        """Delete a product by ID.

        Returns ``True`` if a row was removed, ``False`` if no product
        exists with the given ID.
        """
        try:
            with transaction.atomic():
                deleted, _ = Product.objects.filter(pk=id).delete()
        except (ValueError, TypeError):
            return False
        except DatabaseError as exc:
            raise StoreError(f"Could not delete product {id}: {exc}") from exc
        if deleted:
            logger.info("product.removed", product_id=id)
        return bool(deleted)

    def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        queryset = Product.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        try:
            return queryset.count()
        except DatabaseError as exc:
            raise StoreError(f"Could not count products: {exc}") from exc
