"""Product service layer (Use Cases).

Orchestrates the Product use-cases, delegating persistence to the
injected ``IProductRepository``.

Rules enforced here:
- Input shape and values are validated by the DTOs before reaching
  the service (non-empty name, non-negative price and quantity).
- A missing id raises ``InvalidProductIdError`` on read, update and
  delete.
- Store failures propagate as ``StoreError`` and are not retried.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

import structlog
from django.db import transaction

from modules.products.exceptions import InvalidProductIdError
from modules.products.models import Product

if TYPE_CHECKING:
    from modules.products.dtos import (
        CreateProductDTO,
        PartialUpdateProductDTO,
        UpdateProductDTO,
    )
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductService:
    """Application service for Product use-cases.

    Receives an ``IProductRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_product(self, dto: CreateProductDTO) -> Product:
        """Store a new product and return it with its assigned id."""
        product = Product(name=dto.name, price=dto.price, quantity=dto.quantity)
        product = self._repo.create(product)
        logger.info("product.created", product_id=product.id)
        return product

    @transaction.atomic
    def update_product(
        self, id: int, dto: Union[UpdateProductDTO, PartialUpdateProductDTO]
    ) -> Product:
        """Overwrite the mutable fields carried by ``dto``.

        Raises:
            InvalidProductIdError: if the product does not exist.
        """
        product = self._require(id)

        changes = dto.changes()
        for field, value in changes.items():
            setattr(product, field, value)

        product = self._repo.update(product)
        logger.info("product.updated", product_id=product.id, fields=sorted(changes))
        return product

    @transaction.atomic
    def delete_product(self, id: int) -> bool:
        """Remove a product.

        Raises:
            InvalidProductIdError: if the product does not exist.
        """
        self._require(id)
        if not self._repo.delete(id):
            raise InvalidProductIdError.for_id(id)
        logger.info("product.deleted", product_id=id)
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_products(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """Return products in store order, optionally filtered."""
        return self._repo.find_all(filters)

    def get_product(self, id: int) -> Product:
        """Retrieve a single product by ID.

        Raises:
            InvalidProductIdError: if the product does not exist.
        """
        product = self._require(id)
        logger.info("product.retrieved", product_id=id)
        return product

    def stock_summary(self) -> Dict[str, int]:
        """Totals used by the periodic stock report."""
        return {
            "total": self._repo.count(),
            "out_of_stock": self._repo.count({"quantity": 0}),
        }

    def _require(self, id: int) -> Product:
        product = self._repo.find_by_id(id)
        if product is None:
            logger.warning("product.not_found", product_id=id)
            raise InvalidProductIdError.for_id(id)
        return product
