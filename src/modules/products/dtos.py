"""Product DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (Views) and the
Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateProductDTO``: input for product creation.
- ``UpdateProductDTO``: full replacement of the mutable fields (PUT).
- ``PartialUpdateProductDTO``: subset of the mutable fields (PATCH).
- ``ProductQueryDTO``: optional list filters from the query string.

Unknown keys (including a client-supplied ``id``) are ignored: the
identifier is owned by the store.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any, Dict, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

PRICE_MAX_DIGITS = 12
PRICE_DECIMAL_PLACES = 2
# Largest value every database backend accepts for PositiveIntegerField.
QUANTITY_MAX = 2147483647


def _check_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Name must not be empty.")
    return v


def _check_price(v: Decimal) -> Decimal:
    if v < 0:
        raise ValueError("Price cannot be negative.")
    return v


def _check_quantity(v: int) -> int:
    if v < 0:
        raise ValueError("Quantity cannot be negative.")
    return v


ProductName = Annotated[str, Field(max_length=255), AfterValidator(_check_name)]
ProductPrice = Annotated[
    Decimal,
    Field(max_digits=PRICE_MAX_DIGITS, decimal_places=PRICE_DECIMAL_PLACES),
    AfterValidator(_check_price),
]
ProductQuantity = Annotated[int, Field(le=QUANTITY_MAX), AfterValidator(_check_quantity)]


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateProductDTO(BaseModel):
    """Immutable DTO for product creation requests.

    Validates:
    - ``name`` is a non-empty string (surrounding whitespace stripped).
    - ``price`` is a non-negative Decimal with at most two decimal places.
    - ``quantity`` is a non-negative integer no larger than ``QUANTITY_MAX``.
    """

    model_config = ConfigDict(frozen=True)

    name: ProductName
    price: ProductPrice
    quantity: ProductQuantity = 0


class UpdateProductDTO(CreateProductDTO):
    """Immutable DTO for PUT: every mutable field is replaced.

    ``quantity`` is required here, unlike on creation.
    """

    quantity: ProductQuantity

    def changes(self) -> Dict[str, Any]:
        return self.model_dump()


class PartialUpdateProductDTO(BaseModel):
    """Immutable DTO for PATCH.  Only supplied fields will be updated."""

    model_config = ConfigDict(frozen=True)

    name: Optional[ProductName] = None
    price: Optional[ProductPrice] = None
    quantity: Optional[ProductQuantity] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ProductQueryDTO(BaseModel):
    """Optional filters accepted by the list endpoint."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    in_stock: Optional[bool] = None

    @model_validator(mode="after")
    def price_range_is_ordered(self) -> ProductQueryDTO:
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValueError("min_price cannot be greater than max_price.")
        return self

    def to_lookups(self) -> Dict[str, Any]:
        """Translate into Django ORM look-ups for the repository."""
        lookups: Dict[str, Any] = {}
        if self.name:
            lookups["name__icontains"] = self.name.strip()
        if self.min_price is not None:
            lookups["price__gte"] = self.min_price
        if self.max_price is not None:
            lookups["price__lte"] = self.max_price
        if self.in_stock is True:
            lookups["quantity__gt"] = 0
        elif self.in_stock is False:
            lookups["quantity"] = 0
        return lookups
