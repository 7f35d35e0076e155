"""Unit tests for Product DTOs.

Covers:
- CreateProductDTO: validation, name stripping, frozen immutability.
- UpdateProductDTO: every field required, ``changes`` payload.
- PartialUpdateProductDTO: optional fields, validation.
- ProductQueryDTO: query-string coercion and ORM look-ups.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from modules.products.dtos import (
    QUANTITY_MAX,
    CreateProductDTO,
    PartialUpdateProductDTO,
    ProductQueryDTO,
    UpdateProductDTO,
)

pytestmark = pytest.mark.unit


# ===========================================================================
# CreateProductDTO
# ===========================================================================


class TestCreateProductDTOValid:
    def test_create_with_valid_data(self):
        dto = CreateProductDTO(name="Widget", price=Decimal("19.99"), quantity=3)
        assert dto.name == "Widget"
        assert dto.price == Decimal("19.99")
        assert dto.quantity == 3

    def test_quantity_defaults_to_zero(self):
        dto = CreateProductDTO(name="Widget", price=Decimal("10.00"))
        assert dto.quantity == 0

    def test_zero_price_is_valid(self):
        dto = CreateProductDTO(name="Freebie", price=Decimal("0"))
        assert dto.price == Decimal("0")

    def test_name_is_stripped(self):
        dto = CreateProductDTO(name="  Widget  ", price=Decimal("10.00"))
        assert dto.name == "Widget"

    def test_string_values_are_coerced(self):
        dto = CreateProductDTO.model_validate(
            {"name": "Widget", "price": "29.90", "quantity": "4"}
        )
        assert dto.price == Decimal("29.90")
        assert dto.quantity == 4

    def test_client_supplied_id_is_ignored(self):
        dto = CreateProductDTO.model_validate(
            {"id": 99, "name": "Widget", "price": "1.00"}
        )
        assert not hasattr(dto, "id")


class TestCreateProductDTOValidation:
    def test_negative_price_raises(self):
        with pytest.raises(ValidationError, match="Price cannot be negative"):
            CreateProductDTO(name="Widget", price=Decimal("-0.01"))

    def test_negative_quantity_raises(self):
        with pytest.raises(ValidationError, match="Quantity cannot be negative"):
            CreateProductDTO(name="Widget", price=Decimal("1.00"), quantity=-1)

    def test_blank_name_raises(self):
        with pytest.raises(ValidationError, match="Name must not be empty"):
            CreateProductDTO(name="   ", price=Decimal("1.00"))

    def test_missing_name_raises(self):
        with pytest.raises(ValidationError):
            CreateProductDTO.model_validate({"price": "1.00"})

    def test_missing_price_raises(self):
        with pytest.raises(ValidationError):
            CreateProductDTO.model_validate({"name": "Widget"})

    def test_too_many_decimal_places_raises(self):
        with pytest.raises(ValidationError):
            CreateProductDTO(name="Widget", price=Decimal("1.999"))

    def test_fractional_quantity_raises(self):
        with pytest.raises(ValidationError):
            CreateProductDTO.model_validate(
                {"name": "Widget", "price": "1.00", "quantity": 1.5}
            )

    def test_quantity_at_limit_is_valid(self):
        dto = CreateProductDTO(name="Widget", price=Decimal("1.00"), quantity=QUANTITY_MAX)
        assert dto.quantity == QUANTITY_MAX

    @pytest.mark.parametrize("quantity", [QUANTITY_MAX + 1, 10**20])
    def test_quantity_above_limit_raises(self, quantity):
        with pytest.raises(ValidationError, match="less than or equal to"):
            CreateProductDTO(name="Widget", price=Decimal("1.00"), quantity=quantity)


class TestCreateProductDTOFrozen:
    def test_is_immutable(self):
        dto = CreateProductDTO(name="Widget", price=Decimal("10.00"))
        with pytest.raises(ValidationError):
            dto.name = "Changed"


# ===========================================================================
# UpdateProductDTO
# ===========================================================================


class TestUpdateProductDTO:
    def test_all_fields_required(self):
        with pytest.raises(ValidationError) as exc_info:
            UpdateProductDTO.model_validate({"name": "Widget"})
        missing = {err["loc"][0] for err in exc_info.value.errors()}
        assert missing == {"price", "quantity"}

    def test_changes_contains_every_field(self):
        dto = UpdateProductDTO(name="Widget", price=Decimal("5.00"), quantity=0)
        assert dto.changes() == {
            "name": "Widget",
            "price": Decimal("5.00"),
            "quantity": 0,
        }

    def test_negative_price_raises(self):
        with pytest.raises(ValidationError, match="Price cannot be negative"):
            UpdateProductDTO(name="Widget", price=Decimal("-1.00"), quantity=1)


# ===========================================================================
# PartialUpdateProductDTO
# ===========================================================================


class TestPartialUpdateProductDTO:
    def test_all_fields_optional(self):
        dto = PartialUpdateProductDTO()
        assert dto.name is None
        assert dto.price is None
        assert dto.quantity is None
        assert dto.changes() == {}

    def test_changes_only_supplied_fields(self):
        dto = PartialUpdateProductDTO(price=Decimal("29.99"))
        assert dto.changes() == {"price": Decimal("29.99")}

    def test_zero_quantity_is_a_change(self):
        dto = PartialUpdateProductDTO(quantity=0)
        assert dto.changes() == {"quantity": 0}

    def test_negative_quantity_raises(self):
        with pytest.raises(ValidationError, match="Quantity cannot be negative"):
            PartialUpdateProductDTO(quantity=-5)

    def test_quantity_above_limit_raises(self):
        with pytest.raises(ValidationError):
            PartialUpdateProductDTO(quantity=QUANTITY_MAX + 1)

    def test_blank_name_raises(self):
        with pytest.raises(ValidationError, match="Name must not be empty"):
            PartialUpdateProductDTO(name="")


# ===========================================================================
# ProductQueryDTO
# ===========================================================================


class TestProductQueryDTO:
    def test_empty_query_has_no_lookups(self):
        assert ProductQueryDTO().to_lookups() == {}

    def test_unrelated_params_are_ignored(self):
        dto = ProductQueryDTO.model_validate({"page": "2"})
        assert dto.to_lookups() == {}

    def test_builds_lookups_from_strings(self):
        dto = ProductQueryDTO.model_validate(
            {"name": "wid", "min_price": "1.50", "max_price": "9", "in_stock": "true"}
        )
        assert dto.to_lookups() == {
            "name__icontains": "wid",
            "price__gte": Decimal("1.50"),
            "price__lte": Decimal("9"),
            "quantity__gt": 0,
        }

    def test_out_of_stock_lookup(self):
        dto = ProductQueryDTO.model_validate({"in_stock": "false"})
        assert dto.to_lookups() == {"quantity": 0}

    def test_inverted_price_range_raises(self):
        with pytest.raises(ValidationError, match="min_price cannot be greater"):
            ProductQueryDTO(min_price=Decimal("10"), max_price=Decimal("1"))

    def test_non_numeric_price_raises(self):
        with pytest.raises(ValidationError):
            ProductQueryDTO.model_validate({"min_price": "cheap"})
