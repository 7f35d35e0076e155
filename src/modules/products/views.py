"""Product API views.

Exposes the ``ProductService`` via HTTP using a DRF ViewSet.
Domain exceptions are caught and translated into HTTP status codes;
the view never swallows generic exceptions.  ``StoreError`` is left to
the project-wide exception handler (500).
"""

from __future__ import annotations

from typing import Any, Dict

from django.http import QueryDict
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.products.dtos import (
    CreateProductDTO,
    PartialUpdateProductDTO,
    ProductQueryDTO,
    UpdateProductDTO,
)
from modules.products.exceptions import InvalidProductIdError
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.serializers import ProductSerializer
from modules.products.services import ProductService


def _payload(request: Request) -> Any:
    data = request.data
    if isinstance(data, QueryDict):
        return data.dict()
    return data


def _bad_request(exc: Exception) -> Response:
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


def _not_found(exc: InvalidProductIdError) -> Response:
    return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)


class ProductViewSet(GenericViewSet):
    """ViewSet for Product CRUD operations.

    Uses ``ProductService`` with ``ProductDjangoRepository`` (DIP).
    Does **not** extend ``ModelViewSet``; all ORM access goes through
    the service/repository layer.  ``queryset`` is declared only so the
    OpenAPI generator can describe the path parameter.
    """

    queryset = Product.objects.all()
    serializer_class = ProductSerializer
    lookup_value_regex = "[0-9]+"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductService(repository=ProductDjangoRepository())

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /products"""
        params: Dict[str, Any] = request.query_params.dict()
        try:
            query = ProductQueryDTO.model_validate(params)
        except PydanticValidationError as exc:
            return _bad_request(exc)

        products = self._service.list_products(query.to_lookups() or None)

        page = self.paginate_queryset(products)
        if page is not None:
            return self.get_paginated_response(ProductSerializer(page, many=True).data)
        return Response(ProductSerializer(products, many=True).data)

    def retrieve(self, request: Request, pk: str) -> Response:
        """GET /products/{pk}"""
        try:
            product = self._service.get_product(int(pk))
        except InvalidProductIdError as exc:
            return _not_found(exc)
        return Response(ProductSerializer(product).data)

    # ------------------------------------------------------------------
    # Create / Update / Destroy
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /products"""
        try:
            dto = CreateProductDTO.model_validate(_payload(request))
        except PydanticValidationError as exc:
            return _bad_request(exc)

        product = self._service.create_product(dto)
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)

    def update(self, request: Request, pk: str) -> Response:
        """PUT /products/{pk}"""
        return self._apply_update(request, pk, UpdateProductDTO)

    def partial_update(self, request: Request, pk: str) -> Response:
        """PATCH /products/{pk}"""
        return self._apply_update(request, pk, PartialUpdateProductDTO)

    def destroy(self, request: Request, pk: str) -> Response:
        """DELETE /products/{pk}"""
        try:
            self._service.delete_product(int(pk))
        except InvalidProductIdError as exc:
            return _not_found(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    def _apply_update(self, request: Request, pk: str, dto_class: type) -> Response:
        try:
            dto = dto_class.model_validate(_payload(request))
        except PydanticValidationError as exc:
            return _bad_request(exc)

        try:
            product = self._service.update_product(int(pk), dto)
        except InvalidProductIdError as exc:
            return _not_found(exc)
        return Response(ProductSerializer(product).data)
