"""Product DRF serializer for API output.

The serializer operates at the Interface layer (API Views) and only
renders responses; request bodies are validated by the Pydantic DTOs
in ``dtos.py`` before they reach the Service Layer.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    """Read serializer for the Product resource."""

    class Meta:
        model = Product
        fields = ["id", "name", "price", "quantity", "created_at", "updated_at"]
        read_only_fields = fields
