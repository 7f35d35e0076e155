"""Base abstract models shared by every domain module.

Provides ``BaseModel``: timestamp bookkeeping (``created_at`` /
``updated_at``) on top of the project-wide ``BigAutoField`` primary key.
The integer key is assigned by the database on insert and never changes.
"""

from __future__ import annotations

from django.db import models


class BaseModel(models.Model):
    """Abstract base with store-assigned integer PK and timestamps."""

    id = models.BigAutoField(primary_key=True, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
