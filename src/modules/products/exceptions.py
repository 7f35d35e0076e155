"""Product domain exceptions.

Raised by the Service Layer when a request cannot be honoured.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations


class InvalidProductIdError(Exception):
    """The requested product id has no live record.

    The message names the missing id and is returned verbatim to API
    clients with a 404.
    """

    def __init__(self, message: str, product_id: object = None) -> None:
        super().__init__(message)
        self.product_id = product_id

    @classmethod
    def for_id(cls, product_id: object) -> InvalidProductIdError:
        return cls(f"Product with id {product_id} not found.", product_id=product_id)
