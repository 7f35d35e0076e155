"""Project-wide DRF exception handler.

Views translate domain exceptions themselves; this handler only covers
what escapes them.  ``StoreError`` becomes a 500 with a generic body so
store details never leak to clients.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from modules.core.exceptions import StoreError

logger = structlog.get_logger(__name__)


def api_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    if isinstance(exc, StoreError):
        view = context.get("view")
        logger.error(
            "store_error",
            view=type(view).__name__ if view else None,
            error=str(exc),
        )
        return Response(
            {"detail": "Storage backend failure."},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return exception_handler(exc, context)
