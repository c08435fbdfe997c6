"""
DRF exception handler that renders application errors.

Registered through REST_FRAMEWORK["EXCEPTION_HANDLER"]. Application errors
raised from services bubble out of the views unchanged and are rendered
here using their own http_status and to_dict() payload. Everything else
falls through to DRF's default handler.

Serializer validation failures keep DRF's field-error shape but are wrapped
in the same envelope so clients can always read ``error_code``.
"""

from __future__ import annotations

import logging

from rest_framework import exceptions as drf_exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import BaseApplicationError

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    if isinstance(exc, BaseApplicationError):
        view = context.get("view")
        log_method = logger.warning if exc.http_status >= 409 else logger.info
        log_method(
            f"Request rejected: {exc}",
            extra={
                "error_code": exc.error_code,
                "status_code": exc.http_status,
                "view": view.__class__.__name__ if view else None,
            },
        )
        return Response(exc.to_dict(), status=exc.http_status)

    response = exception_handler(exc, context)
    if response is not None and isinstance(exc, drf_exceptions.ValidationError):
        response.data = {
            "error": "Request validation failed",
            "error_code": "VALIDATION_ERROR",
            "details": response.data,
        }
    return response
