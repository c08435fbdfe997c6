"""
Application error hierarchy.

Services raise these; core.exception_handler.api_exception_handler turns
them into JSON responses and webhook handlers turn them into
ServiceResult failures. Each class fixes the HTTP status and a default
error code; raise sites usually pass a more specific code.

    BaseApplicationError          400  APPLICATION_ERROR
    ├── ValidationError           400  VALIDATION_ERROR
    ├── AuthenticationError       401  AUTHENTICATION_FAILED
    ├── PermissionDeniedError     403  PERMISSION_DENIED
    ├── NotFoundError             404  NOT_FOUND
    └── ConflictError             409  CONFLICT

Usage:
    raise NotFoundError(
        f"Order {order_id} not found",
        error_code="ORDER_NOT_FOUND",
        details={"order_id": str(order_id)},
    )
"""

from __future__ import annotations

from typing import Any


class BaseApplicationError(Exception):
    default_error_code: str = "APPLICATION_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Response body: error and error_code, plus details when there are any."""
        body: dict[str, Any] = {"error": self.message, "error_code": self.error_code}
        if self.details:
            body["details"] = self.details
        return body

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, error_code={self.error_code!r})"


class ValidationError(BaseApplicationError):
    """Business-rule failure: amount ceilings, eligibility, bad transitions."""

    default_error_code = "VALIDATION_ERROR"
    http_status = 400


class AuthenticationError(BaseApplicationError):
    """Caller identity rejected outside DRF authentication (gateway webhooks)."""

    default_error_code = "AUTHENTICATION_FAILED"
    http_status = 401


class PermissionDeniedError(BaseApplicationError):
    default_error_code = "PERMISSION_DENIED"
    http_status = 403


class NotFoundError(BaseApplicationError):
    default_error_code = "NOT_FOUND"
    http_status = 404


class ConflictError(BaseApplicationError):
    """Wrong lifecycle state, duplicate record, or a lost compare-and-swap."""

    default_error_code = "CONFLICT"
    http_status = 409
