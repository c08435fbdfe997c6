"""
Fulfillment state machine exceptions.

Exception Hierarchy:
    InvalidTransitionError (ValidationError, 400) - Edge not in the adjacency table
    UnauthorizedTransitionError (PermissionDeniedError, 403) - Role or ownership
        does not permit the edge
    FulfillmentNotFoundError (NotFoundError, 404) - Unknown order/booking id
"""

from core.exceptions import NotFoundError, PermissionDeniedError, ValidationError


class InvalidTransitionError(ValidationError):
    """Raised when the requested status is not reachable from the current one."""

    default_error_code: str = "INVALID_TRANSITION"


class UnauthorizedTransitionError(PermissionDeniedError):
    """Raised when the actor's role may not take the requested edge."""

    default_error_code: str = "UNAUTHORIZED_TRANSITION"


class FulfillmentNotFoundError(NotFoundError):
    default_error_code: str = "FULFILLMENT_NOT_FOUND"
