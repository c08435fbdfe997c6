"""
Return/dispute exceptions.

Exception Hierarchy:
    ReturnNotFoundError (NotFoundError, 404) - Unknown or invisible request
    ReturnNotEligibleError (ValidationError, 400) - Parent status does not
        allow a return
    ReturnAttemptsExceededError (ValidationError, 400) - Order hit the
        return attempt limit
    InvalidReturnTransitionError (InvalidTransitionError, 400) - Step not
        legal from the request's current status
    ActiveReturnExistsError (ConflictError, 409) - Another request is
        still open for the same order/booking

Financial outcomes raise payments exceptions (InvalidAmountError,
InvalidStateError, PostReleaseRefundError).
"""

from core.exceptions import ConflictError, NotFoundError, ValidationError
from orders.exceptions import InvalidTransitionError


class ReturnNotFoundError(NotFoundError):
    default_error_code: str = "RETURN_NOT_FOUND"


class ReturnNotEligibleError(ValidationError):
    """Raised when the order/booking is not in a returnable status."""

    default_error_code: str = "RETURN_NOT_ELIGIBLE"


class ReturnAttemptsExceededError(ValidationError):
    default_error_code: str = "RETURN_ATTEMPTS_EXCEEDED"


class InvalidReturnTransitionError(InvalidTransitionError):
    default_error_code: str = "INVALID_RETURN_TRANSITION"


class ActiveReturnExistsError(ConflictError):
    """Raised when a second request is opened while one is still active."""

    default_error_code: str = "ACTIVE_RETURN_EXISTS"
