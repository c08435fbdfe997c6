"""
Payment-specific exceptions for escrow operations.

Exception Hierarchy:
    InvalidAmountError (ValidationError, 400) - Malformed or out-of-range money value
    InvalidCommissionRateError (ValidationError, 400) - Rate outside 0-100
    TransactionNotFoundError (NotFoundError, 404) - No transaction for the id/parent
    AmountMismatchError (ConflictError, 409) - Confirmation amount differs from the
        amount already recorded for the same order/booking
    InvalidStateError (ConflictError, 409) - Escrow operation attempted from the
        wrong transaction status (wraps django-fsm's TransitionNotAllowed)
    StaleRecordError (ConflictError, 409) - Optimistic locking conflict
    PostReleaseRefundError (ConflictError, 409) - Refund approved after the seller
        was already paid; needs a manual clawback
    WebhookAuthenticationError (AuthenticationError, 401) - Bad webhook secret

Usage:
    from payments.exceptions import AmountMismatchError, InvalidStateError

    raise InvalidStateError(
        "Transaction is not in escrow",
        details={"transaction_id": str(txn.id), "status": txn.status},
    )
"""

from __future__ import annotations

from core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)


class InvalidAmountError(ValidationError):
    """
    Raised when a monetary value cannot be used.

    Covers floats, non-numeric strings, sub-cent precision, non-positive
    amounts where a positive one is required, and amounts exceeding a
    ceiling (for example a refund larger than the transaction).
    """

    default_error_code: str = "INVALID_AMOUNT"


class InvalidCommissionRateError(ValidationError):
    """Raised when a commission rate is outside 0-100 percent."""

    default_error_code: str = "INVALID_COMMISSION_RATE"


class TransactionNotFoundError(NotFoundError):
    default_error_code: str = "TRANSACTION_NOT_FOUND"


class AmountMismatchError(ConflictError):
    """
    Raised when a payment confirmation carries a different amount than the
    transaction already recorded for the same order or booking.

    The stored transaction is left untouched.
    """

    default_error_code: str = "AMOUNT_MISMATCH"


class InvalidStateError(ConflictError):
    """
    Raised when an escrow operation is not legal from the transaction's
    current status, e.g. releasing an already refunded transaction.

    Example:
        from django_fsm import TransitionNotAllowed

        try:
            txn.release()
        except TransitionNotAllowed:
            raise InvalidStateError(
                f"Cannot release transaction in '{txn.status}' status",
                details={"status": txn.status, "operation": "release"},
            )
    """

    default_error_code: str = "INVALID_STATE"


class StaleRecordError(ConflictError):
    """
    Raised when optimistic locking detects concurrent modification.

    The record was written by another request between read and update.
    The caller should retry with fresh data or abort.

    Attributes:
        details: Contains model, pk and expected_version
    """

    default_error_code: str = "STALE_RECORD"


class PostReleaseRefundError(ConflictError):
    """
    Raised when a refund is approved after escrow was already released.

    The ledger cannot be corrected by mutating the transaction: the seller
    has been paid. The return request is flagged for a manual clawback and
    an admin settles it out of band.
    """

    default_error_code: str = "POST_RELEASE_REFUND"


class WebhookAuthenticationError(AuthenticationError):
    """Raised when a gateway webhook carries a missing or wrong shared secret."""

    default_error_code: str = "INVALID_WEBHOOK_SECRET"
