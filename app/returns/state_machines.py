"""
Return request state machine.

    pending -> seller_approved | seller_rejected     (seller response)
    pending | seller_* -> admin_approved | admin_rejected   (admin decision;
        from pending it is an admin override)
    admin_approved -> refunded    (escrow refund, or settled manual clawback)
    admin_rejected -> completed   (no financial change)

Terminal: refunded, completed.
"""

from __future__ import annotations

from django.db import models

from returns.exceptions import InvalidReturnTransitionError


class ReturnStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    SELLER_APPROVED = "seller_approved", "Seller Approved"
    SELLER_REJECTED = "seller_rejected", "Seller Rejected"
    ADMIN_APPROVED = "admin_approved", "Admin Approved"
    ADMIN_REJECTED = "admin_rejected", "Admin Rejected"
    REFUNDED = "refunded", "Refunded"
    COMPLETED = "completed", "Completed"


class SellerStatus(models.TextChoices):
    """Seller's advisory decision, kept apart from the request status."""

    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class ReturnReason(models.TextChoices):
    DEFECTIVE = "defective", "Defective"
    WRONG_ITEM = "wrong_item", "Wrong Item"
    NOT_AS_DESCRIBED = "not_as_described", "Not As Described"
    DAMAGED = "damaged", "Damaged"
    CHANGED_MIND = "changed_mind", "Changed Mind"
    OTHER = "other", "Other"


class Decision(models.TextChoices):
    APPROVE = "approve", "Approve"
    REJECT = "reject", "Reject"


RETURN_TRANSITIONS: frozenset[tuple[str, str]] = frozenset(
    {
        (ReturnStatus.PENDING, ReturnStatus.SELLER_APPROVED),
        (ReturnStatus.PENDING, ReturnStatus.SELLER_REJECTED),
        (ReturnStatus.PENDING, ReturnStatus.ADMIN_APPROVED),
        (ReturnStatus.PENDING, ReturnStatus.ADMIN_REJECTED),
        (ReturnStatus.SELLER_APPROVED, ReturnStatus.ADMIN_APPROVED),
        (ReturnStatus.SELLER_APPROVED, ReturnStatus.ADMIN_REJECTED),
        (ReturnStatus.SELLER_REJECTED, ReturnStatus.ADMIN_APPROVED),
        (ReturnStatus.SELLER_REJECTED, ReturnStatus.ADMIN_REJECTED),
        (ReturnStatus.ADMIN_APPROVED, ReturnStatus.REFUNDED),
        (ReturnStatus.ADMIN_REJECTED, ReturnStatus.COMPLETED),
    }
)

# A buyer may not open another request while one of these is open
ACTIVE_STATUSES: frozenset[str] = frozenset(
    {
        ReturnStatus.PENDING,
        ReturnStatus.SELLER_APPROVED,
        ReturnStatus.SELLER_REJECTED,
        ReturnStatus.ADMIN_APPROVED,
        ReturnStatus.ADMIN_REJECTED,
    }
)

TERMINAL_STATUSES: frozenset[str] = frozenset({ReturnStatus.REFUNDED, ReturnStatus.COMPLETED})


def check_return_transition(current_status: str, requested_status: str) -> None:
    """
    Raises:
        InvalidReturnTransitionError: The step is not in the table
    """
    if (current_status, requested_status) not in RETURN_TRANSITIONS:
        raise InvalidReturnTransitionError(
            f"Return request cannot move from '{current_status}' to '{requested_status}'",
            details={"current_status": current_status, "requested_status": requested_status},
        )
