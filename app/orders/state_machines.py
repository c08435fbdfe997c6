"""
Fulfillment state machines for orders and bookings.

The adjacency tables below are the single source of truth for which status
changes exist and which roles may request them. They are plain data so
that the API (allowed next steps), the service layer and the tests all read
the same rules.

Order:
    created → paid → processing → shipped → delivered → completed
Booking:
    created → paid → confirmed → in_progress → completed
Both:
    any pre-completed status → cancelled (role rules below)

Roles:
    buyer, seller, admin: marketplace users
    system: the payment gateway adapter and scheduled jobs

Usage:
    from orders.state_machines import request_transition

    request_transition(FulfillmentKind.ORDER, "paid", "processing", ActorRole.SELLER)
"""

from __future__ import annotations

from django.db import models

from orders.exceptions import InvalidTransitionError, UnauthorizedTransitionError


class FulfillmentKind(models.TextChoices):
    """Which fulfillable a record or reference points at."""

    ORDER = "order", "Order"
    BOOKING = "booking", "Booking"


class ActorRole(models.TextChoices):
    BUYER = "buyer", "Buyer"
    SELLER = "seller", "Seller"
    ADMIN = "admin", "Admin"
    SYSTEM = "system", "System"


class OrderStatus(models.TextChoices):
    CREATED = "created", "Created"
    PAID = "paid", "Paid"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class BookingStatus(models.TextChoices):
    CREATED = "created", "Created"
    PAID = "paid", "Paid"
    CONFIRMED = "confirmed", "Confirmed"
    IN_PROGRESS = "in_progress", "In Progress"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


_BUYER = ActorRole.BUYER
_SELLER = ActorRole.SELLER
_ADMIN = ActorRole.ADMIN
_SYSTEM = ActorRole.SYSTEM

# =============================================================================
# Adjacency Tables: (from, to) -> roles allowed to take the edge
# =============================================================================

ORDER_TRANSITIONS: dict[tuple[str, str], frozenset[str]] = {
    # Manual (bank transfer) confirmation by admin, gateway confirmation by system
    (OrderStatus.CREATED, OrderStatus.PAID): frozenset({_ADMIN, _SYSTEM}),
    (OrderStatus.PAID, OrderStatus.PROCESSING): frozenset({_SELLER, _ADMIN}),
    (OrderStatus.PROCESSING, OrderStatus.SHIPPED): frozenset({_SELLER, _ADMIN}),
    # Carrier delivery callbacks arrive as system
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED): frozenset({_SELLER, _ADMIN, _SYSTEM}),
    (OrderStatus.DELIVERED, OrderStatus.COMPLETED): frozenset({_BUYER, _ADMIN, _SYSTEM}),
    # System cancels unpaid orders when the gateway reports a failed payment
    (OrderStatus.CREATED, OrderStatus.CANCELLED): frozenset({_BUYER, _SELLER, _ADMIN, _SYSTEM}),
    (OrderStatus.PAID, OrderStatus.CANCELLED): frozenset({_BUYER, _SELLER, _ADMIN}),
    (OrderStatus.PROCESSING, OrderStatus.CANCELLED): frozenset({_SELLER, _ADMIN}),
    (OrderStatus.SHIPPED, OrderStatus.CANCELLED): frozenset({_ADMIN}),
    (OrderStatus.DELIVERED, OrderStatus.CANCELLED): frozenset({_ADMIN}),
}

BOOKING_TRANSITIONS: dict[tuple[str, str], frozenset[str]] = {
    (BookingStatus.CREATED, BookingStatus.PAID): frozenset({_ADMIN, _SYSTEM}),
    (BookingStatus.PAID, BookingStatus.CONFIRMED): frozenset({_SELLER, _ADMIN}),
    (BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS): frozenset({_SELLER, _ADMIN}),
    (BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED): frozenset({_BUYER, _ADMIN, _SYSTEM}),
    (BookingStatus.CREATED, BookingStatus.CANCELLED): frozenset({_BUYER, _SELLER, _ADMIN, _SYSTEM}),
    (BookingStatus.PAID, BookingStatus.CANCELLED): frozenset({_BUYER, _SELLER, _ADMIN}),
    (BookingStatus.CONFIRMED, BookingStatus.CANCELLED): frozenset({_SELLER, _ADMIN}),
    (BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED): frozenset({_ADMIN}),
}

TRANSITION_TABLES: dict[str, dict[tuple[str, str], frozenset[str]]] = {
    FulfillmentKind.ORDER: ORDER_TRANSITIONS,
    FulfillmentKind.BOOKING: BOOKING_TRANSITIONS,
}

STATUS_CHOICES: dict[str, type[models.TextChoices]] = {
    FulfillmentKind.ORDER: OrderStatus,
    FulfillmentKind.BOOKING: BookingStatus,
}

# Statuses in which a return request may be opened
RETURNABLE_STATUSES: dict[str, frozenset[str]] = {
    FulfillmentKind.ORDER: frozenset({OrderStatus.DELIVERED, OrderStatus.COMPLETED}),
    FulfillmentKind.BOOKING: frozenset({BookingStatus.COMPLETED}),
}

# Shared by both kinds
CREATED = "created"
PAID = "paid"
COMPLETED = "completed"
CANCELLED = "cancelled"


def request_transition(
    kind: str,
    current_status: str,
    requested_status: str,
    actor_role: str,
) -> None:
    """
    Validate a status change against the adjacency table.

    Raises:
        InvalidTransitionError: The edge does not exist
        UnauthorizedTransitionError: The edge exists but not for this role
    """
    allowed_roles = TRANSITION_TABLES[kind].get((current_status, requested_status))

    if allowed_roles is None:
        raise InvalidTransitionError(
            f"Cannot move {kind} from '{current_status}' to '{requested_status}'",
            details={
                "kind": kind,
                "current_status": current_status,
                "requested_status": requested_status,
            },
        )

    if actor_role not in allowed_roles:
        raise UnauthorizedTransitionError(
            f"Role '{actor_role}' may not move {kind} from "
            f"'{current_status}' to '{requested_status}'",
            details={
                "kind": kind,
                "current_status": current_status,
                "requested_status": requested_status,
                "actor_role": actor_role,
            },
        )


def allowed_targets(kind: str, current_status: str, actor_role: str) -> list[str]:
    """Statuses the given role may request next, in table order."""
    return [
        target
        for (source, target), roles in TRANSITION_TABLES[kind].items()
        if source == current_status and actor_role in roles
    ]


def is_terminal(status: str) -> bool:
    return status in (COMPLETED, CANCELLED)
