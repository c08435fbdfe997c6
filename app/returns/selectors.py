"""
Read-side queries for return requests.

Visibility follows the parties: buyers see the requests they opened,
sellers the requests against their sales, admins everything.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import QuerySet

from authentication.models import UserRole
from returns.exceptions import ReturnNotFoundError
from returns.models import ReturnRequest

if TYPE_CHECKING:
    from uuid import UUID

    from authentication.models import User


def returns_for(actor: User, *, status: str | None = None) -> QuerySet[ReturnRequest]:
    qs = ReturnRequest.objects.select_related("order", "booking", "buyer", "seller")
    if actor.role == UserRole.SELLER:
        qs = qs.filter(seller=actor)
    elif actor.role != UserRole.ADMIN:
        qs = qs.filter(buyer=actor)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("-created_at")


def get_return_for(actor: User, pk: UUID | str) -> ReturnRequest:
    """
    Raises:
        ReturnNotFoundError: Unknown id, or the actor is not a party to it
    """
    try:
        return returns_for(actor).get(pk=pk)
    except (ReturnRequest.DoesNotExist, DjangoValidationError):
        raise ReturnNotFoundError(
            f"Return request {pk} not found",
            details={"return_request_id": str(pk)},
        ) from None
