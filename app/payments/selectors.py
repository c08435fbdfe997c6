"""
Read-side queries for transactions and seller balances.

Views never serialize Transaction rows directly: they receive a
TransactionView assembled here with the parent order/booking and both
parties joined in, so list endpoints issue one query per page.

Usage:
    from payments.selectors import seller_balance, transactions_for, to_transaction_view

    qs = transactions_for(request.user, status="escrow")
    views = [to_transaction_view(txn) for txn in qs]
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from django.db.models import Q, QuerySet, Sum

from orders.state_machines import ActorRole
from payments.models import Transaction
from payments.money import ZERO, quantize_money
from payments.state_machines import TransactionStatus

if TYPE_CHECKING:
    from authentication.models import User


@dataclass(frozen=True)
class TransactionView:
    """Transaction joined with its parent and parties, ready to render."""

    id: UUID
    kind: str
    parent_id: UUID
    parent_status: str
    buyer_id: int
    buyer_email: str
    seller_id: int
    seller_email: str
    amount: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    seller_payout: Decimal
    refunded_amount: Decimal
    status: str
    payment_method: str
    payment_reference: str
    escrowed_at: datetime | None
    released_at: datetime | None
    refunded_at: datetime | None
    created_at: datetime


@dataclass(frozen=True)
class SellerBalance:
    """
    Seller earnings summary.

    Attributes:
        pending: Payouts of checkouts awaiting payment
        in_escrow: Payouts held until completion or a refund decision
        available: Payouts released to the seller
        commission_paid: Platform commission on released money
        refunded_to_buyers: Money returned to buyers on this seller's sales
    """

    pending: Decimal
    in_escrow: Decimal
    available: Decimal
    commission_paid: Decimal
    refunded_to_buyers: Decimal


def transactions_for(actor: User, *, status: str | None = None) -> QuerySet[Transaction]:
    """Transactions visible to the actor: admins see all, others their own side."""
    qs = Transaction.objects.select_related("order", "booking", "buyer", "seller")

    if actor.role == ActorRole.SELLER:
        qs = qs.filter(seller=actor)
    elif actor.role != ActorRole.ADMIN:
        qs = qs.filter(buyer=actor)

    if status:
        qs = qs.filter(status=status)
    return qs.order_by("-created_at")


def to_transaction_view(txn: Transaction) -> TransactionView:
    parent = txn.parent
    return TransactionView(
        id=txn.id,
        kind=txn.parent_kind,
        parent_id=txn.parent_id,
        parent_status=parent.status,
        buyer_id=txn.buyer_id,
        buyer_email=txn.buyer.email,
        seller_id=txn.seller_id,
        seller_email=txn.seller.email,
        amount=txn.amount,
        commission_rate=txn.commission_rate,
        commission_amount=txn.commission_amount,
        seller_payout=txn.seller_payout,
        refunded_amount=txn.refunded_amount,
        status=txn.status,
        payment_method=txn.payment_method,
        payment_reference=txn.payment_reference,
        escrowed_at=txn.escrowed_at,
        released_at=txn.released_at,
        refunded_at=txn.refunded_at,
        created_at=txn.created_at,
    )


def seller_balance(seller: User) -> SellerBalance:
    # A partial refund releases its retained payout, so refunded rows count as paid out
    settled = Q(status__in=[TransactionStatus.RELEASED, TransactionStatus.REFUNDED])

    totals = Transaction.objects.filter(seller=seller).aggregate(
        pending=Sum("seller_payout", filter=Q(status=TransactionStatus.PENDING)),
        in_escrow=Sum("seller_payout", filter=Q(status=TransactionStatus.ESCROW)),
        available=Sum("seller_payout", filter=settled),
        commission_paid=Sum("commission_amount", filter=settled),
        refunded_to_buyers=Sum("refunded_amount"),
    )
    return SellerBalance(
        **{key: quantize_money(value) if value is not None else ZERO for key, value in totals.items()}
    )
