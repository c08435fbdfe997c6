"""
Transaction model: the escrow ledger row for one order or booking.

A Transaction records what the buyer paid, what the platform keeps and
what the seller receives. The commission rate is copied from the seller
when the row is created and never re-read, so later rate changes do not
alter the economics of money already taken.

Usage:
    from payments.models import Transaction
    from payments.state_machines import TransactionStatus

    txn = Transaction.objects.get(order=order)
    txn.release()  # escrow -> released (django-fsm, in memory)
    # persist with payments.locks.save_if_unchanged(...)

Ledger identity:
    commission_amount + seller_payout + refunded_amount == amount
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin, VersionedMixin
from core.models import BaseModel
from payments.commission import calculate_commission
from payments.state_machines import PaymentMethod, TransactionStatus


class Transaction(UUIDPrimaryKeyMixin, VersionedMixin, BaseModel):
    """
    Escrow ledger entry for an order or a booking.

    State Flow:
        PENDING -> ESCROW -> RELEASED
        PENDING -> ESCROW -> REFUNDED
        (created directly in ESCROW when payment is confirmed synchronously)

    Fields:
        order / booking: Exactly one parent, one-to-one
        buyer / seller: Parties, copied from the parent for reporting
        amount: Gross amount paid
        commission_rate: Seller rate snapshotted at creation
        commission_amount / seller_payout: Split of the retained amount
        refunded_amount: Amount returned to the buyer (0 unless refunded)
        status: Current FSM state
        payment_method / payment_reference: How and where the money came from
        escrowed_at / released_at / refunded_at: Transition timestamps
        version: Optimistic locking version

    Note:
        Rows are never deleted by business logic; parents use PROTECT.
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    order = models.OneToOneField(
        "orders.Order",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transaction",
    )

    booking = models.OneToOneField(
        "orders.Booking",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transaction",
    )

    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="purchase_transactions",
    )

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="sale_transactions",
    )

    # ==========================================================================
    # Amounts
    # ==========================================================================

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Gross amount paid by the buyer",
    )

    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        help_text="Seller commission percentage at creation time",
    )

    commission_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Platform commission on the retained amount",
    )

    seller_payout = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Amount owed to the seller",
    )

    refunded_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Amount returned to the buyer",
    )

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=TransactionStatus.PENDING,
        choices=TransactionStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current escrow state (managed by FSM)",
    )

    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.IPG,
    )

    payment_reference = models.CharField(
        max_length=255,
        blank=True,
        default="",
        db_index=True,
        help_text="Gateway transaction reference or bank transfer reference",
    )

    # ==========================================================================
    # State Timestamps
    # ==========================================================================

    escrowed_at = models.DateTimeField(null=True, blank=True)
    released_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Transaction"
        verbose_name_plural = "Transactions"
        indexes = [
            models.Index(fields=["seller", "status"], name="payments_txn_seller_status_idx"),
            models.Index(fields=["buyer", "status"], name="payments_txn_buyer_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(order__isnull=False, booking__isnull=True)
                    | models.Q(order__isnull=True, booking__isnull=False)
                ),
                name="payments_transaction_single_parent",
            ),
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="payments_transaction_amount_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(commission_rate__gte=0, commission_rate__lte=100),
                name="payments_transaction_rate_percentage",
            ),
        ]

    def __str__(self) -> str:
        return f"Transaction({self.id}, {self.status}, {self.amount})"

    @property
    def parent(self):
        return self.order if self.order_id else self.booking

    @property
    def parent_kind(self) -> str:
        return "order" if self.order_id else "booking"

    @property
    def parent_id(self):
        return self.order_id or self.booking_id

    @property
    def is_balanced(self) -> bool:
        return self.commission_amount + self.seller_payout + self.refunded_amount == self.amount

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=TransactionStatus.PENDING,
        target=TransactionStatus.ESCROW,
    )
    def hold(self):
        """
        Move confirmed funds into escrow.

        Transition: PENDING -> ESCROW
        """
        self.escrowed_at = timezone.now()

    @transition(
        field=status,
        source=TransactionStatus.ESCROW,
        target=TransactionStatus.RELEASED,
    )
    def release(self):
        """
        Release the seller payout.

        Transition: ESCROW -> RELEASED
        """
        self.released_at = timezone.now()

    @transition(
        field=status,
        source=TransactionStatus.ESCROW,
        target=TransactionStatus.REFUNDED,
    )
    def refund(self, refund_amount: Decimal):
        """
        Return ``refund_amount`` to the buyer.

        Transition: ESCROW -> REFUNDED

        The retained remainder is re-split at the original commission rate
        and released to the seller at the same instant. A full refund
        leaves commission and payout at zero. The caller validates
        ``0 < refund_amount <= amount``.
        """
        retained = self.amount - refund_amount
        split = calculate_commission(retained, self.commission_rate)

        now = timezone.now()
        self.refunded_amount = refund_amount
        self.commission_amount = split.commission_amount
        self.seller_payout = split.seller_payout
        self.refunded_at = now
        if retained > 0:
            self.released_at = now
