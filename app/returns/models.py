"""
ReturnRequest model.

A buyer's request to return an order or booking and get money back. The
request carries three parties' inputs: the buyer's ask, the seller's
advisory response and the admin's binding decision. Writes go through
returns.services.ReturnResolver with a compare-and-swap on
(status, version).

Usage:
    from returns.models import ReturnRequest

    active = ReturnRequest.objects.active().filter(order=order).exists()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin, VersionedMixin
from core.models import BaseModel
from returns.state_machines import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    Decision,
    ReturnReason,
    ReturnStatus,
    SellerStatus,
)


class ReturnRequestQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status__in=ACTIVE_STATUSES)

    def for_parent(self, kind: str, parent_id):
        return self.filter(**{f"{kind}_id": parent_id})


class ReturnRequest(UUIDPrimaryKeyMixin, VersionedMixin, BaseModel):
    """
    Return/dispute request for exactly one order or booking.

    State Flow:
        PENDING -> SELLER_APPROVED | SELLER_REJECTED
                -> ADMIN_APPROVED | ADMIN_REJECTED
                -> REFUNDED | COMPLETED

    Fields:
        order / booking: Exactly one parent
        buyer / seller: Parties, copied from the parent
        reason / description / evidence_urls: Buyer's case
        requested_refund_amount: Buyer's ask, <= gross amount
        seller_status / seller_proposed_refund_amount / seller_response:
            Seller's advisory response
        admin_decision / approved_refund_amount / admin_notes: Binding
            decision; the approved amount never changes once set
        commission_reversed_amount: Commission given back by the refund
        requires_manual_clawback: Approved after the seller was paid
        version: Optimistic locking version
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="return_requests",
    )

    booking = models.ForeignKey(
        "orders.Booking",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="return_requests",
    )

    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="return_requests_made",
    )

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="return_requests_received",
    )

    # ==========================================================================
    # Buyer Request
    # ==========================================================================

    reason = models.CharField(max_length=30, choices=ReturnReason.choices)

    description = models.TextField(help_text="Buyer's explanation")

    evidence_urls = models.JSONField(
        default=list,
        blank=True,
        help_text="Photos or documents supporting the request",
    )

    requested_refund_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Amount the buyer asks for",
    )

    status = models.CharField(
        max_length=20,
        choices=ReturnStatus.choices,
        default=ReturnStatus.PENDING,
        db_index=True,
    )

    # ==========================================================================
    # Seller Response
    # ==========================================================================

    seller_status = models.CharField(
        max_length=20,
        choices=SellerStatus.choices,
        default=SellerStatus.PENDING,
    )

    seller_proposed_refund_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Seller's counter-offer",
    )

    seller_response = models.TextField(blank=True, default="")
    seller_responded_at = models.DateTimeField(null=True, blank=True)

    # ==========================================================================
    # Admin Decision
    # ==========================================================================

    admin_decision = models.CharField(
        max_length=10,
        choices=Decision.choices,
        blank=True,
        default="",
    )

    approved_refund_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Final refund amount set by the admin",
    )

    commission_reversed_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Commission given back as part of the refund",
    )

    admin_reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="return_requests_reviewed",
    )

    admin_notes = models.TextField(blank=True, default="")

    admin_override = models.BooleanField(
        default=False,
        help_text="Admin decided before the seller responded",
    )

    admin_reviewed_at = models.DateTimeField(null=True, blank=True)

    requires_manual_clawback = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Refund approved after escrow release; seller payout must be clawed back",
    )

    clawback_settled_at = models.DateTimeField(null=True, blank=True)

    # ==========================================================================
    # Milestones
    # ==========================================================================

    resolved_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    objects = ReturnRequestQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Return Request"
        verbose_name_plural = "Return Requests"
        indexes = [
            models.Index(fields=["buyer", "status"], name="returns_buyer_status_idx"),
            models.Index(fields=["seller", "status"], name="returns_seller_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(order__isnull=False, booking__isnull=True)
                    | models.Q(order__isnull=True, booking__isnull=False)
                ),
                name="returns_request_single_parent",
            ),
            models.CheckConstraint(
                condition=models.Q(requested_refund_amount__gt=0),
                name="returns_request_requested_positive",
            ),
            models.CheckConstraint(
                condition=~models.Q(status=ReturnStatus.REFUNDED)
                | models.Q(approved_refund_amount__isnull=False),
                name="returns_request_refunded_has_amount",
            ),
            models.UniqueConstraint(
                fields=["order"],
                condition=models.Q(status__in=sorted(ACTIVE_STATUSES)),
                name="returns_one_active_per_order",
            ),
            models.UniqueConstraint(
                fields=["booking"],
                condition=models.Q(status__in=sorted(ACTIVE_STATUSES)),
                name="returns_one_active_per_booking",
            ),
        ]

    def __str__(self) -> str:
        return f"ReturnRequest({self.id}, {self.status})"

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
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
