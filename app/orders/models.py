"""
Order and Booking models.

Both are variants of the abstract Fulfillable: a buyer pays a seller a
gross amount for something that is then fulfilled. Orders carry a product
variant and quantity; bookings carry a service package and a schedule.

Status is a plain CharField. Writes go through orders.services, which
validates the edge against orders.state_machines and persists it with a
compare-and-swap on (status, version).

Usage:
    from orders.models import Order, model_for_kind

    order = Order.objects.get(pk=order_id)
    model_for_kind("booking")  # -> Booking
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin, VersionedMixin
from core.models import BaseModel
from orders.state_machines import BookingStatus, FulfillmentKind, OrderStatus
from payments.state_machines import PaymentMethod


class Fulfillable(UUIDPrimaryKeyMixin, VersionedMixin, BaseModel):
    """
    Abstract base for orders and bookings.

    Fields:
        buyer / seller: The two parties
        gross_amount: Buyer-facing total, always > 0
        quote_id / quoted_amount: Accepted custom quote; when present the
            gross amount equals the quoted price
        payment_method: Gateway card payment or bank transfer
        payment_reference: Gateway or bank reference of the confirmed payment
        gateway_success_indicator: Value the gateway returns to the buyer's
            browser on success; compared during redirect verification
        paid_at / completed_at / cancelled_at: Transition timestamps
        version: Optimistic locking version (VersionedMixin)
    """

    kind: str = ""

    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="purchased_%(class)ss",
        help_text="User paying for this record",
    )

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="sold_%(class)ss",
        help_text="User fulfilling this record and receiving the payout",
    )

    gross_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Buyer-facing total",
    )

    quote_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        db_index=True,
        help_text="Accepted custom quote this record was created from",
    )

    quoted_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Price of the accepted quote",
    )

    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.IPG,
        help_text="How the buyer pays",
    )

    payment_reference = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Gateway or bank reference of the confirmed payment",
    )

    gateway_success_indicator = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Gateway success indicator for redirect verification",
    )

    paid_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        abstract = True
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(gross_amount__gt=0),
                name="%(app_label)s_%(class)s_gross_amount_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(quote_id__isnull=True)
                | models.Q(quoted_amount__isnull=False, quoted_amount=models.F("gross_amount")),
                name="%(app_label)s_%(class)s_gross_matches_quote",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.id}, {self.status}, {self.gross_amount})"

    def is_party(self, user) -> bool:
        return user is not None and user.pk in (self.buyer_id, self.seller_id)


class Order(Fulfillable):
    """
    A product purchase.

    Fields:
        variant_id / quantity: The line item (catalog lives outside this service)
        status: OrderStatus
        shipped_at / delivered_at: Fulfillment timestamps
        return_attempt_count: Return requests opened against this order
    """

    kind = FulfillmentKind.ORDER

    variant_id = models.CharField(
        max_length=64,
        help_text="Catalog product variant identifier",
    )

    quantity = models.PositiveIntegerField(default=1)

    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.CREATED,
        db_index=True,
    )

    shipped_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    return_attempt_count = models.PositiveSmallIntegerField(
        default=0,
        help_text="Return requests opened against this order",
    )

    class Meta(Fulfillable.Meta):
        verbose_name = "Order"
        verbose_name_plural = "Orders"
        indexes = [
            models.Index(fields=["buyer", "status"], name="orders_order_buyer_status_idx"),
            models.Index(fields=["seller", "status"], name="orders_order_seller_status_idx"),
        ]


class Booking(Fulfillable):
    """
    A service booking.

    Fields:
        package_id: Service package identifier
        scheduled_date / scheduled_time: Agreed appointment
        status: BookingStatus
        confirmed_at / started_at: Fulfillment timestamps
    """

    kind = FulfillmentKind.BOOKING

    package_id = models.CharField(
        max_length=64,
        help_text="Service package identifier",
    )

    scheduled_date = models.DateField(null=True, blank=True)
    scheduled_time = models.TimeField(null=True, blank=True)

    status = models.CharField(
        max_length=20,
        choices=BookingStatus.choices,
        default=BookingStatus.CREATED,
        db_index=True,
    )

    confirmed_at = models.DateTimeField(null=True, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)

    class Meta(Fulfillable.Meta):
        verbose_name = "Booking"
        verbose_name_plural = "Bookings"
        indexes = [
            models.Index(fields=["buyer", "status"], name="orders_booking_buyer_stat_idx"),
            models.Index(fields=["seller", "status"], name="orders_booking_seller_stat_idx"),
        ]


# Timestamp stamped when a record enters a status
STATUS_TIMESTAMP_FIELDS: dict[str, str] = {
    "paid": "paid_at",
    "shipped": "shipped_at",
    "delivered": "delivered_at",
    "confirmed": "confirmed_at",
    "in_progress": "started_at",
    "completed": "completed_at",
    "cancelled": "cancelled_at",
}


def model_for_kind(kind: str) -> type[Fulfillable]:
    if kind == FulfillmentKind.ORDER:
        return Order
    if kind == FulfillmentKind.BOOKING:
        return Booking
    raise ValueError(f"Unknown fulfillment kind: {kind!r}")
