"""
Factory Boy factories for payment test data.

TransactionFactory builds a balanced ledger row for an order at the
seller's rate. Status is an FSM field: set it only at creation and move
it afterwards through EscrowService.

Usage:
    from payments.tests.factories import TransactionFactory, WebhookEventFactory

    txn = TransactionFactory(status=TransactionStatus.ESCROW)
    event = WebhookEventFactory(status=WebhookEventStatus.FAILED, retry_count=2)
"""

import uuid
from decimal import Decimal

import factory

from orders.tests.factories import OrderFactory
from payments.models import Transaction, WebhookEvent
from payments.state_machines import (
    GatewayPaymentStatus,
    PaymentMethod,
    TransactionStatus,
    WebhookEventStatus,
)
from payments.webhooks.handlers import PAYMENT_SUCCESS


class TransactionFactory(factory.django.DjangoModelFactory):
    """
    Default: 100.00 in escrow for a new order, 20% commission.

    Example:
        txn = TransactionFactory(order=order, status=TransactionStatus.RELEASED)
    """

    class Meta:
        model = Transaction

    order = factory.SubFactory(OrderFactory)
    booking = None
    buyer = factory.LazyAttribute(lambda o: o.order.buyer)
    seller = factory.LazyAttribute(lambda o: o.order.seller)
    amount = factory.LazyAttribute(lambda o: o.order.gross_amount)
    commission_rate = Decimal("20.00")
    commission_amount = Decimal("20.00")
    seller_payout = Decimal("80.00")
    refunded_amount = Decimal("0.00")
    status = TransactionStatus.ESCROW
    payment_method = PaymentMethod.IPG
    payment_reference = factory.Sequence(lambda n: f"gw-ref-{n}")


class WebhookEventFactory(factory.django.DjangoModelFactory):
    """
    Default: a pending payment.success event for a random reference.

    Example:
        event = WebhookEventFactory(payload=gateway_payload(order))
    """

    class Meta:
        model = WebhookEvent

    class Params:
        transaction_ref = factory.LazyFunction(lambda: str(uuid.uuid4()))

    event_key = factory.LazyAttributeSequence(
        lambda o, n: WebhookEvent.build_key(
            o.transaction_ref, GatewayPaymentStatus.SUCCESS, f"2025-01-15T10:30:{n % 60:02d}Z"
        )
    )
    event_type = PAYMENT_SUCCESS
    payload = factory.LazyAttribute(
        lambda o: {
            "transactionRef": o.transaction_ref,
            "status": GatewayPaymentStatus.SUCCESS,
            "amount": "100.00",
            "timestamp": "2025-01-15T10:30:00Z",
        }
    )
    status = WebhookEventStatus.PENDING
    retry_count = 0
