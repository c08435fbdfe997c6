"""
Factory Boy factories for orders and bookings.

Records are created directly in the requested status; the transaction
behind a paid record is created separately (see payments.tests.factories
or EscrowService) so each test states the money it expects.

Usage:
    from orders.tests.factories import BookingFactory, OrderFactory

    order = OrderFactory(status=OrderStatus.DELIVERED, gross_amount=Decimal("250.00"))
"""

from decimal import Decimal

import factory

from authentication.tests.factories import BuyerFactory, SellerFactory
from orders.models import Booking, Order
from orders.state_machines import BookingStatus, OrderStatus
from payments.state_machines import PaymentMethod


class FulfillableFactory(factory.django.DjangoModelFactory):
    class Meta:
        abstract = True

    buyer = factory.SubFactory(BuyerFactory)
    seller = factory.SubFactory(SellerFactory)
    gross_amount = Decimal("100.00")
    payment_method = PaymentMethod.IPG


class OrderFactory(FulfillableFactory):
    class Meta:
        model = Order

    variant_id = factory.Sequence(lambda n: f"variant-{n}")
    quantity = 1
    status = OrderStatus.CREATED


class BookingFactory(FulfillableFactory):
    class Meta:
        model = Booking

    package_id = factory.Sequence(lambda n: f"package-{n}")
    status = BookingStatus.CREATED
