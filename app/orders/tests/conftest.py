"""
Fixtures for order and booking tests.
"""

import pytest

from orders.services import FulfillmentService
from orders.state_machines import OrderStatus
from orders.tests.factories import OrderFactory
from payments.services import EscrowService


@pytest.fixture
def fulfillment(db):
    return FulfillmentService()


@pytest.fixture
def escrow(db):
    return EscrowService()


@pytest.fixture
def paid_order(buyer, seller, escrow):
    """Paid order with its 100.00 in escrow at the seller's 20% rate."""
    order = OrderFactory(buyer=buyer, seller=seller, status=OrderStatus.PAID)
    escrow.confirm_payment("order", order.id, order.gross_amount, payment_reference="ref-paid")
    return order
