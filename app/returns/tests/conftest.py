"""
Fixtures for returns tests.

delivered_order holds its 100.00 in escrow; completed_order has already
been released to the seller.
"""

import pytest

from orders.state_machines import OrderStatus
from orders.tests.factories import OrderFactory
from payments.services import EscrowService
from payments.state_machines import TransactionStatus
from payments.tests.factories import TransactionFactory
from returns.services import ReturnResolver
from returns.tests.factories import ReturnRequestFactory


@pytest.fixture
def resolver():
    return ReturnResolver()


@pytest.fixture
def delivered_order(buyer, seller):
    order = OrderFactory(buyer=buyer, seller=seller, status=OrderStatus.DELIVERED)
    EscrowService().confirm_payment("order", order.id, "100.00", payment_reference="gw-returns")
    return order


@pytest.fixture
def completed_order(buyer, seller):
    order = OrderFactory(buyer=buyer, seller=seller, status=OrderStatus.COMPLETED)
    TransactionFactory(order=order, status=TransactionStatus.RELEASED)
    return order


@pytest.fixture
def pending_request(delivered_order):
    return ReturnRequestFactory(order=delivered_order)
