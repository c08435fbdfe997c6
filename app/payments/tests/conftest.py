"""
Fixtures for payments tests.

Role fixtures (buyer, seller, admin_user) and API clients are defined in
the app-level conftest.py.
"""

import pytest

from orders.state_machines import OrderStatus
from orders.tests.factories import OrderFactory
from payments.services import EscrowService
from payments.state_machines import GatewayPaymentStatus


@pytest.fixture
def escrow(db):
    return EscrowService()


@pytest.fixture
def order(buyer, seller):
    """Unpaid 100.00 order between the buyer and seller fixtures."""
    return OrderFactory(buyer=buyer, seller=seller)


@pytest.fixture
def escrowed_order(buyer, seller, escrow):
    """Delivered order whose 100.00 is held in escrow at 20%."""
    order = OrderFactory(buyer=buyer, seller=seller, status=OrderStatus.DELIVERED)
    escrow.confirm_payment("order", order.id, "100.00", payment_reference="gw-escrowed")
    return order


@pytest.fixture
def gateway_payload():
    """Build a gateway webhook body for a record."""

    def _build(record, status=GatewayPaymentStatus.SUCCESS, amount="100.00", **extra):
        payload = {
            "transactionRef": str(record.id),
            "status": status,
            "amount": amount,
            "timestamp": "2025-01-15T10:30:00Z",
        }
        payload.update(extra)
        return payload

    return _build
