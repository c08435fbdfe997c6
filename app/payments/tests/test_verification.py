"""
Tests for PaymentVerificationService (gateway redirect verification).
"""

import pytest

from core.exceptions import PermissionDeniedError
from orders.exceptions import FulfillmentNotFoundError
from orders.models import Order
from orders.state_machines import OrderStatus
from orders.tests.factories import OrderFactory
from payments.models import Transaction
from payments.services.verification_service import PaymentVerificationService
from payments.state_machines import TransactionStatus


@pytest.fixture
def verifier():
    return PaymentVerificationService()


@pytest.fixture
def checked_out_order(buyer, seller):
    return OrderFactory(buyer=buyer, seller=seller, gateway_success_indicator="ind-7f3a")


class TestVerify:
    """Tests for PaymentVerificationService.verify."""

    def test_matching_indicator_records_payment(self, verifier, checked_out_order, buyer):
        """
        Given an unpaid order checked out with indicator ind-7f3a
        When the buyer returns with resultIndicator ind-7f3a
        Then the payment is recorded before any webhook arrives
        """
        # Act
        result = verifier.verify(buyer, str(checked_out_order.id), "ind-7f3a")

        # Assert
        assert result.success is True
        assert result.message == "Payment verified"
        assert Order.objects.get(pk=checked_out_order.id).status == OrderStatus.PAID
        txn = Transaction.objects.get(order_id=checked_out_order.id)
        assert txn.status == TransactionStatus.ESCROW
        assert txn.payment_reference == "ind-7f3a"

    def test_mismatched_indicator(self, verifier, checked_out_order, buyer):
        result = verifier.verify(buyer, str(checked_out_order.id), "forged")

        assert result.success is False
        assert Order.objects.get(pk=checked_out_order.id).status == OrderStatus.CREATED
        assert not Transaction.objects.exists()

    def test_order_without_indicator_never_verifies(self, verifier, order, buyer):
        result = verifier.verify(buyer, str(order.id), "")

        assert result.success is False

    def test_already_paid(self, verifier, buyer, seller):
        paid = OrderFactory(buyer=buyer, seller=seller, status=OrderStatus.PAID)

        result = verifier.verify(buyer, str(paid.id), "anything")

        assert result.success is True
        assert result.message == "Payment already confirmed"

    def test_cancelled(self, verifier, buyer, seller):
        cancelled = OrderFactory(buyer=buyer, seller=seller, status=OrderStatus.CANCELLED)

        result = verifier.verify(buyer, str(cancelled.id), "anything")

        assert result.success is False
        assert "cancelled" in result.message

    def test_only_the_buyer_can_verify(self, verifier, checked_out_order, seller):
        with pytest.raises(PermissionDeniedError):
            verifier.verify(seller, str(checked_out_order.id), "ind-7f3a")

    def test_unknown_reference(self, verifier, buyer):
        with pytest.raises(FulfillmentNotFoundError):
            verifier.verify(buyer, "not-a-uuid", "ind-7f3a")
