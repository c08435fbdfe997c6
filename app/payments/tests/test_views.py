"""
API tests for checkout, verification, transaction listing, admin release
and seller balance endpoints.
"""

from decimal import Decimal

import pytest
from django.urls import reverse
from rest_framework import status

from authentication.tests.factories import BuyerFactory
from orders.models import Order
from orders.state_machines import OrderStatus
from orders.tests.factories import OrderFactory
from payments.models import Transaction
from payments.state_machines import PaymentMethod, TransactionStatus
from payments.tests.factories import TransactionFactory


class TestCheckoutView:
    url = reverse("payments:checkout")

    def test_card_checkout(self, buyer_client, order):
        response = buyer_client.post(
            self.url,
            {
                "transactionRef": str(order.id),
                "transactionType": "order",
                "paymentMethod": PaymentMethod.IPG,
                "successIndicator": "ind-1",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["status"] == OrderStatus.CREATED
        assert response.data["amount"] == "100.00"
        assert Order.objects.get(pk=order.id).gateway_success_indicator == "ind-1"
        assert not Transaction.objects.exists()

    def test_bank_transfer_opens_pending_transaction(self, buyer_client, order):
        response = buyer_client.post(
            self.url,
            {
                "transactionRef": str(order.id),
                "transactionType": "order",
                "paymentMethod": PaymentMethod.BANK_TRANSFER,
            },
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        txn = Transaction.objects.get(order_id=order.id)
        assert txn.status == TransactionStatus.PENDING
        assert txn.payment_method == PaymentMethod.BANK_TRANSFER

    def test_card_checkout_requires_indicator(self, buyer_client, order):
        response = buyer_client.post(
            self.url,
            {
                "transactionRef": str(order.id),
                "transactionType": "order",
                "paymentMethod": PaymentMethod.IPG,
            },
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "successIndicator" in response.data["details"]

    def test_sellers_cannot_check_out(self, seller_client, order):
        response = seller_client.post(
            self.url,
            {
                "transactionRef": str(order.id),
                "transactionType": "order",
                "paymentMethod": PaymentMethod.BANK_TRANSFER,
            },
            format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_another_buyers_order(self, api_client, order):
        api_client.force_authenticate(user=BuyerFactory())

        response = api_client.post(
            self.url,
            {
                "transactionRef": str(order.id),
                "transactionType": "order",
                "paymentMethod": PaymentMethod.BANK_TRANSFER,
            },
            format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["error_code"] == "UNAUTHORIZED_TRANSITION"


class TestPaymentVerifyView:
    url = reverse("payments:verify")

    def test_verified(self, buyer_client, buyer, seller):
        order = OrderFactory(buyer=buyer, seller=seller, gateway_success_indicator="ind-2")

        response = buyer_client.post(
            self.url,
            {"transactionRef": str(order.id), "resultIndicator": "ind-2"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"success": True, "message": "Payment verified"}
        assert Order.objects.get(pk=order.id).status == OrderStatus.PAID

    def test_not_verified(self, buyer_client, buyer, seller):
        order = OrderFactory(buyer=buyer, seller=seller, gateway_success_indicator="ind-2")

        response = buyer_client.post(
            self.url,
            {"transactionRef": str(order.id), "resultIndicator": "nope"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["success"] is False


class TestTransactionListView:
    url = reverse("payments:transaction_list")

    @pytest.fixture
    def transactions(self, buyer, seller):
        mine = TransactionFactory(order=OrderFactory(buyer=buyer, seller=seller))
        released = TransactionFactory(
            order=OrderFactory(buyer=buyer, seller=seller, status=OrderStatus.COMPLETED),
            status=TransactionStatus.RELEASED,
        )
        other = TransactionFactory()
        return mine, released, other

    def test_buyer_sees_own_purchases(self, buyer_client, transactions):
        mine, released, _ = transactions

        response = buyer_client.get(self.url)

        assert response.status_code == status.HTTP_200_OK
        ids = {row["id"] for row in response.data["results"]}
        assert ids == {str(mine.id), str(released.id)}

    def test_seller_filters_by_status(self, seller_client, transactions):
        _, released, _ = transactions

        response = seller_client.get(self.url, {"status": TransactionStatus.RELEASED})

        assert [row["id"] for row in response.data["results"]] == [str(released.id)]
        row = response.data["results"][0]
        assert row["kind"] == "order"
        assert row["parent_status"] == OrderStatus.COMPLETED
        assert row["seller_payout"] == "80.00"

    def test_admin_sees_everything(self, admin_client, transactions):
        response = admin_client.get(self.url)

        assert len(response.data["results"]) == 3

    def test_requires_authentication(self, api_client):
        assert api_client.get(self.url).status_code == status.HTTP_401_UNAUTHORIZED


class TestTransactionReleaseView:
    def url(self, txn):
        return reverse("payments:transaction_release", kwargs={"transaction_id": txn.id})

    def test_admin_releases_delivered_order(self, admin_client, escrowed_order):
        """
        Given a delivered order with 100.00 in escrow
        When an admin releases it
        Then the order completes and the seller's 80.00 is released
        """
        txn = Transaction.objects.get(order_id=escrowed_order.id)

        response = admin_client.post(self.url(txn))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["status"] == TransactionStatus.RELEASED
        assert response.data["parent_status"] == OrderStatus.COMPLETED
        assert Order.objects.get(pk=escrowed_order.id).status == OrderStatus.COMPLETED
        assert Transaction.objects.get(pk=txn.id).released_at is not None

    def test_undelivered_order_cannot_be_released(self, admin_client, buyer, seller):
        txn = TransactionFactory(
            order=OrderFactory(buyer=buyer, seller=seller, status=OrderStatus.PAID)
        )

        response = admin_client.post(self.url(txn))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "INVALID_TRANSITION"
        assert Transaction.objects.get(pk=txn.id).status == TransactionStatus.ESCROW

    def test_repeated_release_is_409(self, admin_client, escrowed_order):
        """
        Given an order whose escrow an admin already released
        When the admin releases it again
        Then the answer is a 409 naming the released status and nothing changes
        """
        txn = Transaction.objects.get(order_id=escrowed_order.id)
        admin_client.post(self.url(txn))
        released_at = Transaction.objects.get(pk=txn.id).released_at

        response = admin_client.post(self.url(txn))

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "INVALID_STATE"
        assert Transaction.objects.get(pk=txn.id).released_at == released_at

    def test_refunded_transaction_cannot_be_released(self, admin_client, escrowed_order, escrow):
        txn = Transaction.objects.get(order_id=escrowed_order.id)
        escrow.refund(txn.id, txn.amount)

        response = admin_client.post(self.url(txn))

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "INVALID_STATE"
        assert Order.objects.get(pk=escrowed_order.id).status == OrderStatus.DELIVERED

    def test_sellers_cannot_release(self, seller_client, escrowed_order):
        txn = Transaction.objects.get(order_id=escrowed_order.id)

        response = seller_client.post(self.url(txn))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unknown_transaction(self, admin_client):
        response = admin_client.post(
            reverse(
                "payments:transaction_release",
                kwargs={"transaction_id": "00000000-0000-0000-0000-000000000000"},
            )
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "TRANSACTION_NOT_FOUND"


class TestSellerBalanceView:
    url = reverse("payments:balance")

    def test_seller_balance(self, seller_client, escrowed_order):
        response = seller_client.get(self.url)

        assert response.status_code == status.HTTP_200_OK
        assert Decimal(response.data["in_escrow"]) == Decimal("80.00")
        assert Decimal(response.data["available"]) == Decimal("0.00")

    def test_buyers_have_no_balance(self, buyer_client):
        response = buyer_client.get(self.url)

        assert response.status_code == status.HTTP_403_FORBIDDEN
