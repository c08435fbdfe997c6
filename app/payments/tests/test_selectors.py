"""
Tests for payments read-side selectors.
"""

from decimal import Decimal

from orders.state_machines import OrderStatus
from orders.tests.factories import OrderFactory
from payments.selectors import seller_balance, to_transaction_view, transactions_for
from payments.state_machines import TransactionStatus
from payments.tests.factories import TransactionFactory


def _txn(buyer, seller, **kwargs):
    order_status = kwargs.pop("order_status", OrderStatus.PAID)
    return TransactionFactory(
        order=OrderFactory(buyer=buyer, seller=seller, status=order_status), **kwargs
    )


class TestTransactionsFor:
    def test_visibility_by_role(self, buyer, seller, admin_user):
        own = _txn(buyer, seller)
        other = TransactionFactory()

        assert list(transactions_for(buyer)) == [own]
        assert list(transactions_for(seller)) == [own]
        assert set(transactions_for(admin_user)) == {own, other}

    def test_status_filter(self, buyer, seller):
        _txn(buyer, seller)
        released = _txn(
            buyer, seller, order_status=OrderStatus.COMPLETED, status=TransactionStatus.RELEASED
        )

        assert list(transactions_for(seller, status=TransactionStatus.RELEASED)) == [released]


class TestToTransactionView:
    def test_joins_parent_and_parties(self, buyer, seller):
        txn = _txn(buyer, seller)

        view = to_transaction_view(txn)

        assert view.kind == "order"
        assert view.parent_id == txn.order_id
        assert view.parent_status == OrderStatus.PAID
        assert view.buyer_email == buyer.email
        assert view.seller_email == seller.email
        assert view.seller_payout == Decimal("80.00")


class TestSellerBalance:
    """Tests for seller_balance()."""

    def test_empty(self, seller):
        balance = seller_balance(seller)

        assert balance.in_escrow == Decimal("0.00")
        assert balance.available == Decimal("0.00")
        assert balance.refunded_to_buyers == Decimal("0.00")

    def test_sums_by_status(self, buyer, seller):
        """
        Given one pending, one escrowed, one released and one partially
        refunded transaction (60 of 100 refunded)
        When the seller's balance is computed
        Then refunded rows count their retained payout as available
        """
        # Arrange
        _txn(buyer, seller, order_status=OrderStatus.CREATED, status=TransactionStatus.PENDING)
        _txn(buyer, seller)
        _txn(buyer, seller, order_status=OrderStatus.COMPLETED, status=TransactionStatus.RELEASED)
        _txn(
            buyer,
            seller,
            order_status=OrderStatus.CANCELLED,
            status=TransactionStatus.REFUNDED,
            refunded_amount=Decimal("60.00"),
            commission_amount=Decimal("8.00"),
            seller_payout=Decimal("32.00"),
        )
        TransactionFactory()

        # Act
        balance = seller_balance(seller)

        # Assert
        assert balance.pending == Decimal("80.00")
        assert balance.in_escrow == Decimal("80.00")
        assert balance.available == Decimal("112.00")
        assert balance.commission_paid == Decimal("28.00")
        assert balance.refunded_to_buyers == Decimal("60.00")
