"""
Tests for EscrowService.

Covers:
1. Payment confirmation (create in escrow, pending -> escrow, idempotency)
2. Commission snapshot at creation
3. Release and full/partial refunds with the ledger identity
4. State guards and optimistic locking
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from authentication.models import User
from orders.exceptions import FulfillmentNotFoundError
from orders.tests.factories import BookingFactory
from payments.exceptions import (
    AmountMismatchError,
    InvalidAmountError,
    InvalidStateError,
    StaleRecordError,
    TransactionNotFoundError,
)
from payments.locks import save_if_unchanged
from payments.models import Transaction
from payments.state_machines import PaymentMethod, TransactionStatus


class TestConfirmPayment:
    """Tests for EscrowService.confirm_payment()."""

    def test_creates_escrow_transaction_with_snapshot(self, escrow, order):
        """
        Given an unpaid 100.00 order from a 20% seller
        When payment is confirmed
        Then a transaction is held in escrow with a 20.00 / 80.00 split
        """
        # Act
        txn = escrow.confirm_payment("order", order.id, "100.00", payment_reference="gw-1")

        # Assert
        assert txn.status == TransactionStatus.ESCROW
        assert txn.amount == Decimal("100.00")
        assert txn.commission_rate == Decimal("20.00")
        assert txn.commission_amount == Decimal("20.00")
        assert txn.seller_payout == Decimal("80.00")
        assert txn.refunded_amount == Decimal("0.00")
        assert txn.payment_reference == "gw-1"
        assert txn.buyer_id == order.buyer_id
        assert txn.seller_id == order.seller_id
        assert txn.escrowed_at is not None
        assert txn.is_balanced

    def test_same_confirmation_twice_returns_same_row(self, escrow, order):
        first = escrow.confirm_payment("order", order.id, "100.00")
        second = escrow.confirm_payment("order", order.id, Decimal("100.00"))

        assert first.id == second.id
        assert Transaction.objects.filter(order_id=order.id).count() == 1
        assert Transaction.objects.get(pk=first.id).version == 1

    def test_amount_differs_from_gross(self, escrow, order):
        with pytest.raises(AmountMismatchError) as exc_info:
            escrow.confirm_payment("order", order.id, "90.00")

        assert exc_info.value.details["expected_amount"] == "100.00"
        assert not Transaction.objects.filter(order_id=order.id).exists()

    def test_amount_differs_from_recorded_transaction(self, escrow, order):
        escrow.confirm_payment("order", order.id, "100.00")

        with pytest.raises(AmountMismatchError) as exc_info:
            escrow.confirm_payment("order", order.id, "100.01")

        assert exc_info.value.details["recorded_amount"] == "100.00"

    @pytest.mark.parametrize("amount", ["0", "-5.00"])
    def test_non_positive_amount(self, escrow, order, amount):
        with pytest.raises(InvalidAmountError):
            escrow.confirm_payment("order", order.id, amount)

    def test_float_amount_is_refused(self, escrow, order):
        with pytest.raises(InvalidAmountError):
            escrow.confirm_payment("order", order.id, 100.0)

    def test_unknown_parent(self, escrow):
        with pytest.raises(FulfillmentNotFoundError):
            escrow.confirm_payment("order", uuid4(), "100.00")

    def test_moves_pending_transaction_to_escrow(self, escrow, order):
        pending = escrow.open_pending("order", order.id)

        txn = escrow.confirm_payment("order", order.id, "100.00", payment_reference="bank-77")

        assert txn.id == pending.id
        assert txn.status == TransactionStatus.ESCROW
        assert txn.payment_reference == "bank-77"
        assert txn.version == 2

    def test_booking_parent(self, escrow, seller):
        booking = BookingFactory(seller=seller, gross_amount=Decimal("250.00"))

        txn = escrow.confirm_payment("booking", booking.id, "250.00")

        assert txn.booking_id == booking.id
        assert txn.order_id is None
        assert txn.parent_kind == "booking"
        assert txn.commission_amount == Decimal("50.00")


class TestCommissionSnapshot:
    def test_rate_change_after_creation_does_not_affect_release(self, escrow, escrowed_order):
        """
        Given a transaction created at 20%
        When the seller's rate changes to 5% before release
        Then release still pays out at the snapshotted 20%
        """
        # Arrange
        User.objects.filter(pk=escrowed_order.seller_id).update(commission_rate=Decimal("5.00"))
        txn = escrow.get_for_parent("order", escrowed_order.id)

        # Act
        released = escrow.release(txn.id)

        # Assert
        assert released.commission_rate == Decimal("20.00")
        assert released.commission_amount == Decimal("20.00")
        assert released.seller_payout == Decimal("80.00")

    def test_open_pending_snapshots_rate(self, escrow, order):
        txn = escrow.open_pending("order", order.id)
        User.objects.filter(pk=order.seller_id).update(commission_rate=Decimal("50.00"))

        confirmed = escrow.confirm_payment("order", order.id, "100.00")

        assert confirmed.commission_rate == Decimal("20.00")
        assert confirmed.id == txn.id


class TestOpenPending:
    def test_is_idempotent(self, escrow, order):
        first = escrow.open_pending("order", order.id)
        second = escrow.open_pending("order", order.id, payment_method=PaymentMethod.IPG)

        assert first.id == second.id
        assert second.status == TransactionStatus.PENDING
        assert second.payment_method == PaymentMethod.BANK_TRANSFER


class TestRelease:
    def test_release_from_escrow(self, escrow, escrowed_order):
        txn = escrow.get_for_parent("order", escrowed_order.id)

        released = escrow.release(txn.id)

        stored = Transaction.objects.get(pk=txn.id)
        assert released.status == TransactionStatus.RELEASED
        assert stored.status == TransactionStatus.RELEASED
        assert stored.released_at is not None
        assert stored.version == 2

    def test_release_twice_is_invalid(self, escrow, escrowed_order):
        txn = escrow.get_for_parent("order", escrowed_order.id)
        escrow.release(txn.id)

        with pytest.raises(InvalidStateError) as exc_info:
            escrow.release(txn.id)

        assert exc_info.value.details["status"] == TransactionStatus.RELEASED

    def test_refunded_cannot_be_released(self, escrow, escrowed_order):
        """
        Given a transaction refunded in full
        When a release is attempted
        Then InvalidStateError is raised and the seller is paid nothing
        """
        # Arrange
        txn = escrow.get_for_parent("order", escrowed_order.id)
        escrow.refund(txn.id, "100.00")

        # Act
        with pytest.raises(InvalidStateError) as exc_info:
            escrow.release(txn.id)

        # Assert
        assert exc_info.value.details["status"] == TransactionStatus.REFUNDED
        stored = Transaction.objects.get(pk=txn.id)
        assert stored.status == TransactionStatus.REFUNDED
        assert stored.seller_payout == Decimal("0.00")
        assert stored.released_at is None

    def test_pending_cannot_be_released(self, escrow, order):
        txn = escrow.open_pending("order", order.id)

        with pytest.raises(InvalidStateError):
            escrow.release(txn.id)

    def test_unknown_transaction(self, escrow):
        with pytest.raises(TransactionNotFoundError):
            escrow.release(uuid4())


class TestRefund:
    """Tests for EscrowService.refund()."""

    def test_full_refund_zeroes_commission_and_payout(self, escrow, escrowed_order):
        txn = escrow.get_for_parent("order", escrowed_order.id)

        refunded = escrow.refund(txn.id, "100.00")

        assert refunded.status == TransactionStatus.REFUNDED
        assert refunded.refunded_amount == Decimal("100.00")
        assert refunded.commission_amount == Decimal("0.00")
        assert refunded.seller_payout == Decimal("0.00")
        assert refunded.released_at is None
        assert refunded.is_balanced

    def test_partial_refund_resplits_remainder(self, escrow, escrowed_order):
        """
        Given 100.00 in escrow at 20%
        When 60.00 is refunded
        Then the retained 40.00 splits into 8.00 commission and 32.00 payout
        """
        # Arrange
        txn = escrow.get_for_parent("order", escrowed_order.id)

        # Act
        escrow.refund(txn.id, "60.00")

        # Assert
        stored = Transaction.objects.get(pk=txn.id)
        assert stored.status == TransactionStatus.REFUNDED
        assert stored.refunded_amount == Decimal("60.00")
        assert stored.commission_amount == Decimal("8.00")
        assert stored.seller_payout == Decimal("32.00")
        assert stored.released_at is not None
        assert stored.is_balanced

    @pytest.mark.parametrize("amount", ["0.00", "100.01", "-1.00"])
    def test_amount_out_of_range(self, escrow, escrowed_order, amount):
        txn = escrow.get_for_parent("order", escrowed_order.id)

        with pytest.raises(InvalidAmountError):
            escrow.refund(txn.id, amount)

        assert Transaction.objects.get(pk=txn.id).status == TransactionStatus.ESCROW

    def test_refund_after_release_is_invalid(self, escrow, escrowed_order):
        """
        Given 100.00 at 20% released to the seller
        When a refund is attempted
        Then InvalidStateError is raised and the payout stands
        """
        txn = escrow.get_for_parent("order", escrowed_order.id)
        escrow.release(txn.id)

        with pytest.raises(InvalidStateError):
            escrow.refund(txn.id, "10.00")

        stored = Transaction.objects.get(pk=txn.id)
        assert stored.status == TransactionStatus.RELEASED
        assert stored.seller_payout == Decimal("80.00")

    def test_refund_twice_is_invalid(self, escrow, escrowed_order):
        txn = escrow.get_for_parent("order", escrowed_order.id)
        escrow.refund(txn.id, "30.00")

        with pytest.raises(InvalidStateError):
            escrow.refund(txn.id, "30.00")


class TestOptimisticLocking:
    def test_stale_snapshot_cannot_overwrite(self, escrowed_order):
        """
        Given two copies of an escrow transaction read at the same version
        When one is released and the other refunded
        Then the second write raises StaleRecordError
        """
        # Arrange
        first = Transaction.objects.get(order_id=escrowed_order.id)
        second = Transaction.objects.get(order_id=escrowed_order.id)

        # Act
        first.release()
        save_if_unchanged(
            first,
            expected_version=1,
            expected_status=TransactionStatus.ESCROW,
            update_fields=["status", "released_at"],
        )
        second.refund(Decimal("100.00"))

        # Assert
        with pytest.raises(StaleRecordError):
            save_if_unchanged(
                second,
                expected_version=1,
                expected_status=TransactionStatus.ESCROW,
                update_fields=["status", "refunded_amount", "commission_amount", "seller_payout"],
            )
        stored = Transaction.objects.get(pk=first.pk)
        assert stored.status == TransactionStatus.RELEASED
        assert stored.refunded_amount == Decimal("0.00")
        assert stored.version == 2


class TestLookups:
    def test_get_malformed_id(self, escrow):
        with pytest.raises(TransactionNotFoundError):
            escrow.get("not-a-uuid")

    def test_get_for_parent_without_transaction(self, escrow, order):
        with pytest.raises(TransactionNotFoundError):
            escrow.get_for_parent("order", order.id)

    def test_find_for_parent_returns_none(self, escrow, order):
        assert escrow.find_for_parent("order", order.id) is None
