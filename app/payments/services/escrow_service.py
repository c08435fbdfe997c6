"""
Escrow service: the only writer of Transaction rows.

Implements the escrow lifecycle for orders and bookings:
1. open_pending: checkout started for a bank transfer, money not yet seen
2. confirm_payment: money confirmed, held in escrow (idempotent per parent)
3. release: seller payout released, platform keeps the commission
4. refund: buyer refunded in full or in part; any retained remainder is
   re-split at the original rate and released to the seller

Every write is one database transaction using a compare-and-swap on the
transaction's (status, version). The service is constructed with the
database alias it writes to; callers sharing an alias share the atomic
block, so a fulfillment status change and its escrow effect commit or
roll back together.

Usage:
    from payments.services import EscrowService

    escrow = EscrowService()
    txn = escrow.confirm_payment("order", order.id, Decimal("100.00"))
    escrow.release(txn.id)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DEFAULT_DB_ALIAS, IntegrityError, transaction
from django.utils import timezone

from django_fsm import can_proceed

from core.services import BaseService
from orders.exceptions import FulfillmentNotFoundError
from orders.models import model_for_kind
from payments.commission import calculate_commission
from payments.exceptions import (
    AmountMismatchError,
    InvalidAmountError,
    InvalidStateError,
    TransactionNotFoundError,
)
from payments.locks import lock_record, save_if_unchanged
from payments.models import Transaction
from payments.money import MoneyInput, to_money
from payments.state_machines import PaymentMethod, TransactionStatus

if TYPE_CHECKING:
    from decimal import Decimal
    from uuid import UUID

    from orders.models import Fulfillable


logger = logging.getLogger(__name__)


class EscrowService(BaseService):
    """
    Escrow manager for marketplace transactions.

    Methods:
        open_pending: Create a PENDING transaction at checkout
        confirm_payment: Create in ESCROW or move PENDING -> ESCROW
        release: ESCROW -> RELEASED
        refund: ESCROW -> REFUNDED (full or partial)
        get: Look up a transaction by id
        get_for_parent: Look up the transaction of an order/booking
    """

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    # =========================================================================
    # Lookups
    # =========================================================================

    def get(self, transaction_id: UUID | str) -> Transaction:
        try:
            return Transaction.objects.using(self.using).get(pk=transaction_id)
        except (Transaction.DoesNotExist, DjangoValidationError):
            raise TransactionNotFoundError(
                f"Transaction {transaction_id} not found",
                details={"transaction_id": str(transaction_id)},
            ) from None

    def get_for_parent(self, kind: str, parent_id: UUID | str) -> Transaction:
        """
        Raises:
            TransactionNotFoundError: If the parent has no transaction yet
        """
        txn = self.find_for_parent(kind, parent_id)
        if txn is None:
            raise TransactionNotFoundError(
                f"No transaction for {kind} {parent_id}",
                details={"kind": kind, "parent_id": str(parent_id)},
            )
        return txn

    def find_for_parent(
        self, kind: str, parent_id: UUID | str, *, for_update: bool = False
    ) -> Transaction | None:
        qs = Transaction.objects.using(self.using)
        if for_update:
            qs = qs.select_for_update()
        return qs.filter(**{f"{kind}_id": parent_id}).first()

    def _lock_parent(self, kind: str, parent_id: UUID | str) -> Fulfillable:
        return lock_record(
            model_for_kind(kind),
            parent_id,
            using=self.using,
            not_found_error=FulfillmentNotFoundError,
        )

    # =========================================================================
    # Creation
    # =========================================================================

    def _create(
        self,
        parent: Fulfillable,
        status: str,
        *,
        payment_method: str,
        payment_reference: str,
    ) -> Transaction:
        seller = parent.seller
        # Rate is read exactly once, here
        split = calculate_commission(parent.gross_amount, seller.commission_rate)
        now = timezone.now()

        return Transaction.objects.using(self.using).create(
            **{str(parent.kind): parent},
            buyer_id=parent.buyer_id,
            seller_id=parent.seller_id,
            amount=split.gross_amount,
            commission_rate=split.commission_rate,
            commission_amount=split.commission_amount,
            seller_payout=split.seller_payout,
            status=status,
            payment_method=payment_method,
            payment_reference=payment_reference,
            escrowed_at=now if status == TransactionStatus.ESCROW else None,
        )

    def open_pending(
        self,
        kind: str,
        parent_id: UUID | str,
        *,
        payment_method: str = PaymentMethod.BANK_TRANSFER,
    ) -> Transaction:
        """
        Create a PENDING transaction for a checkout awaiting payment.

        Idempotent: an existing transaction for the parent is returned as is.
        """
        with self.atomic():
            parent = self._lock_parent(kind, parent_id)
            existing = self.find_for_parent(kind, parent_id, for_update=True)
            if existing is not None:
                return existing

            txn = self._create(
                parent,
                TransactionStatus.PENDING,
                payment_method=payment_method,
                payment_reference="",
            )

        logger.info(
            "Opened pending transaction",
            extra={
                "transaction_id": str(txn.id),
                "kind": kind,
                "parent_id": str(parent_id),
                "amount": str(txn.amount),
                "commission_rate": str(txn.commission_rate),
            },
        )
        return txn

    # =========================================================================
    # Payment Confirmation
    # =========================================================================

    def confirm_payment(
        self,
        kind: str,
        parent_id: UUID | str,
        amount: MoneyInput,
        *,
        payment_reference: str = "",
        payment_method: str | None = None,
    ) -> Transaction:
        """
        Record that the buyer's money arrived and hold it in escrow.

        Idempotent by parent: confirming the same parent again with the
        same amount returns the existing transaction without writing.

        Raises:
            InvalidAmountError: Malformed or non-positive amount
            AmountMismatchError: Amount differs from the order/booking gross
                or from the transaction already recorded
            FulfillmentNotFoundError: Unknown parent
        """
        paid = to_money(amount)
        if paid <= 0:
            raise InvalidAmountError(
                "Payment amount must be positive",
                details={"amount": str(paid)},
            )

        with self.atomic():
            parent = self._lock_parent(kind, parent_id)
            txn = self.find_for_parent(kind, parent_id, for_update=True)

            if txn is not None:
                return self._confirm_existing(txn, paid, payment_reference)

            if paid != parent.gross_amount:
                raise AmountMismatchError(
                    f"Payment of {paid} does not match {kind} total {parent.gross_amount}",
                    details={
                        "kind": kind,
                        "parent_id": str(parent_id),
                        "amount": str(paid),
                        "expected_amount": str(parent.gross_amount),
                    },
                )

            try:
                with transaction.atomic(using=self.using):
                    txn = self._create(
                        parent,
                        TransactionStatus.ESCROW,
                        payment_method=payment_method or parent.payment_method,
                        payment_reference=payment_reference,
                    )
            except IntegrityError:
                # A concurrent confirmation created the row first
                txn = self.find_for_parent(kind, parent_id, for_update=True)
                if txn is None:
                    raise
                return self._confirm_existing(txn, paid, payment_reference)

        logger.info(
            "Payment confirmed into escrow",
            extra={
                "transaction_id": str(txn.id),
                "kind": kind,
                "parent_id": str(parent_id),
                "amount": str(txn.amount),
                "commission_amount": str(txn.commission_amount),
                "seller_payout": str(txn.seller_payout),
            },
        )
        return txn

    def _confirm_existing(
        self, txn: Transaction, paid: Decimal, payment_reference: str
    ) -> Transaction:
        if txn.amount != paid:
            raise AmountMismatchError(
                f"Transaction {txn.id} was recorded for {txn.amount}, not {paid}",
                details={
                    "transaction_id": str(txn.id),
                    "recorded_amount": str(txn.amount),
                    "amount": str(paid),
                },
            )

        if txn.status != TransactionStatus.PENDING:
            logger.info(
                "Payment already confirmed, returning existing transaction",
                extra={"transaction_id": str(txn.id), "status": txn.status},
            )
            return txn

        read_version, read_status = txn.version, txn.status
        txn.hold()
        update_fields = ["status", "escrowed_at"]
        if payment_reference:
            txn.payment_reference = payment_reference
            update_fields.append("payment_reference")

        save_if_unchanged(
            txn,
            expected_version=read_version,
            expected_status=read_status,
            update_fields=update_fields,
            using=self.using,
        )
        logger.info(
            "Pending transaction moved to escrow",
            extra={"transaction_id": str(txn.id), "amount": str(txn.amount)},
        )
        return txn

    # =========================================================================
    # Release & Refund
    # =========================================================================

    def _lock_transaction(self, transaction_id: UUID | str) -> Transaction:
        return lock_record(
            Transaction,
            transaction_id,
            using=self.using,
            not_found_error=TransactionNotFoundError,
        )

    def release(self, transaction_id: UUID | str) -> Transaction:
        """
        Release the seller payout.

        Raises:
            InvalidStateError: If the transaction is not in escrow
            StaleRecordError: If another writer changed it concurrently
        """
        with self.atomic():
            txn = self._lock_transaction(transaction_id)
            read_version, read_status = txn.version, txn.status

            if not can_proceed(txn.release):
                raise InvalidStateError(
                    f"Cannot release transaction in '{txn.status}' status",
                    details={
                        "transaction_id": str(txn.id),
                        "status": txn.status,
                        "operation": "release",
                    },
                )

            txn.release()
            save_if_unchanged(
                txn,
                expected_version=read_version,
                expected_status=read_status,
                update_fields=["status", "released_at"],
                using=self.using,
            )

        logger.info(
            "Escrow released to seller",
            extra={
                "transaction_id": str(txn.id),
                "seller_payout": str(txn.seller_payout),
                "commission_amount": str(txn.commission_amount),
            },
        )
        return txn

    def refund(self, transaction_id: UUID | str, amount: MoneyInput) -> Transaction:
        """
        Refund ``amount`` to the buyer.

        A partial refund re-splits the retained remainder at the original
        commission rate and releases it to the seller alongside the refund.

        Raises:
            InvalidStateError: If the transaction is not in escrow
            InvalidAmountError: If amount is not in (0, transaction amount]
            StaleRecordError: If another writer changed it concurrently
        """
        refund_amount = to_money(amount, label="Refund amount")

        with self.atomic():
            txn = self._lock_transaction(transaction_id)
            read_version, read_status = txn.version, txn.status

            if not can_proceed(txn.refund):
                raise InvalidStateError(
                    f"Cannot refund transaction in '{txn.status}' status",
                    details={
                        "transaction_id": str(txn.id),
                        "status": txn.status,
                        "operation": "refund",
                    },
                )

            if refund_amount <= 0 or refund_amount > txn.amount:
                raise InvalidAmountError(
                    f"Refund must be greater than 0 and at most {txn.amount}",
                    details={
                        "transaction_id": str(txn.id),
                        "amount": str(refund_amount),
                        "transaction_amount": str(txn.amount),
                    },
                )

            txn.refund(refund_amount)
            save_if_unchanged(
                txn,
                expected_version=read_version,
                expected_status=read_status,
                update_fields=[
                    "status",
                    "refunded_amount",
                    "commission_amount",
                    "seller_payout",
                    "refunded_at",
                    "released_at",
                ],
                using=self.using,
            )

        logger.info(
            "Escrow refunded to buyer",
            extra={
                "transaction_id": str(txn.id),
                "refunded_amount": str(txn.refunded_amount),
                "seller_payout": str(txn.seller_payout),
                "commission_amount": str(txn.commission_amount),
                "partial": txn.refunded_amount < txn.amount,
            },
        )
        return txn
