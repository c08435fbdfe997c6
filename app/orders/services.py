"""
Fulfillment service: the only writer of Order and Booking status.

Every status change is validated against the adjacency tables in
orders.state_machines, persisted with a compare-and-swap on
(status, version) and, where the edge has a financial meaning, applies the
escrow effect in the same database transaction:

    -> paid       EscrowService.confirm_payment(gross_amount)
    -> completed  EscrowService.release(...)   (the release trigger)
    -> cancelled  EscrowService.refund(full)   (only while money is in escrow)

Usage:
    from orders.services import FulfillmentService

    service = FulfillmentService()
    order = service.transition("order", order_id, "processing", request.user)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DEFAULT_DB_ALIAS
from django.utils import timezone

from core.services import BaseService
from orders.exceptions import FulfillmentNotFoundError, UnauthorizedTransitionError
from orders.models import STATUS_TIMESTAMP_FIELDS, model_for_kind
from orders.state_machines import (
    CANCELLED,
    COMPLETED,
    CREATED,
    PAID,
    ActorRole,
    FulfillmentKind,
    request_transition,
)
from payments.exceptions import InvalidStateError, StaleRecordError
from payments.locks import lock_record, save_if_unchanged
from payments.services import EscrowService
from payments.state_machines import PaymentMethod, TransactionStatus

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from authentication.models import User
    from orders.models import Fulfillable
    from payments.money import MoneyInput


logger = logging.getLogger(__name__)


def actor_role(actor: User | None) -> str:
    """Role used for the adjacency check; no actor means the system itself."""
    if actor is None:
        return ActorRole.SYSTEM
    return actor.role


class FulfillmentService(BaseService):
    """
    Order/booking state machine runner.

    Methods:
        get: Load an order or booking
        find_by_reference: Load the record behind a gateway reference
        transition: Validate and apply a requested status change
        apply: Same as transition on an already loaded record
        record_payment: Gateway confirmation, idempotent
        cancel_for_failed_payment: Gateway failure on an unpaid record
        open_checkout: Record how the buyer is going to pay
    """

    def __init__(self, escrow: EscrowService | None = None, using: str = DEFAULT_DB_ALIAS):
        self.using = using
        self.escrow = escrow or EscrowService(using=using)

    def get(self, kind: str, pk: UUID | str) -> Fulfillable:
        model_class = model_for_kind(kind)
        try:
            return model_class.objects.using(self.using).select_related("buyer", "seller").get(pk=pk)
        except (model_class.DoesNotExist, DjangoValidationError):
            raise FulfillmentNotFoundError(
                f"{model_class.__name__} {pk} not found",
                details={"kind": kind, "pk": str(pk)},
            ) from None

    def find_by_reference(self, transaction_ref: str, kind: str | None = None) -> Fulfillable:
        """
        Find the order or booking a gateway transaction reference points at.

        The reference is the record id. Without a kind hint orders are
        tried first, then bookings.
        """
        kinds = [kind] if kind else list(FulfillmentKind.values)
        for candidate in kinds:
            try:
                return self.get(candidate, transaction_ref)
            except FulfillmentNotFoundError:
                continue
        raise FulfillmentNotFoundError(
            f"No order or booking for reference {transaction_ref}",
            details={"transaction_ref": transaction_ref, "kind": kind},
        )

    def _lock(self, kind: str, pk: UUID | str) -> Fulfillable:
        return lock_record(
            model_for_kind(kind),
            pk,
            using=self.using,
            not_found_error=FulfillmentNotFoundError,
        )

    # =========================================================================
    # Transitions
    # =========================================================================

    def transition(
        self,
        kind: str,
        pk: UUID | str,
        target: str,
        actor: User | None,
        expected_version: int | None = None,
    ) -> Fulfillable:
        """
        Move an order or booking to ``target``.

        Args:
            kind: "order" or "booking"
            pk: Record id
            target: Requested status
            actor: Requesting user, None for the system
            expected_version: Version the client last saw; a mismatch is a conflict

        Raises:
            FulfillmentNotFoundError: Unknown record
            InvalidTransitionError: Edge not in the table
            UnauthorizedTransitionError: Role or ownership check failed
            StaleRecordError: Record changed since the client read it, or
                another writer already moved it to ``target``
        """
        with self.atomic():
            seen = self.get(kind, pk)
            record = self._lock(kind, pk)
            # A writer that held the row lock before us committed in between
            if (record.version, record.status) != (seen.version, seen.status) or (
                record.status == target
            ):
                raise StaleRecordError(
                    f"{record.__class__.__name__} {pk} was changed to '{record.status}' "
                    f"by another request",
                    details={
                        "kind": kind,
                        "pk": str(pk),
                        "requested_status": target,
                        "current_status": record.status,
                        "current_version": record.version,
                    },
                )
            if expected_version is not None and record.version != expected_version:
                raise StaleRecordError(
                    f"{record.__class__.__name__} {pk} is at version {record.version}, "
                    f"not {expected_version}",
                    details={
                        "kind": kind,
                        "pk": str(pk),
                        "expected_version": expected_version,
                        "current_version": record.version,
                    },
                )
            return self.apply(record, target, actor)

    def apply(
        self,
        record: Fulfillable,
        target: str,
        actor: User | None,
        *,
        extra_fields: Iterable[str] = (),
    ) -> Fulfillable:
        """
        Apply a transition to an already loaded record.

        The CAS matches the version and status held by ``record``, so two
        callers applying a change to the same snapshot cannot both win.
        """
        kind = record.kind
        role = actor_role(actor)

        if role not in (ActorRole.ADMIN, ActorRole.SYSTEM):
            owner_id = record.buyer_id if role == ActorRole.BUYER else record.seller_id
            if actor.pk != owner_id:
                raise UnauthorizedTransitionError(
                    f"User does not own this {kind}",
                    details={"kind": kind, "pk": str(record.pk), "actor_role": role},
                )

        request_transition(kind, record.status, target, role)

        read_version, read_status = record.version, record.status
        update_fields = ["status", *extra_fields]
        record.status = target
        timestamp_field = STATUS_TIMESTAMP_FIELDS.get(target)
        if timestamp_field and hasattr(record, timestamp_field):
            setattr(record, timestamp_field, timezone.now())
            update_fields.append(timestamp_field)

        with self.atomic():
            save_if_unchanged(
                record,
                expected_version=read_version,
                expected_status=read_status,
                update_fields=update_fields,
                using=self.using,
            )
            self._apply_escrow_effect(record, target)

        logger.info(
            f"{kind.capitalize()} status changed",
            extra={
                "kind": kind,
                "pk": str(record.pk),
                "from_status": read_status,
                "to_status": target,
                "actor_role": role,
                "actor_id": str(actor.pk) if actor else None,
                "version": record.version,
            },
        )
        return record

    def _apply_escrow_effect(self, record: Fulfillable, target: str) -> None:
        kind = record.kind

        if target == PAID:
            self.escrow.confirm_payment(
                kind,
                record.pk,
                record.gross_amount,
                payment_reference=record.payment_reference,
                payment_method=record.payment_method,
            )
        elif target == COMPLETED:
            txn = self.escrow.get_for_parent(kind, record.pk)
            self.escrow.release(txn.id)
        elif target == CANCELLED:
            txn = self.escrow.find_for_parent(kind, record.pk)
            # Pending means no money arrived; refunded means a return already settled it
            if txn is not None and txn.status == TransactionStatus.ESCROW:
                self.escrow.refund(txn.id, txn.amount)

    # =========================================================================
    # Gateway Entry Points
    # =========================================================================

    def record_payment(
        self,
        kind: str,
        pk: UUID | str,
        amount: MoneyInput,
        *,
        payment_reference: str = "",
        payment_method: str | None = None,
    ) -> Fulfillable:
        """
        Record a confirmed gateway payment.

        Idempotent: a record that is already paid (or further along) keeps
        its status, and the escrow confirmation is deduplicated by parent.

        Raises:
            InvalidStateError: The record was cancelled before the money arrived
            AmountMismatchError: Amount differs from the gross or recorded amount
        """
        with self.atomic():
            record = self._lock(kind, pk)
            if record.status == CANCELLED:
                raise InvalidStateError(
                    f"Payment received for cancelled {kind} {pk}",
                    details={
                        "kind": kind,
                        "pk": str(pk),
                        "status": record.status,
                        "payment_reference": payment_reference,
                    },
                )

            self.escrow.confirm_payment(
                kind,
                pk,
                amount,
                payment_reference=payment_reference,
                payment_method=payment_method,
            )

            if record.status != CREATED:
                logger.info(
                    "Payment already recorded",
                    extra={"kind": kind, "pk": str(pk), "status": record.status},
                )
                return record

            extra_fields = []
            if payment_reference:
                record.payment_reference = payment_reference
                extra_fields.append("payment_reference")
            if payment_method:
                record.payment_method = payment_method
                extra_fields.append("payment_method")
            return self.apply(record, PAID, None, extra_fields=extra_fields)

    def cancel_for_failed_payment(self, kind: str, pk: UUID | str) -> Fulfillable:
        """
        Cancel an unpaid record after the gateway reported a failure.

        Records that are already paid are left alone: a late failure
        notification never undoes a confirmed payment.
        """
        with self.atomic():
            record = self._lock(kind, pk)
            if record.status != CREATED:
                logger.warning(
                    "Ignoring payment failure for record that is not awaiting payment",
                    extra={"kind": kind, "pk": str(pk), "status": record.status},
                )
                return record
            return self.apply(record, CANCELLED, None)

    def open_checkout(
        self,
        kind: str,
        pk: UUID | str,
        actor: User,
        *,
        payment_method: str,
        success_indicator: str = "",
    ) -> Fulfillable:
        """
        Record the buyer's chosen payment method before payment.

        Card payments store the gateway success indicator used later by
        redirect verification. Bank transfers open a pending transaction
        that an admin confirms once the money is seen.
        """
        with self.atomic():
            record = self._lock(kind, pk)
            if actor.pk != record.buyer_id:
                raise UnauthorizedTransitionError(
                    f"Only the buyer can pay for this {kind}",
                    details={"kind": kind, "pk": str(pk)},
                )
            if record.status != CREATED:
                raise InvalidStateError(
                    f"Cannot check out {kind} in '{record.status}' status",
                    details={"kind": kind, "pk": str(pk), "status": record.status},
                )

            read_version = record.version
            record.payment_method = payment_method
            record.gateway_success_indicator = success_indicator
            save_if_unchanged(
                record,
                expected_version=read_version,
                expected_status=CREATED,
                update_fields=["payment_method", "gateway_success_indicator"],
                using=self.using,
            )

            if payment_method == PaymentMethod.BANK_TRANSFER:
                self.escrow.open_pending(kind, pk, payment_method=payment_method)

        logger.info(
            "Checkout opened",
            extra={"kind": kind, "pk": str(pk), "payment_method": payment_method},
        )
        return record
