"""
Return/dispute resolver.

Runs the return request workflow and feeds the admin's decision back into
escrow:

    approve, money still in escrow  -> EscrowService.refund(approved amount),
                                       request refunded, parent cancelled
    approve, money already released -> request flagged for manual clawback,
                                       PostReleaseRefundError after commit
    reject                          -> request completed, no money moves

Request bodies arrive as the dataclasses below, built by the serializers.

Usage:
    from returns.services import AdminDecisionParams, ReturnResolver

    resolver = ReturnResolver()
    resolver.adjudicate(admin, request_id, AdminDecisionParams(decision="approve"))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS
from django.db.models import F
from django.utils import timezone

from authentication.models import UserRole
from core.exceptions import PermissionDeniedError
from core.services import BaseService
from orders.exceptions import FulfillmentNotFoundError
from orders.models import model_for_kind
from orders.services import FulfillmentService
from orders.state_machines import CANCELLED, RETURNABLE_STATUSES, FulfillmentKind
from payments.commission import calculate_commission
from payments.exceptions import (
    InvalidAmountError,
    InvalidStateError,
    PostReleaseRefundError,
    StaleRecordError,
)
from payments.locks import lock_record, save_if_unchanged
from payments.money import MoneyInput, to_money
from payments.services import EscrowService
from payments.state_machines import TransactionStatus
from returns.exceptions import (
    ActiveReturnExistsError,
    ReturnAttemptsExceededError,
    ReturnNotEligibleError,
    ReturnNotFoundError,
)
from returns.models import ReturnRequest
from returns.state_machines import (
    Decision,
    ReturnStatus,
    SellerStatus,
    check_return_transition,
)

if TYPE_CHECKING:
    from uuid import UUID

    from authentication.models import User
    from orders.models import Fulfillable
    from payments.models import Transaction


logger = logging.getLogger(__name__)


# =============================================================================
# Parameters
# =============================================================================


@dataclass(frozen=True)
class OpenReturnParams:
    kind: str
    parent_id: UUID | str
    reason: str
    description: str
    requested_refund_amount: MoneyInput | None = None
    evidence_urls: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SellerResponseParams:
    decision: str
    response: str = ""
    proposed_refund_amount: MoneyInput | None = None
    expected_version: int | None = None


@dataclass(frozen=True)
class AdminDecisionParams:
    decision: str
    approved_refund_amount: MoneyInput | None = None
    admin_notes: str = ""
    expected_version: int | None = None


# =============================================================================
# Resolver
# =============================================================================


class ReturnResolver(BaseService):
    """
    Return request workflow.

    Methods:
        open_request: Buyer opens a request on a delivered/completed record
        respond_as_seller: Seller's one-time advisory response
        adjudicate: Admin's binding decision and its escrow effect
        settle_clawback: Admin confirms a manual clawback was collected
    """

    def __init__(self, escrow: EscrowService | None = None, using: str = DEFAULT_DB_ALIAS):
        self.using = using
        self.escrow = escrow or EscrowService(using=using)
        self.fulfillment = FulfillmentService(escrow=self.escrow, using=using)

    def _lock(self, pk: UUID | str) -> ReturnRequest:
        return lock_record(ReturnRequest, pk, using=self.using, not_found_error=ReturnNotFoundError)

    def _lock_parent(self, kind: str, parent_id: UUID | str) -> Fulfillable:
        return lock_record(
            model_for_kind(kind),
            parent_id,
            using=self.using,
            not_found_error=FulfillmentNotFoundError,
        )

    def _save(self, request: ReturnRequest, read_version: int, read_status: str, fields: list[str]):
        save_if_unchanged(
            request,
            expected_version=read_version,
            expected_status=read_status,
            update_fields=fields,
            using=self.using,
        )

    @staticmethod
    def _check_version(request: ReturnRequest, expected_version: int | None) -> None:
        if expected_version is not None and request.version != expected_version:
            raise StaleRecordError(
                f"Return request {request.id} is at version {request.version}, "
                f"not {expected_version}",
                details={
                    "return_request_id": str(request.id),
                    "expected_version": expected_version,
                    "current_version": request.version,
                },
            )

    # =========================================================================
    # Buyer
    # =========================================================================

    def open_request(self, actor: User, params: OpenReturnParams) -> ReturnRequest:
        """
        Open a return request.

        Raises:
            PermissionDeniedError: Actor is not the buyer of the record
            FulfillmentNotFoundError: Unknown order/booking
            ReturnNotEligibleError: Record is not delivered/completed
            ActiveReturnExistsError: Another request is still open
            ReturnAttemptsExceededError: Order reached MAX_RETURN_ATTEMPTS
            InvalidAmountError: Requested amount not in (0, gross]
        """
        kind = params.kind
        if actor.role != UserRole.BUYER:
            raise PermissionDeniedError("Only buyers can open return requests")

        with self.atomic():
            parent = self._lock_parent(kind, params.parent_id)
            if parent.buyer_id != actor.pk:
                raise PermissionDeniedError(
                    f"You did not buy this {kind}",
                    details={"kind": kind, "pk": str(parent.pk)},
                )

            if parent.status not in RETURNABLE_STATUSES[kind]:
                raise ReturnNotEligibleError(
                    f"Returns cannot be requested for a {kind} in '{parent.status}' status",
                    details={
                        "kind": kind,
                        "pk": str(parent.pk),
                        "status": parent.status,
                        "returnable_statuses": sorted(RETURNABLE_STATUSES[kind]),
                    },
                )

            existing = (
                ReturnRequest.objects.using(self.using)
                .for_parent(kind, parent.pk)
                .active()
                .first()
            )
            if existing is not None:
                raise ActiveReturnExistsError(
                    f"An active return request already exists for this {kind}",
                    details={"existing_request_id": str(existing.id)},
                )

            if kind == FulfillmentKind.ORDER:
                max_attempts = settings.MAX_RETURN_ATTEMPTS
                if parent.return_attempt_count >= max_attempts:
                    raise ReturnAttemptsExceededError(
                        f"Maximum return request limit reached ({max_attempts} attempts)",
                        details={
                            "attempt_count": parent.return_attempt_count,
                            "max_attempts": max_attempts,
                        },
                    )

            requested = self._bounded_amount(
                params.requested_refund_amount,
                default=parent.gross_amount,
                ceiling=parent.gross_amount,
                label="Requested refund",
            )

            request = ReturnRequest.objects.using(self.using).create(
                **{str(kind): parent},
                buyer_id=parent.buyer_id,
                seller_id=parent.seller_id,
                reason=params.reason,
                description=params.description,
                evidence_urls=list(params.evidence_urls),
                requested_refund_amount=requested,
            )

            if kind == FulfillmentKind.ORDER:
                # Counter only; the order's status and version are untouched
                model_for_kind(kind).objects.using(self.using).filter(pk=parent.pk).update(
                    return_attempt_count=F("return_attempt_count") + 1
                )

        logger.info(
            "Return request opened",
            extra={
                "return_request_id": str(request.id),
                "kind": kind,
                "parent_id": str(parent.pk),
                "requested_refund_amount": str(requested),
                "reason": params.reason,
            },
        )
        return request

    @staticmethod
    def _bounded_amount(
        value: MoneyInput | None, *, default: Decimal, ceiling: Decimal, label: str
    ) -> Decimal:
        amount = default if value is None else to_money(value, label=label)
        if amount <= 0 or amount > ceiling:
            raise InvalidAmountError(
                f"{label} must be greater than 0 and at most {ceiling}",
                details={"amount": str(amount), "maximum": str(ceiling)},
            )
        return amount

    # =========================================================================
    # Seller
    # =========================================================================

    def respond_as_seller(
        self, actor: User, pk: UUID | str, params: SellerResponseParams
    ) -> ReturnRequest:
        """
        Record the seller's advisory response. Allowed once, from pending.

        Raises:
            PermissionDeniedError: Actor is not the request's seller
            InvalidReturnTransitionError: Already responded or decided
            InvalidAmountError: Proposal not in (0, gross]
        """
        with self.atomic():
            request = self._lock(pk)
            if actor.pk != request.seller_id:
                raise PermissionDeniedError(
                    "Only the seller can respond to this return request",
                    details={"return_request_id": str(request.id)},
                )
            self._check_version(request, params.expected_version)

            target = (
                ReturnStatus.SELLER_APPROVED
                if params.decision == Decision.APPROVE
                else ReturnStatus.SELLER_REJECTED
            )
            check_return_transition(request.status, target)

            proposal = None
            if params.proposed_refund_amount is not None:
                gross = request.parent.gross_amount
                proposal = self._bounded_amount(
                    params.proposed_refund_amount,
                    default=gross,
                    ceiling=gross,
                    label="Proposed refund",
                )

            read_version, read_status = request.version, request.status
            request.status = target
            request.seller_status = (
                SellerStatus.APPROVED if params.decision == Decision.APPROVE else SellerStatus.REJECTED
            )
            request.seller_proposed_refund_amount = proposal
            request.seller_response = params.response
            request.seller_responded_at = timezone.now()
            self._save(
                request,
                read_version,
                read_status,
                [
                    "status",
                    "seller_status",
                    "seller_proposed_refund_amount",
                    "seller_response",
                    "seller_responded_at",
                ],
            )

        logger.info(
            "Seller responded to return request",
            extra={
                "return_request_id": str(request.id),
                "seller_status": request.seller_status,
                "proposed_refund_amount": str(proposal) if proposal is not None else None,
            },
        )
        return request

    # =========================================================================
    # Admin
    # =========================================================================

    def adjudicate(
        self, actor: User, pk: UUID | str, params: AdminDecisionParams
    ) -> ReturnRequest:
        """
        Apply the admin's binding decision.

        Deciding a pending request skips the seller and is recorded as an
        admin override. Submitting the decision already stored returns the
        request unchanged.

        Raises:
            PermissionDeniedError: Actor is not an admin
            InvalidReturnTransitionError: Request already decided differently
            InvalidAmountError: Approved amount not in (0, transaction amount]
            InvalidStateError: Transaction neither in escrow nor released
            PostReleaseRefundError: Approved after release; the request is
                saved with requires_manual_clawback before this is raised
        """
        if actor.role != UserRole.ADMIN:
            raise PermissionDeniedError("Only admins can decide return requests")

        with self.atomic():
            request = self._lock(pk)

            if self._is_repeat(request, params):
                logger.info(
                    "Repeated admin decision ignored",
                    extra={"return_request_id": str(request.id), "decision": params.decision},
                )
                return request

            self._check_version(request, params.expected_version)

            if params.decision == Decision.REJECT:
                self._reject(request, actor, params)
            else:
                self._approve(request, actor, params)

        logger.info(
            "Admin decided return request",
            extra={
                "return_request_id": str(request.id),
                "decision": params.decision,
                "status": request.status,
                "approved_refund_amount": (
                    str(request.approved_refund_amount)
                    if request.approved_refund_amount is not None
                    else None
                ),
                "admin_override": request.admin_override,
                "requires_manual_clawback": request.requires_manual_clawback,
            },
        )

        if request.requires_manual_clawback and request.status == ReturnStatus.ADMIN_APPROVED:
            raise PostReleaseRefundError(
                "Refund approved after the seller payout was released; manual clawback required",
                details={
                    "return_request_id": str(request.id),
                    "approved_refund_amount": str(request.approved_refund_amount),
                    "commission_reversed_amount": str(request.commission_reversed_amount),
                    "requires_manual_clawback": True,
                },
            )
        return request

    @staticmethod
    def _is_repeat(request: ReturnRequest, params: AdminDecisionParams) -> bool:
        if not request.admin_decision or request.admin_decision != params.decision:
            return False
        if params.decision == Decision.REJECT or params.approved_refund_amount is None:
            return True
        return to_money(params.approved_refund_amount) == request.approved_refund_amount

    def _record_decision(
        self, request: ReturnRequest, actor: User, params: AdminDecisionParams, target: str
    ) -> None:
        check_return_transition(request.status, target)
        now = timezone.now()
        request.admin_override = request.status == ReturnStatus.PENDING
        request.admin_decision = params.decision
        request.admin_reviewed_by = actor
        request.admin_notes = params.admin_notes
        request.admin_reviewed_at = now
        request.resolved_at = now
        request.status = target

    _DECISION_FIELDS = [
        "status",
        "admin_decision",
        "admin_override",
        "admin_reviewed_by",
        "admin_notes",
        "admin_reviewed_at",
        "resolved_at",
    ]

    def _reject(self, request: ReturnRequest, actor: User, params: AdminDecisionParams) -> None:
        read_version, read_status = request.version, request.status

        self._record_decision(request, actor, params, ReturnStatus.ADMIN_REJECTED)
        check_return_transition(request.status, ReturnStatus.COMPLETED)
        request.status = ReturnStatus.COMPLETED
        request.completed_at = request.resolved_at

        self._save(request, read_version, read_status, [*self._DECISION_FIELDS, "completed_at"])

    def _approve(self, request: ReturnRequest, actor: User, params: AdminDecisionParams) -> None:
        read_version, read_status = request.version, request.status
        kind, parent_id = request.parent_kind, request.parent_id
        # Parent before transaction, the order every fulfillment write uses
        self._lock_parent(kind, parent_id)
        txn = self.escrow.get_for_parent(kind, parent_id)
        default_amount = (
            request.seller_proposed_refund_amount
            if request.seller_proposed_refund_amount is not None
            else request.requested_refund_amount
        )
        amount = self._bounded_amount(
            params.approved_refund_amount,
            default=default_amount,
            ceiling=txn.amount,
            label="Approved refund",
        )

        self._record_decision(request, actor, params, ReturnStatus.ADMIN_APPROVED)
        request.approved_refund_amount = amount
        fields = [*self._DECISION_FIELDS, "approved_refund_amount", "commission_reversed_amount"]

        if txn.status == TransactionStatus.ESCROW:
            commission_before = txn.commission_amount
            txn = self.escrow.refund(txn.id, amount)
            request.commission_reversed_amount = commission_before - txn.commission_amount

            check_return_transition(request.status, ReturnStatus.REFUNDED)
            request.status = ReturnStatus.REFUNDED
            request.refunded_at = timezone.now()
            fields.append("refunded_at")
            self._save(request, read_version, read_status, fields)

            # Return path: the refund above already settled escrow
            self.fulfillment.transition(kind, parent_id, CANCELLED, actor)
            return

        if txn.status == TransactionStatus.RELEASED:
            request.commission_reversed_amount = self._clawback_commission(txn, amount)
            request.requires_manual_clawback = True
            fields.append("requires_manual_clawback")
            self._save(request, read_version, read_status, fields)
            logger.warning(
                "Return approved after escrow release, manual clawback required",
                extra={
                    "return_request_id": str(request.id),
                    "transaction_id": str(txn.id),
                    "approved_refund_amount": str(amount),
                },
            )
            return

        raise InvalidStateError(
            f"Cannot refund transaction in '{txn.status}' status",
            details={"transaction_id": str(txn.id), "status": txn.status},
        )

    @staticmethod
    def _clawback_commission(txn: Transaction, amount: Decimal) -> Decimal:
        """Commission the platform gives back if the clawback is collected."""
        retained = calculate_commission(txn.amount - amount, txn.commission_rate)
        return txn.commission_amount - retained.commission_amount

    def settle_clawback(self, actor: User, pk: UUID | str) -> ReturnRequest:
        """
        Mark a flagged post-release refund as collected from the seller.

        Raises:
            PermissionDeniedError: Actor is not an admin
            InvalidStateError: Request is not awaiting a clawback
        """
        if actor.role != UserRole.ADMIN:
            raise PermissionDeniedError("Only admins can settle clawbacks")

        with self.atomic():
            request = self._lock(pk)
            if not request.requires_manual_clawback or request.clawback_settled_at is not None:
                raise InvalidStateError(
                    "Return request is not awaiting a manual clawback",
                    details={
                        "return_request_id": str(request.id),
                        "status": request.status,
                        "requires_manual_clawback": request.requires_manual_clawback,
                    },
                )
            check_return_transition(request.status, ReturnStatus.REFUNDED)

            read_version, read_status = request.version, request.status
            now = timezone.now()
            request.status = ReturnStatus.REFUNDED
            request.clawback_settled_at = now
            request.refunded_at = now
            self._save(
                request, read_version, read_status, ["status", "clawback_settled_at", "refunded_at"]
            )

        logger.info(
            "Manual clawback settled",
            extra={
                "return_request_id": str(request.id),
                "admin_id": str(actor.pk),
                "approved_refund_amount": str(request.approved_refund_amount),
            },
        )
        return request
