"""
Buyer redirect verification.

When the buyer returns from the hosted gateway page the browser carries a
``resultIndicator``. It must equal the ``successIndicator`` the gateway
issued when the checkout session was created (stored on the order or
booking as ``gateway_success_indicator``). A match proves the payment
succeeded even if the gateway webhook has not arrived yet, so the payment
is recorded here; the later webhook is then a duplicate.

Usage:
    from payments.services.verification_service import PaymentVerificationService

    result = PaymentVerificationService().verify(
        request.user, transaction_ref, result_indicator, transaction_type="order"
    )
    return Response({"success": result.success, "message": result.message})
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.db import DEFAULT_DB_ALIAS

from core.exceptions import PermissionDeniedError
from core.services import BaseService
from orders.services import FulfillmentService
from orders.state_machines import CANCELLED, CREATED

if TYPE_CHECKING:
    from authentication.models import User


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationResult:
    success: bool
    message: str


class PaymentVerificationService(BaseService):
    """Reconciles the gateway redirect result with server-side payment state."""

    def __init__(
        self,
        fulfillment: FulfillmentService | None = None,
        using: str = DEFAULT_DB_ALIAS,
    ):
        self.using = using
        self.fulfillment = fulfillment or FulfillmentService(using=using)

    def verify(
        self,
        actor: User,
        transaction_ref: str,
        result_indicator: str,
        *,
        transaction_type: str | None = None,
    ) -> VerificationResult:
        """
        Verify the gateway redirect for the actor's order or booking.

        Raises:
            FulfillmentNotFoundError: Unknown reference
            PermissionDeniedError: The actor is not the buyer
        """
        record = self.fulfillment.find_by_reference(transaction_ref, transaction_type)
        kind = record.kind

        if actor.pk != record.buyer_id:
            raise PermissionDeniedError(
                f"Only the buyer can verify payment for this {kind}",
                details={"kind": kind, "pk": str(record.pk)},
            )

        log_extra = {"kind": kind, "pk": str(record.pk), "status": record.status}

        if record.status == CANCELLED:
            logger.info("Verification for cancelled record", extra=log_extra)
            return VerificationResult(False, f"This {kind} was cancelled")

        if record.status != CREATED:
            # Webhook (or an earlier verification) got there first
            return VerificationResult(True, "Payment already confirmed")

        expected = record.gateway_success_indicator
        if not expected or not hmac.compare_digest(expected.encode(), (result_indicator or "").encode()):
            logger.warning("Payment verification failed: indicator mismatch", extra=log_extra)
            return VerificationResult(False, "Payment could not be verified")

        self.fulfillment.record_payment(
            kind,
            record.pk,
            record.gross_amount,
            payment_reference=result_indicator,
            payment_method=record.payment_method,
        )
        logger.info("Payment verified from gateway redirect", extra=log_extra)
        return VerificationResult(True, "Payment verified")
