"""
Handlers for stored gateway webhook events.

Each handler takes a WebhookEvent and returns a ServiceResult. Domain
errors become failed results so the task records them on the event;
anything else propagates and Celery retries.
"""

from __future__ import annotations

import logging
from typing import Callable

from core.exceptions import BaseApplicationError
from core.services import ServiceResult
from orders.services import FulfillmentService
from payments.models import WebhookEvent
from payments.state_machines import GatewayPaymentStatus

logger = logging.getLogger(__name__)

Handler = Callable[[WebhookEvent], ServiceResult]

PAYMENT_SUCCESS = "payment.success"
PAYMENT_FAILED = "payment.failed"

EVENT_TYPES: dict[str, str] = {
    GatewayPaymentStatus.SUCCESS: PAYMENT_SUCCESS,
    GatewayPaymentStatus.FAILED: PAYMENT_FAILED,
    GatewayPaymentStatus.CANCELLED: PAYMENT_FAILED,
}

WEBHOOK_HANDLERS: dict[str, Handler] = {}


def register_handler(event_type: str) -> Callable[[Handler], Handler]:
    def decorator(func: Handler) -> Handler:
        WEBHOOK_HANDLERS[event_type] = func
        return func

    return decorator


def dispatch_webhook(webhook_event: WebhookEvent) -> ServiceResult:
    """Run the handler for the event's type; unknown types succeed as no-ops."""
    handler = WEBHOOK_HANDLERS.get(webhook_event.event_type)
    if handler is None:
        logger.info(
            f"Ignoring webhook type {webhook_event.event_type}",
            extra={"event_key": webhook_event.event_key},
        )
        return ServiceResult.ok()
    return handler(webhook_event)


def _rejected(webhook_event: WebhookEvent, error: BaseApplicationError) -> ServiceResult:
    logger.warning(
        f"{webhook_event.event_type} rejected: {error.message}",
        extra={"event_key": webhook_event.event_key, "error_code": error.error_code},
    )
    return ServiceResult.from_exception(error)


def _applied(record) -> ServiceResult:
    return ServiceResult.ok({"kind": record.kind, "pk": str(record.pk), "status": record.status})


@register_handler(PAYMENT_SUCCESS)
def handle_payment_success(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Record the payment and open escrow for the order or booking.

    Repeat deliveries are harmless: recording is idempotent per record.
    """
    payload = webhook_event.payload
    fulfillment = FulfillmentService()

    # JSON numbers decode as float; str() recovers the decimal the gateway sent
    amount = payload.get("amount")
    if isinstance(amount, float):
        amount = str(amount)

    try:
        record = fulfillment.find_by_reference(payload["transactionRef"], payload.get("transactionType"))
        record = fulfillment.record_payment(
            record.kind,
            record.pk,
            amount,
            payment_reference=payload.get("gatewayReference") or webhook_event.event_key,
            payment_method=payload.get("paymentMethod") or None,
        )
    except BaseApplicationError as e:
        return _rejected(webhook_event, e)
    return _applied(record)


@register_handler(PAYMENT_FAILED)
def handle_payment_failed(webhook_event: WebhookEvent) -> ServiceResult:
    """Cancel a still-unpaid order or booking; paid ones are left alone."""
    payload = webhook_event.payload
    fulfillment = FulfillmentService()

    try:
        record = fulfillment.find_by_reference(payload["transactionRef"], payload.get("transactionType"))
        record = fulfillment.cancel_for_failed_payment(record.kind, record.pk)
    except BaseApplicationError as e:
        return _rejected(webhook_event, e)
    return _applied(record)
