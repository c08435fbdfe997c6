"""
Gateway webhook endpoint.

POST /api/v1/payments/webhooks/payment/ authenticates the shared secret,
validates the body, stores it as a WebhookEvent keyed by
"{transactionRef}:{status}:{timestamp}" and queues process_webhook_event.
Order and escrow changes happen in the worker, not in the request.
"""

from __future__ import annotations

import hmac
import logging

from django.conf import settings
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.decorators import (
    api_view,
    authentication_classes,
    permission_classes,
    throttle_classes,
)
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from payments.exceptions import WebhookAuthenticationError
from payments.models import WebhookEvent
from payments.serializers import GatewayWebhookSerializer
from payments.state_machines import WebhookEventStatus
from payments.webhooks.handlers import EVENT_TYPES

logger = logging.getLogger(__name__)

SECRET_HEADER = "X-Webhook-Secret"


def verify_webhook_secret(received: str) -> None:
    """Constant-time check; an unset PAYMENT_WEBHOOK_SECRET rejects everything."""
    expected = settings.PAYMENT_WEBHOOK_SECRET
    if not expected:
        logger.error("PAYMENT_WEBHOOK_SECRET is empty; refusing webhook deliveries")
        raise WebhookAuthenticationError("Webhook secret not configured")

    if not received or not hmac.compare_digest(expected.encode(), received.encode()):
        logger.warning("Webhook secret mismatch", extra={"secret_present": bool(received)})
        raise WebhookAuthenticationError("Invalid webhook secret")


@extend_schema(
    operation_id="payment_webhook",
    summary="Payment gateway webhook",
    request=GatewayWebhookSerializer,
    responses={
        200: OpenApiResponse(description="Event accepted (new or duplicate)"),
        400: OpenApiResponse(description="Malformed payload"),
        401: OpenApiResponse(description="Missing or invalid X-Webhook-Secret"),
    },
    tags=["Payments - Webhooks"],
)
@api_view(["POST"])
@authentication_classes([])
@permission_classes([AllowAny])
@throttle_classes([])
def payment_webhook(request):
    """
    A redelivery of an already processed event answers already_processed
    and queues nothing; an unprocessed one is queued again. A bad secret
    answers 401 before anything is stored.
    """
    verify_webhook_secret(request.headers.get(SECRET_HEADER, ""))

    serializer = GatewayWebhookSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    event_key = WebhookEvent.build_key(data["transactionRef"], data["status"], data["timestamp"])
    webhook_event, created = WebhookEvent.objects.get_or_create(
        event_key=event_key,
        defaults={
            "event_type": EVENT_TYPES[data["status"]],
            "payload": request.data,
            "status": WebhookEventStatus.PENDING,
        },
    )
    log_extra = {"event_key": event_key, "webhook_event_id": str(webhook_event.id)}

    if not created and webhook_event.is_processed:
        logger.info("Duplicate delivery of processed webhook", extra=log_extra)
        return Response({"status": "already_processed"}, status=status.HTTP_200_OK)

    logger.info(
        f"{'Stored' if created else 'Redelivered'} {webhook_event.event_type} webhook "
        f"({webhook_event.status})",
        extra=log_extra,
    )

    from payments.tasks import process_webhook_event

    try:
        process_webhook_event.delay(str(webhook_event.id))
    except Exception:
        # Stored already; the next redelivery or the periodic retry queues it
        logger.exception("Could not queue webhook", extra=log_extra)

    return Response({"status": "accepted"}, status=status.HTTP_200_OK)
