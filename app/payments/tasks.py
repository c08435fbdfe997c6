"""
Celery tasks for gateway webhook processing.

- process_webhook_event: Apply one stored delivery to its order/booking
- retry_failed_webhooks: Periodic re-queue of failed deliveries
- cleanup_stuck_webhooks: Periodic reset of deliveries a dead worker left
  in PROCESSING

Usage:
    from payments.tasks import process_webhook_event

    process_webhook_event.delay(str(webhook_event.id))

Periodic tasks are scheduled in settings.CELERY_BEAT_SCHEDULE.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from uuid import UUID

from celery import shared_task
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from payments.models import WebhookEvent
from payments.state_machines import WebhookEventStatus

logger = logging.getLogger(__name__)

STUCK_PROCESSING_THRESHOLD_MINUTES = 30
RETRY_BATCH_SIZE = 100


def _event_extra(webhook_event: WebhookEvent, **extra) -> dict:
    return {
        "webhook_event_id": str(webhook_event.id),
        "event_key": webhook_event.event_key,
        **extra,
    }


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": settings.WEBHOOK_MAX_RETRIES},
    acks_late=True,
)
def process_webhook_event(self, webhook_event_id: str) -> dict:
    """
    Dispatch a stored gateway delivery to its handler.

    Handler rejections (amount mismatch, unknown reference, cancelled
    record) mark the event FAILED and return normally; the periodic retry
    picks it up again. Unexpected exceptions also mark it FAILED and are
    re-raised so Celery retries with backoff.

    Returns:
        {"status": "processed" | "handler_failed" | "already_processed"
                   | "not_found", "webhook_event_id": ...}
    """
    from payments.webhooks.handlers import dispatch_webhook

    webhook_event = WebhookEvent.objects.filter(id=UUID(str(webhook_event_id))).first()
    if webhook_event is None:
        logger.error("WebhookEvent not found", extra={"webhook_event_id": str(webhook_event_id)})
        return {"status": "not_found", "webhook_event_id": str(webhook_event_id)}

    if webhook_event.is_processed:
        logger.info("WebhookEvent already processed, skipping", extra=_event_extra(webhook_event))
        return {"status": "already_processed", "webhook_event_id": str(webhook_event.id)}

    webhook_event.mark_processing()
    webhook_event.save()
    logger.info(
        f"Dispatching webhook: {webhook_event.event_type}",
        extra=_event_extra(
            webhook_event,
            event_type=webhook_event.event_type,
            retry_count=webhook_event.retry_count,
        ),
    )

    try:
        with transaction.atomic():
            result = dispatch_webhook(webhook_event)
    except Exception as e:
        webhook_event.mark_failed(f"{type(e).__name__}: {e}")
        webhook_event.save()
        logger.exception("Webhook processing raised", extra=_event_extra(webhook_event))
        raise

    if result.success:
        webhook_event.mark_processed()
        webhook_event.save()
        logger.info("Webhook processed", extra=_event_extra(webhook_event))
        return {
            "status": "processed",
            "webhook_event_id": str(webhook_event.id),
            "event_key": webhook_event.event_key,
        }

    error_msg = result.error or "Handler returned failure"
    webhook_event.mark_failed(error_msg)
    webhook_event.save()
    logger.warning(
        f"Webhook rejected by handler: {error_msg}",
        extra=_event_extra(webhook_event, error_code=result.error_code),
    )
    return {
        "status": "handler_failed",
        "webhook_event_id": str(webhook_event.id),
        "error": error_msg,
        "error_code": result.error_code,
    }


@shared_task
def retry_failed_webhooks() -> dict:
    """Re-queue failed events below WEBHOOK_MAX_RETRIES attempts, oldest first."""
    failed = WebhookEvent.objects.filter(
        status=WebhookEventStatus.FAILED,
        retry_count__lt=settings.WEBHOOK_MAX_RETRIES,
    ).order_by("created_at")[:RETRY_BATCH_SIZE]

    queued_count = 0
    for webhook_event in failed:
        process_webhook_event.delay(str(webhook_event.id))
        queued_count += 1
        logger.info(
            "Re-queued failed webhook",
            extra=_event_extra(webhook_event, retry_count=webhook_event.retry_count),
        )

    if queued_count:
        logger.info(f"Re-queued {queued_count} failed webhooks", extra={"queued_count": queued_count})
    return {"queued_count": queued_count}


@shared_task
def cleanup_stuck_webhooks() -> dict:
    """
    Reset events stuck in PROCESSING past the threshold to FAILED.

    A worker that crashed mid-dispatch leaves its event in PROCESSING;
    once reset, retry_failed_webhooks queues it again.
    """
    threshold = timezone.now() - timedelta(minutes=STUCK_PROCESSING_THRESHOLD_MINUTES)
    stuck = WebhookEvent.objects.filter(
        status=WebhookEventStatus.PROCESSING,
        updated_at__lt=threshold,
    )

    reset_count = 0
    for webhook_event in stuck:
        stuck_since = webhook_event.updated_at
        webhook_event.mark_failed("Processing timed out - reset for retry")
        webhook_event.save()
        reset_count += 1
        logger.warning(
            "Reset stuck webhook",
            extra=_event_extra(webhook_event, stuck_since=stuck_since.isoformat()),
        )

    return {"reset_count": reset_count}
