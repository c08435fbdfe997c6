"""
Tests for webhook processing tasks.

Tasks are called directly (synchronously); retry_failed_webhooks queues
through .delay(), which runs eagerly in tests.
"""

import uuid
from datetime import timedelta

import pytest
from django.test import override_settings
from django.utils import timezone

from orders.models import Order
from orders.state_machines import OrderStatus
from payments.models import Transaction, WebhookEvent
from payments.state_machines import WebhookEventStatus
from payments.tasks import (
    STUCK_PROCESSING_THRESHOLD_MINUTES,
    cleanup_stuck_webhooks,
    process_webhook_event,
    retry_failed_webhooks,
)
from payments.tests.factories import WebhookEventFactory


@pytest.fixture
def success_event(order, gateway_payload):
    return WebhookEventFactory(transaction_ref=str(order.id), payload=gateway_payload(order))


class TestProcessWebhookEvent:
    """Tests for process_webhook_event."""

    def test_processes_pending_event(self, success_event, order):
        """
        Given a pending payment.success event for an unpaid order
        When the task runs
        Then the order is paid and the event is marked processed
        """
        result = process_webhook_event(str(success_event.id))

        assert result["status"] == "processed"
        event = WebhookEvent.objects.get(pk=success_event.id)
        assert event.status == WebhookEventStatus.PROCESSED
        assert event.processed_at is not None
        assert event.retry_count == 1
        assert Order.objects.get(pk=order.id).status == OrderStatus.PAID

    def test_unknown_event(self, db):
        result = process_webhook_event(str(uuid.uuid4()))

        assert result["status"] == "not_found"

    def test_processed_event_is_skipped(self, db):
        event = WebhookEventFactory(status=WebhookEventStatus.PROCESSED)

        result = process_webhook_event(str(event.id))

        assert result["status"] == "already_processed"
        assert WebhookEvent.objects.get(pk=event.id).retry_count == 0

    def test_handler_failure_marks_event_failed(self, order, gateway_payload):
        event = WebhookEventFactory(payload=gateway_payload(order, amount="99.00"))

        result = process_webhook_event(str(event.id))

        assert result["status"] == "handler_failed"
        assert result["error_code"] == "AMOUNT_MISMATCH"
        event = WebhookEvent.objects.get(pk=event.id)
        assert event.status == WebhookEventStatus.FAILED
        assert event.can_retry is True
        assert not Transaction.objects.exists()

    def test_failed_event_succeeds_on_retry(self, success_event, order):
        process_webhook_event(str(success_event.id))
        WebhookEvent.objects.filter(pk=success_event.id).update(
            status=WebhookEventStatus.FAILED, error_message="boom"
        )

        result = process_webhook_event(str(success_event.id))

        assert result["status"] == "processed"
        event = WebhookEvent.objects.get(pk=success_event.id)
        assert event.error_message is None
        assert event.retry_count == 2
        assert Transaction.objects.filter(order_id=order.id).count() == 1


class TestRetryFailedWebhooks:
    def test_requeues_failed_events_below_limit(self, success_event):
        WebhookEvent.objects.filter(pk=success_event.id).update(
            status=WebhookEventStatus.FAILED, retry_count=1
        )

        result = retry_failed_webhooks()

        assert result == {"queued_count": 1}
        assert WebhookEvent.objects.get(pk=success_event.id).status == WebhookEventStatus.PROCESSED

    @override_settings(WEBHOOK_MAX_RETRIES=3)
    def test_skips_events_at_limit(self, db):
        WebhookEventFactory(status=WebhookEventStatus.FAILED, retry_count=3)

        assert retry_failed_webhooks() == {"queued_count": 0}

    def test_ignores_other_statuses(self, db):
        WebhookEventFactory(status=WebhookEventStatus.PENDING)
        WebhookEventFactory(status=WebhookEventStatus.PROCESSED)

        assert retry_failed_webhooks() == {"queued_count": 0}


class TestCleanupStuckWebhooks:
    def test_resets_stale_processing_events(self, db):
        stuck = WebhookEventFactory(status=WebhookEventStatus.PROCESSING)
        fresh = WebhookEventFactory(status=WebhookEventStatus.PROCESSING)
        WebhookEvent.objects.filter(pk=stuck.id).update(
            updated_at=timezone.now()
            - timedelta(minutes=STUCK_PROCESSING_THRESHOLD_MINUTES + 5)
        )

        result = cleanup_stuck_webhooks()

        assert result == {"reset_count": 1}
        stuck = WebhookEvent.objects.get(pk=stuck.id)
        assert stuck.status == WebhookEventStatus.FAILED
        assert "timed out" in stuck.error_message
        assert WebhookEvent.objects.get(pk=fresh.id).status == WebhookEventStatus.PROCESSING

    def test_nothing_to_reset(self, db):
        assert cleanup_stuck_webhooks() == {"reset_count": 0}
