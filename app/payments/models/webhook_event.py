"""
Stored gateway deliveries.

The gateway notifies at least once, so every delivery is written under a
natural key derived from its body ("{ref}:{status}:{timestamp}"). A
redelivery hits the unique constraint and resolves to the row already
stored; its state decides whether anything is queued again.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.state_machines import WebhookEventStatus


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    One gateway delivery and its processing state.

    PENDING on receipt, PROCESSING while process_webhook_event runs the
    handler, then PROCESSED or FAILED. retry_count counts handler runs;
    the periodic retry stops at settings.WEBHOOK_MAX_RETRIES.
    The mark_* helpers only mutate; callers save.
    """

    event_key = models.CharField(max_length=255, unique=True)
    event_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="payment.success or payment.failed",
    )
    payload = models.JSONField()
    status = models.CharField(
        max_length=20,
        choices=WebhookEventStatus.choices,
        default=WebhookEventStatus.PENDING,
        db_index=True,
    )
    processed_at = models.DateTimeField(null=True, blank=True)
    error_message = models.TextField(null=True, blank=True)
    retry_count = models.PositiveSmallIntegerField(default=0)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="payments_wh_status_created_idx"),
            models.Index(fields=["status", "retry_count"], name="payments_wh_status_retry_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.event_type} {self.event_key} [{self.status}]"

    @staticmethod
    def build_key(transaction_ref: str, status: str, timestamp: str) -> str:
        return f"{transaction_ref}:{status}:{timestamp}"

    @property
    def is_processed(self) -> bool:
        return self.status == WebhookEventStatus.PROCESSED

    @property
    def can_retry(self) -> bool:
        return (
            self.status == WebhookEventStatus.FAILED
            and self.retry_count < settings.WEBHOOK_MAX_RETRIES
        )

    def mark_processing(self) -> None:
        self.status = WebhookEventStatus.PROCESSING
        self.retry_count += 1

    def mark_processed(self) -> None:
        self.status = WebhookEventStatus.PROCESSED
        self.processed_at = timezone.now()
        self.error_message = None

    def mark_failed(self, error_message: str) -> None:
        self.status = WebhookEventStatus.FAILED
        self.error_message = error_message
