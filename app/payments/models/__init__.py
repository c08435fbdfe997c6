"""
Payment domain models.

- Transaction: Escrow ledger row, one per order or booking
- WebhookEvent: Gateway webhook event tracking for idempotent processing
"""

from payments.models.transaction import Transaction
from payments.models.webhook_event import WebhookEvent

__all__ = [
    "Transaction",
    "WebhookEvent",
]
