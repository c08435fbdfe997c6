"""
State enums for payment models.

These are Django TextChoices for database storage and admin integration.
The Transaction status field is driven by django-fsm.

State Machines Overview:

Transaction States:
    pending → escrow → released
    pending → escrow → refunded
    (a transaction may also be created directly in escrow)

WebhookEvent States:
    pending → processing → processed
    pending → processing → failed → processing (retry)
"""

from django.db import models


class TransactionStatus(models.TextChoices):
    """
    States for the escrow Transaction lifecycle.

    Terminal states: RELEASED, REFUNDED

    PENDING: Checkout started, gateway or bank transfer not yet confirmed
    ESCROW: Buyer funds held by the platform
    RELEASED: Seller payout released, commission retained
    REFUNDED: Buyer refunded in full or in part; any retained portion
        was released to the seller at the same time
    """

    PENDING = "pending", "Pending"
    ESCROW = "escrow", "In Escrow"
    RELEASED = "released", "Released"
    REFUNDED = "refunded", "Refunded"


class PaymentMethod(models.TextChoices):
    """How the buyer pays."""

    IPG = "ipg", "Card (payment gateway)"
    BANK_TRANSFER = "bank_transfer", "Bank transfer"


class GatewayPaymentStatus(models.TextChoices):
    """Payment outcome reported by the gateway webhook."""

    SUCCESS = "SUCCESS", "Success"
    FAILED = "FAILED", "Failed"
    CANCELLED = "CANCELLED", "Cancelled"


class WebhookEventStatus(models.TextChoices):
    """
    Processing status for gateway webhook events.

    Used for idempotent webhook processing and retry logic.
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"
