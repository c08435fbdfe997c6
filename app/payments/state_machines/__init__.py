"""
State machine enums for payment models.
"""

from payments.state_machines.states import (
    GatewayPaymentStatus,
    PaymentMethod,
    TransactionStatus,
    WebhookEventStatus,
)

__all__ = [
    "GatewayPaymentStatus",
    "PaymentMethod",
    "TransactionStatus",
    "WebhookEventStatus",
]
