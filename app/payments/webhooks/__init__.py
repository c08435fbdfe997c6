"""
Webhook handling for payment gateway events.

Deliveries are authenticated with a shared secret, stored idempotently
and processed asynchronously via Celery tasks.

Usage:
    # In urls.py
    from payments.webhooks.views import payment_webhook

    urlpatterns = [
        path("webhooks/payment/", payment_webhook, name="payment_webhook"),
    ]
"""

from payments.webhooks.handlers import dispatch_webhook, register_handler
from payments.webhooks.views import payment_webhook

__all__ = [
    "dispatch_webhook",
    "payment_webhook",
    "register_handler",
]
