"""
Tests for payments app.

This package contains test modules for:
- test_money.py / test_commission.py: Decimal helpers and the commission split
- test_models.py: Transaction, WebhookEvent model tests
- test_escrow_service.py: EscrowService tests
- test_webhooks.py: Webhook endpoint and handler tests
- test_tasks.py: Celery task tests
- test_views.py: API endpoint tests

Usage:
    pytest payments/tests/
    pytest payments/tests/test_escrow_service.py
"""
