"""
Payment services.

This module provides:
- EscrowService: Transaction lifecycle (confirm, release, refund)

The gateway-facing PaymentVerificationService lives in
payments.services.verification_service and is imported from there: it
sits above orders.services, which itself depends on EscrowService.

Usage:
    from payments.services import EscrowService

    escrow = EscrowService()
    txn = escrow.confirm_payment("order", order.id, "100.00")
    escrow.release(txn.id)
"""

from payments.services.escrow_service import EscrowService

__all__ = [
    "EscrowService",
]
