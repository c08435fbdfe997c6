"""
Payments app for marketplace escrow.

This app handles:
- Transaction ledger: one escrow entry per order or booking
- Commission split at the seller's snapshotted rate
- Escrow release and full/partial refunds
- Gateway webhook processing and redirect verification

Related apps:
    - orders: Order/Booking state machine that triggers escrow effects
    - returns: Dispute decisions that override the default release

Usage:
    from payments.services import EscrowService

    txn = EscrowService().confirm_payment("order", order.id, "100.00")
"""
