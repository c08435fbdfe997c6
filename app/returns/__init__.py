"""
Returns application.

Three-party return and dispute workflow layered on a delivered or
completed order/booking: the buyer asks, the seller gives advisory input,
an admin decides. An approval feeds back into escrow as a full or partial
refund, or is flagged for a manual clawback when the seller was already
paid.

Usage:
    from returns.services import ReturnResolver

    resolver = ReturnResolver()
    request = resolver.open_request(buyer, OpenReturnParams(...))
"""
