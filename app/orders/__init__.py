"""
Orders application.

Owns the fulfillment lifecycle of product orders and service bookings
once checkout has created them. Status changes go through the role-gated
transition table in orders.state_machines and are applied by
FulfillmentService, which also triggers escrow release on completion and
escrow refund on cancellation.

Usage:
    from orders.services import FulfillmentService
    from orders.state_machines import FulfillmentKind, OrderStatus

    FulfillmentService().transition(
        FulfillmentKind.ORDER, order_id, OrderStatus.SHIPPED, actor=seller
    )
"""
