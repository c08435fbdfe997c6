"""
DRF serializers for the payments app.

Provides:
- GatewayWebhookSerializer: Shape of a gateway payment notification
- CheckoutSerializer: Buyer chooses how to pay
- PaymentVerificationSerializer: Gateway redirect result
- VerificationResultSerializer: Redirect verification outcome
- TransactionViewSerializer: Read-only transaction listing
- SellerBalanceSerializer: Seller earnings summary

Request serializers only parse; services decide. Money fields are
DecimalFields so binary floats never reach the ledger.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiExample, extend_schema_serializer
from rest_framework import serializers

from orders.state_machines import FulfillmentKind
from payments.state_machines import GatewayPaymentStatus, PaymentMethod


@extend_schema_serializer(
    examples=[
        OpenApiExample(
            "Successful payment",
            value={
                "transactionRef": "3f1c2a4e-9a0b-4a55-9d1e-1f2b3c4d5e6f",
                "status": "SUCCESS",
                "amount": "100.00",
                "paymentMethod": "ipg",
                "timestamp": "2025-01-15T10:30:00Z",
            },
        )
    ]
)
class GatewayWebhookSerializer(serializers.Serializer):
    """
    Gateway payment notification.

    ``transactionRef`` is the order or booking id sent to the gateway at
    checkout. ``amount`` is required for successful payments.
    """

    transactionRef = serializers.CharField(max_length=64)
    status = serializers.ChoiceField(choices=GatewayPaymentStatus.choices)
    amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True
    )
    paymentMethod = serializers.ChoiceField(choices=PaymentMethod.choices, required=False)
    timestamp = serializers.CharField(max_length=64)
    transactionType = serializers.ChoiceField(choices=FulfillmentKind.choices, required=False)

    def validate(self, attrs):
        if attrs["status"] == GatewayPaymentStatus.SUCCESS and attrs.get("amount") is None:
            raise serializers.ValidationError({"amount": "Required for successful payments."})
        return attrs


class CheckoutSerializer(serializers.Serializer):
    transactionRef = serializers.UUIDField()
    transactionType = serializers.ChoiceField(choices=FulfillmentKind.choices)
    paymentMethod = serializers.ChoiceField(choices=PaymentMethod.choices)
    successIndicator = serializers.CharField(
        max_length=255,
        required=False,
        allow_blank=True,
        default="",
        help_text="successIndicator returned by the gateway session (card payments)",
    )

    def validate(self, attrs):
        if attrs["paymentMethod"] == PaymentMethod.IPG and not attrs["successIndicator"]:
            raise serializers.ValidationError(
                {"successIndicator": "Required for gateway card payments."}
            )
        return attrs


class PaymentVerificationSerializer(serializers.Serializer):
    transactionRef = serializers.CharField(max_length=64)
    resultIndicator = serializers.CharField(max_length=255)
    transactionType = serializers.ChoiceField(choices=FulfillmentKind.choices, required=False)


class VerificationResultSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    message = serializers.CharField()


class TransactionViewSerializer(serializers.Serializer):
    """Renders payments.selectors.TransactionView."""

    id = serializers.UUIDField()
    kind = serializers.CharField()
    parent_id = serializers.UUIDField()
    parent_status = serializers.CharField()
    buyer_id = serializers.IntegerField()
    buyer_email = serializers.EmailField()
    seller_id = serializers.IntegerField()
    seller_email = serializers.EmailField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    commission_rate = serializers.DecimalField(max_digits=5, decimal_places=2)
    commission_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    seller_payout = serializers.DecimalField(max_digits=12, decimal_places=2)
    refunded_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    status = serializers.CharField()
    payment_method = serializers.CharField()
    payment_reference = serializers.CharField()
    escrowed_at = serializers.DateTimeField(allow_null=True)
    released_at = serializers.DateTimeField(allow_null=True)
    refunded_at = serializers.DateTimeField(allow_null=True)
    created_at = serializers.DateTimeField()


class SellerBalanceSerializer(serializers.Serializer):
    pending = serializers.DecimalField(max_digits=14, decimal_places=2)
    in_escrow = serializers.DecimalField(max_digits=14, decimal_places=2)
    available = serializers.DecimalField(max_digits=14, decimal_places=2)
    commission_paid = serializers.DecimalField(max_digits=14, decimal_places=2)
    refunded_to_buyers = serializers.DecimalField(max_digits=14, decimal_places=2)
