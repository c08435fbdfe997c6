"""
Serializers for the returns API.

Provides:
- ReturnRequestCreateSerializer: Buyer opens a request
- SellerResponseSerializer: Seller's advisory response
- AdminDecisionSerializer: Admin's binding decision
- ReturnRequestSerializer: Read-only representation

Input serializers build the resolver's parameter dataclasses via
to_params(); the resolver enforces ownership, status and amount rules.
"""

from __future__ import annotations

from rest_framework import serializers

from orders.state_machines import FulfillmentKind
from returns.models import ReturnRequest
from returns.services import AdminDecisionParams, OpenReturnParams, SellerResponseParams
from returns.state_machines import Decision, ReturnReason

MAX_EVIDENCE_URLS = 5


class ReturnRequestCreateSerializer(serializers.Serializer):
    """
    Exactly one of order_id / booking_id is required.

    requested_refund_amount defaults to the full gross amount.
    """

    order_id = serializers.UUIDField(required=False)
    booking_id = serializers.UUIDField(required=False)
    reason = serializers.ChoiceField(choices=ReturnReason.choices)
    description = serializers.CharField(min_length=10, max_length=2000)
    evidence_urls = serializers.ListField(
        child=serializers.URLField(max_length=500),
        required=False,
        default=list,
        max_length=MAX_EVIDENCE_URLS,
    )
    requested_refund_amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        required=False,
        allow_null=True,
    )

    def validate(self, attrs):
        has_order = attrs.get("order_id") is not None
        has_booking = attrs.get("booking_id") is not None
        if has_order == has_booking:
            raise serializers.ValidationError("Provide exactly one of order_id or booking_id.")
        return attrs

    def to_params(self) -> OpenReturnParams:
        data = self.validated_data
        if data.get("order_id") is not None:
            kind, parent_id = FulfillmentKind.ORDER, data["order_id"]
        else:
            kind, parent_id = FulfillmentKind.BOOKING, data["booking_id"]
        return OpenReturnParams(
            kind=kind,
            parent_id=parent_id,
            reason=data["reason"],
            description=data["description"],
            requested_refund_amount=data.get("requested_refund_amount"),
            evidence_urls=list(data["evidence_urls"]),
        )


class SellerResponseSerializer(serializers.Serializer):
    decision = serializers.ChoiceField(choices=Decision.choices)
    response = serializers.CharField(max_length=2000, required=False, allow_blank=True, default="")
    proposed_refund_amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        required=False,
        allow_null=True,
    )
    version = serializers.IntegerField(required=False, min_value=1)

    def validate(self, attrs):
        if attrs["decision"] == Decision.REJECT and attrs.get("proposed_refund_amount") is not None:
            raise serializers.ValidationError(
                {"proposed_refund_amount": "Only allowed when approving."}
            )
        return attrs

    def to_params(self) -> SellerResponseParams:
        data = self.validated_data
        return SellerResponseParams(
            decision=data["decision"],
            response=data["response"],
            proposed_refund_amount=data.get("proposed_refund_amount"),
            expected_version=data.get("version"),
        )


class AdminDecisionSerializer(serializers.Serializer):
    decision = serializers.ChoiceField(choices=Decision.choices)
    approved_refund_amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        required=False,
        allow_null=True,
    )
    admin_notes = serializers.CharField(max_length=2000, required=False, allow_blank=True, default="")
    version = serializers.IntegerField(required=False, min_value=1)

    def validate(self, attrs):
        if attrs["decision"] == Decision.REJECT and attrs.get("approved_refund_amount") is not None:
            raise serializers.ValidationError(
                {"approved_refund_amount": "Only allowed when approving."}
            )
        return attrs

    def to_params(self) -> AdminDecisionParams:
        data = self.validated_data
        return AdminDecisionParams(
            decision=data["decision"],
            approved_refund_amount=data.get("approved_refund_amount"),
            admin_notes=data["admin_notes"],
            expected_version=data.get("version"),
        )


class ReturnRequestSerializer(serializers.ModelSerializer):
    kind = serializers.CharField(source="parent_kind", read_only=True)
    parent_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = ReturnRequest
        fields = [
            "id",
            "kind",
            "parent_id",
            "order",
            "booking",
            "buyer",
            "seller",
            "reason",
            "description",
            "evidence_urls",
            "requested_refund_amount",
            "status",
            "seller_status",
            "seller_proposed_refund_amount",
            "seller_response",
            "seller_responded_at",
            "admin_decision",
            "approved_refund_amount",
            "commission_reversed_amount",
            "admin_notes",
            "admin_override",
            "admin_reviewed_at",
            "requires_manual_clawback",
            "clawback_settled_at",
            "resolved_at",
            "refunded_at",
            "completed_at",
            "version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
