"""
Serializers for order and booking status endpoints.

Provides:
- StatusTransitionSerializer: Requested status change
- FulfillmentStatusSerializer: Current status, version and next steps
"""

from __future__ import annotations

from rest_framework import serializers

from orders.state_machines import STATUS_CHOICES, allowed_targets


class StatusTransitionSerializer(serializers.Serializer):
    """
    Parse a status change request.

    ``version`` is the version the client last read. When given, the
    change is rejected with 409 if the record moved on in the meantime.

    Usage:
        serializer = StatusTransitionSerializer(data=request.data, context={"kind": "order"})
        serializer.is_valid(raise_exception=True)
    """

    status = serializers.ChoiceField(choices=[])
    version = serializers.IntegerField(required=False, min_value=1)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["status"].choices = STATUS_CHOICES[self.context["kind"]].choices


class FulfillmentStatusSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    kind = serializers.CharField()
    status = serializers.CharField()
    version = serializers.IntegerField()
    gross_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    buyer_id = serializers.IntegerField()
    seller_id = serializers.IntegerField()
    paid_at = serializers.DateTimeField(allow_null=True)
    completed_at = serializers.DateTimeField(allow_null=True)
    cancelled_at = serializers.DateTimeField(allow_null=True)
    allowed_transitions = serializers.SerializerMethodField()

    def get_allowed_transitions(self, obj) -> list[str]:
        role = self.context.get("role")
        if not role:
            return []
        return allowed_targets(obj.kind, obj.status, role)
