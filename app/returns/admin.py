"""
Return request admin.

Read-only: decisions move money, so they go through the admin-decision
API endpoint (returns.services.ReturnResolver) rather than form edits.
"""

from django.contrib import admin

from returns.models import ReturnRequest


@admin.register(ReturnRequest)
class ReturnRequestAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "parent_display",
        "buyer",
        "seller",
        "reason",
        "status",
        "requested_refund_amount",
        "approved_refund_amount",
        "requires_manual_clawback",
        "created_at",
    ]
    list_filter = ["status", "reason", "seller_status", "requires_manual_clawback", "admin_override"]
    search_fields = ["id", "order__id", "booking__id", "buyer__email", "seller__email"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    @admin.display(description="Order / Booking")
    def parent_display(self, obj: ReturnRequest) -> str:
        return f"{obj.parent_kind} {obj.parent_id}"

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False
