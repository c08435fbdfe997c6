"""
Order and booking admin configuration.

Status is read-only: changes go through FulfillmentService so that the
escrow side effects are applied.
"""

from django.contrib import admin

from orders.models import Booking, Order

_READONLY = [
    "id",
    "status",
    "version",
    "payment_reference",
    "gateway_success_indicator",
    "paid_at",
    "completed_at",
    "cancelled_at",
    "created_at",
    "updated_at",
]


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ["id", "buyer", "seller", "gross_amount", "status", "payment_method", "created_at"]
    list_filter = ["status", "payment_method", "created_at"]
    search_fields = ["id", "buyer__email", "seller__email", "variant_id", "quote_id"]
    readonly_fields = _READONLY + ["shipped_at", "delivered_at", "return_attempt_count"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "buyer",
        "seller",
        "gross_amount",
        "status",
        "scheduled_date",
        "created_at",
    ]
    list_filter = ["status", "payment_method", "scheduled_date"]
    search_fields = ["id", "buyer__email", "seller__email", "package_id", "quote_id"]
    readonly_fields = _READONLY + ["confirmed_at", "started_at"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def has_delete_permission(self, request, obj=None) -> bool:
        return False
