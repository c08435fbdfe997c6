"""
Admin for the escrow ledger and gateway webhook log.

Both are audit records: nothing can be added or deleted here, and escrow
rows are fully read-only because money only moves through EscrowService.
Failed webhook events can be re-queued from the changelist.
"""

from django.contrib import admin

from payments.models import Transaction, WebhookEvent
from payments.state_machines import WebhookEventStatus


class AuditOnlyAdmin(admin.ModelAdmin):
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(Transaction)
class TransactionAdmin(AuditOnlyAdmin):
    list_display = [
        "id",
        "parent_display",
        "buyer",
        "seller",
        "amount",
        "commission_amount",
        "seller_payout",
        "refunded_amount",
        "status",
        "created_at",
    ]
    list_filter = ["status", "payment_method", "created_at"]
    search_fields = [
        "id",
        "payment_reference",
        "buyer__email",
        "seller__email",
        "order__id",
        "booking__id",
    ]
    list_select_related = ["buyer", "seller"]

    fieldsets = (
        (None, {"fields": ("id", "order", "booking", "buyer", "seller", "status", "version")}),
        ("Split", {
            "fields": (
                "amount",
                "commission_rate",
                "commission_amount",
                "seller_payout",
                "refunded_amount",
            ),
        }),
        ("Gateway", {"fields": ("payment_method", "payment_reference")}),
        ("Lifecycle", {
            "fields": ("escrowed_at", "released_at", "refunded_at", "created_at", "updated_at"),
            "classes": ("collapse",),
        }),
    )

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.concrete_fields]

    @admin.display(description="Order / Booking")
    def parent_display(self, obj: Transaction) -> str:
        return f"{obj.parent_kind} {obj.parent_id}"


@admin.register(WebhookEvent)
class WebhookEventAdmin(AuditOnlyAdmin):
    list_display = ["event_key", "event_type", "status", "retry_count", "processed_at", "created_at"]
    list_filter = ["status", "event_type"]
    search_fields = ["id", "event_key"]
    readonly_fields = ["id", "event_key", "event_type", "payload", "processed_at", "created_at", "updated_at"]
    actions = ["requeue_failed"]

    fieldsets = (
        (None, {"fields": ("id", "event_key", "event_type", "status", "retry_count", "processed_at")}),
        ("Last error", {"fields": ("error_message",), "classes": ("collapse",)}),
        ("Body", {"fields": ("payload",), "classes": ("collapse",)}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )

    @admin.action(description="Re-queue selected failed events")
    def requeue_failed(self, request, queryset):
        from payments.tasks import process_webhook_event

        failed = queryset.filter(status=WebhookEventStatus.FAILED)
        for webhook_event in failed:
            process_webhook_event.delay(str(webhook_event.id))
        self.message_user(request, f"Queued {failed.count()} event(s) for processing.")
