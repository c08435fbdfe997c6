import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

ACTIVE_STATUSES = [
    "admin_approved",
    "admin_rejected",
    "pending",
    "seller_approved",
    "seller_rejected",
]


def money_field(help_text, null=False):
    return models.DecimalField(
        blank=null,
        decimal_places=2,
        help_text=help_text,
        max_digits=12,
        null=null,
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("orders", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ReturnRequest",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                    ),
                ),
                (
                    "version",
                    models.PositiveIntegerField(
                        default=1,
                    ),
                ),
                (
                    "reason",
                    models.CharField(
                        choices=[
                            ("defective", "Defective"),
                            ("wrong_item", "Wrong Item"),
                            ("not_as_described", "Not As Described"),
                            ("damaged", "Damaged"),
                            ("changed_mind", "Changed Mind"),
                            ("other", "Other"),
                        ],
                        max_length=30,
                    ),
                ),
                ("description", models.TextField(help_text="Buyer's explanation")),
                (
                    "evidence_urls",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="Photos or documents supporting the request",
                    ),
                ),
                ("requested_refund_amount", money_field("Amount the buyer asks for")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("seller_approved", "Seller Approved"),
                            ("seller_rejected", "Seller Rejected"),
                            ("admin_approved", "Admin Approved"),
                            ("admin_rejected", "Admin Rejected"),
                            ("refunded", "Refunded"),
                            ("completed", "Completed"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "seller_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "seller_proposed_refund_amount",
                    money_field("Seller's counter-offer", null=True),
                ),
                ("seller_response", models.TextField(blank=True, default="")),
                ("seller_responded_at", models.DateTimeField(blank=True, null=True)),
                (
                    "admin_decision",
                    models.CharField(
                        blank=True,
                        choices=[("approve", "Approve"), ("reject", "Reject")],
                        default="",
                        max_length=10,
                    ),
                ),
                (
                    "approved_refund_amount",
                    money_field("Final refund amount set by the admin", null=True),
                ),
                (
                    "commission_reversed_amount",
                    money_field("Commission given back as part of the refund", null=True),
                ),
                ("admin_notes", models.TextField(blank=True, default="")),
                (
                    "admin_override",
                    models.BooleanField(
                        default=False,
                        help_text="Admin decided before the seller responded",
                    ),
                ),
                ("admin_reviewed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "requires_manual_clawback",
                    models.BooleanField(
                        db_index=True,
                        default=False,
                        help_text=(
                            "Refund approved after escrow release; "
                            "seller payout must be clawed back"
                        ),
                    ),
                ),
                ("clawback_settled_at", models.DateTimeField(blank=True, null=True)),
                ("resolved_at", models.DateTimeField(blank=True, null=True)),
                ("refunded_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="return_requests",
                        to="orders.order",
                    ),
                ),
                (
                    "booking",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="return_requests",
                        to="orders.booking",
                    ),
                ),
                (
                    "buyer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="return_requests_made",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "seller",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="return_requests_received",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "admin_reviewed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="return_requests_reviewed",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Return Request",
                "verbose_name_plural": "Return Requests",
                "ordering": ["-created_at"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["buyer", "status"], name="returns_buyer_status_idx"),
                    models.Index(fields=["seller", "status"], name="returns_seller_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("order__isnull", False), ("booking__isnull", True))
                        | models.Q(("order__isnull", True), ("booking__isnull", False)),
                        name="returns_request_single_parent",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("requested_refund_amount__gt", 0)),
                        name="returns_request_requested_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("status", "refunded"), _negated=True)
                        | models.Q(("approved_refund_amount__isnull", False)),
                        name="returns_request_refunded_has_amount",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("status__in", ACTIVE_STATUSES)),
                        fields=("order",),
                        name="returns_one_active_per_order",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("status__in", ACTIVE_STATUSES)),
                        fields=("booking",),
                        name="returns_one_active_per_booking",
                    ),
                ],
            },
        ),
    ]
