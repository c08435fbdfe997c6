import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def fulfillable_fields():
    return [
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
            "gross_amount",
            models.DecimalField(decimal_places=2, help_text="Buyer-facing total", max_digits=12),
        ),
        (
            "quote_id",
            models.CharField(
                blank=True,
                db_index=True,
                help_text="Accepted custom quote this record was created from",
                max_length=64,
                null=True,
            ),
        ),
        (
            "quoted_amount",
            models.DecimalField(
                blank=True,
                decimal_places=2,
                help_text="Price of the accepted quote",
                max_digits=12,
                null=True,
            ),
        ),
        (
            "payment_method",
            models.CharField(
                choices=[("ipg", "Card (payment gateway)"), ("bank_transfer", "Bank transfer")],
                default="ipg",
                help_text="How the buyer pays",
                max_length=20,
            ),
        ),
        (
            "payment_reference",
            models.CharField(
                blank=True,
                default="",
                help_text="Gateway or bank reference of the confirmed payment",
                max_length=255,
            ),
        ),
        (
            "gateway_success_indicator",
            models.CharField(
                blank=True,
                default="",
                help_text="Gateway success indicator for redirect verification",
                max_length=255,
            ),
        ),
        ("paid_at", models.DateTimeField(blank=True, null=True)),
        ("completed_at", models.DateTimeField(blank=True, null=True)),
        ("cancelled_at", models.DateTimeField(blank=True, null=True)),
    ]


def party_fields(model_name):
    return [
        (
            "buyer",
            models.ForeignKey(
                help_text="User paying for this record",
                on_delete=django.db.models.deletion.PROTECT,
                related_name=f"purchased_{model_name}s",
                to=settings.AUTH_USER_MODEL,
            ),
        ),
        (
            "seller",
            models.ForeignKey(
                help_text="User fulfilling this record and receiving the payout",
                on_delete=django.db.models.deletion.PROTECT,
                related_name=f"sold_{model_name}s",
                to=settings.AUTH_USER_MODEL,
            ),
        ),
    ]


def amount_constraints(app_model):
    return [
        models.CheckConstraint(
            condition=models.Q(("gross_amount__gt", 0)),
            name=f"{app_model}_gross_amount_positive",
        ),
        models.CheckConstraint(
            condition=models.Q(("quote_id__isnull", True))
            | models.Q(
                ("quoted_amount", models.F("gross_amount")), ("quoted_amount__isnull", False)
            ),
            name=f"{app_model}_gross_matches_quote",
        ),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=fulfillable_fields()
            + [
                (
                    "variant_id",
                    models.CharField(help_text="Catalog product variant identifier", max_length=64),
                ),
                ("quantity", models.PositiveIntegerField(default=1)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("created", "Created"),
                            ("paid", "Paid"),
                            ("processing", "Processing"),
                            ("shipped", "Shipped"),
                            ("delivered", "Delivered"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="created",
                        max_length=20,
                    ),
                ),
                ("shipped_at", models.DateTimeField(blank=True, null=True)),
                ("delivered_at", models.DateTimeField(blank=True, null=True)),
                (
                    "return_attempt_count",
                    models.PositiveSmallIntegerField(
                        default=0, help_text="Return requests opened against this order"
                    ),
                ),
            ]
            + party_fields("order"),
            options={
                "verbose_name": "Order",
                "verbose_name_plural": "Orders",
                "ordering": ["-created_at"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["buyer", "status"], name="orders_order_buyer_status_idx"),
                    models.Index(fields=["seller", "status"], name="orders_order_seller_status_idx"),
                ],
                "constraints": amount_constraints("orders_order"),
            },
        ),
        migrations.CreateModel(
            name="Booking",
            fields=fulfillable_fields()
            + [
                ("package_id", models.CharField(help_text="Service package identifier", max_length=64)),
                ("scheduled_date", models.DateField(blank=True, null=True)),
                ("scheduled_time", models.TimeField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("created", "Created"),
                            ("paid", "Paid"),
                            ("confirmed", "Confirmed"),
                            ("in_progress", "In Progress"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="created",
                        max_length=20,
                    ),
                ),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("started_at", models.DateTimeField(blank=True, null=True)),
            ]
            + party_fields("booking"),
            options={
                "verbose_name": "Booking",
                "verbose_name_plural": "Bookings",
                "ordering": ["-created_at"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["buyer", "status"], name="orders_booking_buyer_stat_idx"),
                    models.Index(fields=["seller", "status"], name="orders_booking_seller_stat_idx"),
                ],
                "constraints": amount_constraints("orders_booking"),
            },
        ),
    ]
