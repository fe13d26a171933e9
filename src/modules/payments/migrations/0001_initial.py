import django.db.models.deletion
from django.db import migrations, models

import modules.payments.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Payment",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(auto_now_add=True, db_index=True),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "id",
                    models.CharField(
                        default=modules.payments.models.generate_payment_id,
                        editable=False,
                        max_length=32,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("customer_name", models.CharField(max_length=150)),
                ("customer_phone", models.CharField(max_length=20)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=10)),
                (
                    "method",
                    models.CharField(
                        choices=[
                            ("TRANSFER", "Transferencia bancaria"),
                            ("YAPE", "Yape"),
                            ("PLIN", "Plin"),
                            ("CASH", "Efectivo"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pendiente"),
                            ("VERIFIED", "Verificado"),
                            ("REJECTED", "Rechazado"),
                        ],
                        default="PENDING",
                        max_length=20,
                    ),
                ),
                (
                    "reference_number",
                    models.CharField(blank=True, default="", max_length=100),
                ),
                ("verification_notes", models.TextField(blank=True, default="")),
                (
                    "verified_by",
                    models.CharField(blank=True, default="", max_length=255),
                ),
                ("verified_at", models.DateTimeField(blank=True, null=True)),
                ("rejected_reason", models.TextField(blank=True, default="")),
                (
                    "order",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payment",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "db_table": "payments",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status"], name="payments_status_idx"),
                    models.Index(fields=["method"], name="payments_method_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        check=models.Q(("amount__gt", 0)),
                        name="payments_amount_positive",
                    ),
                ],
            },
        ),
    ]
