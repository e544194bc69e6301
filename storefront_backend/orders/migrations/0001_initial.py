"""
======================================================
PATH: orders/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Order, OrderLine, ChargeAttempt
"""

from __future__ import annotations

import uuid

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
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
                    "total",
                    models.PositiveIntegerField(help_text="Amount charged, smallest currency unit"),
                ),
                ("currency", models.CharField(default="USD", max_length=8)),
                (
                    "charge_id",
                    models.CharField(
                        db_index=True,
                        help_text="External payment processor charge reference",
                        max_length=255,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["user", "created_at"], name="order_user_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderLine",
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
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                (
                    "price",
                    models.PositiveIntegerField(
                        help_text="Unit price at purchase, smallest currency unit"
                    ),
                ),
                ("quantity", models.PositiveIntegerField()),
                ("image", models.URLField(blank=True, default="", max_length=500)),
                ("large_image", models.URLField(blank=True, default="", max_length=500)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="orders.order",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="order_lines",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
            },
        ),
        migrations.CreateModel(
            name="ChargeAttempt",
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
                    "fingerprint",
                    models.CharField(
                        blank=True,
                        help_text="sha256 of the cart snapshot; NULL for an empty cart",
                        max_length=64,
                        null=True,
                    ),
                ),
                ("line_ids", models.JSONField(blank=True, default=list)),
                ("amount", models.PositiveIntegerField(help_text="Locally computed total")),
                ("currency", models.CharField(default="USD", max_length=8)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("declined", "Declined"),
                            ("charged", "Charged"),
                            ("ambiguous", "Ambiguous"),
                            ("reconciliation_required", "Reconciliation required"),
                            ("completed", "Completed"),
                            ("resolved", "Resolved"),
                        ],
                        default="pending",
                        max_length=32,
                    ),
                ),
                (
                    "charge_id",
                    models.CharField(blank=True, db_index=True, default="", max_length=255),
                ),
                ("amount_charged", models.PositiveIntegerField(blank=True, null=True)),
                ("error", models.TextField(blank=True, default="")),
                ("resolution_note", models.TextField(blank=True, default="")),
                ("resolved_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="charge_attempts",
                        to="orders.order",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="charge_attempts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="charge_attempt_status_idx"),
                    models.Index(fields=["user", "fingerprint"], name="charge_attempt_snapshot_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(
                            status__in=[
                                "pending",
                                "charged",
                                "ambiguous",
                                "reconciliation_required",
                                "completed",
                            ]
                        ),
                        fields=("user", "fingerprint"),
                        name="uniq_open_charge_attempt_per_snapshot",
                    ),
                ],
            },
        ),
    ]
