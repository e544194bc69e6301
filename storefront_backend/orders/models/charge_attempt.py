# orders/models/charge_attempt.py

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone


class ChargeAttempt(models.Model):
    """
    Ledger row for one checkout of one cart snapshot.

    Idempotency rule:
    - at most one OPEN attempt per (user, fingerprint) (DB constraint)
    - the attempt id is sent to the processor as the Idempotency-Key
    - an open attempt blocks any new charge for the same snapshot until an
      operator resolves it

    Status flow:
        pending -> declined                      (closed, nothing charged)
        pending -> ambiguous                     (open, operator)
        pending -> charged -> completed          (open, order exists)
        charged -> reconciliation_required       (open, operator)
        ambiguous / reconciliation_required / charged / completed -> resolved
    """

    STATUS_PENDING = "pending"
    STATUS_DECLINED = "declined"
    STATUS_CHARGED = "charged"
    STATUS_AMBIGUOUS = "ambiguous"
    STATUS_RECONCILIATION_REQUIRED = "reconciliation_required"
    STATUS_COMPLETED = "completed"
    STATUS_RESOLVED = "resolved"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_DECLINED, "Declined"),
        (STATUS_CHARGED, "Charged"),
        (STATUS_AMBIGUOUS, "Ambiguous"),
        (STATUS_RECONCILIATION_REQUIRED, "Reconciliation required"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_RESOLVED, "Resolved"),
    ]

    OPEN_STATUSES = (
        STATUS_PENDING,
        STATUS_CHARGED,
        STATUS_AMBIGUOUS,
        STATUS_RECONCILIATION_REQUIRED,
        STATUS_COMPLETED,
    )

    NEEDS_OPERATOR_STATUSES = (
        STATUS_AMBIGUOUS,
        STATUS_RECONCILIATION_REQUIRED,
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="charge_attempts",
    )

    fingerprint = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="sha256 of the cart snapshot; NULL for an empty cart",
    )
    line_ids = models.JSONField(default=list, blank=True)

    amount = models.PositiveIntegerField(help_text="Locally computed total")
    currency = models.CharField(max_length=8, default="USD")

    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_PENDING)

    charge_id = models.CharField(max_length=255, blank=True, default="", db_index=True)
    amount_charged = models.PositiveIntegerField(null=True, blank=True)

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="charge_attempts",
    )

    error = models.TextField(blank=True, default="")
    resolution_note = models.TextField(blank=True, default="")
    resolved_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "fingerprint"],
                condition=models.Q(
                    status__in=[
                        "pending",
                        "charged",
                        "ambiguous",
                        "reconciliation_required",
                        "completed",
                    ]
                ),
                name="uniq_open_charge_attempt_per_snapshot",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "created_at"], name="charge_attempt_status_idx"),
            models.Index(fields=["user", "fingerprint"], name="charge_attempt_snapshot_idx"),
        ]

    @property
    def is_open(self) -> bool:
        return self.status in self.OPEN_STATUSES

    @property
    def needs_operator(self) -> bool:
        return self.status in self.NEEDS_OPERATOR_STATUSES

    def mark_declined(self, error: str):
        self.status = self.STATUS_DECLINED
        self.error = error or ""

    def mark_ambiguous(self, error: str):
        self.status = self.STATUS_AMBIGUOUS
        self.error = error or ""

    def mark_charged(self, *, charge_id: str, amount_charged: int):
        self.status = self.STATUS_CHARGED
        self.charge_id = charge_id
        self.amount_charged = amount_charged

    def mark_reconciliation_required(self, error: str):
        self.status = self.STATUS_RECONCILIATION_REQUIRED
        self.error = error or ""

    def mark_completed(self, order):
        self.status = self.STATUS_COMPLETED
        self.order = order

    def mark_resolved(self, note: str):
        self.status = self.STATUS_RESOLVED
        self.resolution_note = note or ""
        self.resolved_at = self.resolved_at or timezone.now()

    def __str__(self):
        return f"attempt:{self.id} | {self.status}"
