"""Booking persistence models."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Booking(models.Model):
    """A guest's reservation of a listing."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending host approval")
        CONFIRMED = "confirmed", _("Confirmed")
        REJECTED = "rejected", _("Rejected by host")
        CANCELLED = "cancelled", _("Cancelled")
        COMPLETED = "completed", _("Completed")

    class PaymentMethod(models.TextChoices):
        WALLET = "wallet", _("Wallet")
        PAYPAL = "paypal", _("PayPal")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Awaiting payment")
        PAID = "paid", _("Paid")
        REFUNDED = "refunded", _("Refunded")

    class CancellationPolicy(models.TextChoices):
        FLEXIBLE = "flexible", _("Flexible")
        MODERATE = "moderate", _("Moderate")
        STRICT = "strict", _("Strict")

    class CancelledBy(models.TextChoices):
        GUEST = "guest", _("Guest")
        HOST = "host", _("Host")
        SYSTEM = "system", _("System")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    guest = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="guest_bookings",
    )
    host = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="hosted_bookings",
    )
    listing_id = models.CharField(max_length=64, db_index=True)
    listing_title = models.CharField(max_length=255, blank=True)

    check_in = models.DateTimeField()
    check_out = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_("Empty for single-date experiences and services."),
    )
    guests_count = models.PositiveSmallIntegerField(default=1)

    base_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    service_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default="PHP")
    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.PAYPAL,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PAID,
    )
    cancellation_policy = models.CharField(
        max_length=20,
        choices=CancellationPolicy.choices,
        default=CancellationPolicy.MODERATE,
    )

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    auto_confirmed = models.BooleanField(default=False)
    auto_confirm_reason = models.CharField(max_length=255, blank=True)
    rejection_reason = models.CharField(max_length=255, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    cancelled_by = models.CharField(max_length=20, choices=CancelledBy.choices, blank=True)

    confirmed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    check_in_reminder_1_day_sent = models.BooleanField(default=False)
    check_in_reminder_1_day_sent_at = models.DateTimeField(null=True, blank=True)
    check_in_reminder_day_of_sent = models.BooleanField(default=False)
    check_in_reminder_day_of_sent_at = models.DateTimeField(null=True, blank=True)
    review_reminder_sent = models.BooleanField(default=False)
    review_reminder_sent_at = models.DateTimeField(null=True, blank=True)

    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    admin_deduction = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    cancellation_fee = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    refund_percentage = models.DecimalField(max_digits=5, decimal_places=4, null=True, blank=True)
    refund_policy_description = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out__isnull=True) | models.Q(check_out__gt=models.F("check_in")),
                name="booking_check_out_after_check_in",
            ),
            models.CheckConstraint(
                condition=models.Q(refund_amount__isnull=True) | models.Q(refund_amount__lte=models.F("total_amount")),
                name="booking_refund_within_total",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "check_in"], name="booking_status_check_in_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking {self.pk} ({self.status})"
