"""Payout and wallet models."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Payout(models.Model):
    """Money owed to a host for one booking."""

    class Status(models.TextChoices):
        PENDING = "PENDING", _("Pending host approval")
        ON_HOLD = "ON_HOLD", _("On hold, ready for release")
        RELEASED = "RELEASED", _("Released to host")
        REFUNDED = "REFUNDED", _("Refunded to guest")

    booking = models.OneToOneField(
        "bookings.Booking",
        on_delete=models.PROTECT,
        related_name="payout",
    )
    host = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payouts",
    )
    guest = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="+",
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text=_("Base price owed to the host."),
    )
    service_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="PHP")
    payment_method = models.CharField(max_length=20)
    due_date = models.DateTimeField(null=True, blank=True)
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    released_at = models.DateTimeField(null=True, blank=True)
    released_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Payout")
        verbose_name_plural = _("Payouts")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Payout for booking {self.booking_id} ({self.status})"


class Wallet(models.Model):
    """Stored balance of a user."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="wallet",
    )
    balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="PHP")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Wallet")
        verbose_name_plural = _("Wallets")
        constraints = [
            models.CheckConstraint(condition=models.Q(balance__gte=0), name="wallet_balance_not_negative"),
        ]

    def __str__(self) -> str:
        return f"Wallet of {self.user_id}: {self.balance} {self.currency}"


class WalletTransaction(models.Model):
    """Immutable audit record of a wallet balance change."""

    class Type(models.TextChoices):
        REFUND = "refund", _("Refund")
        PAYMENT = "payment", _("Booking payment")
        PAYOUT = "payout", _("Payout withdrawal")
        PAYMENT_RECEIVED = "payment_received", _("Payout received")

    wallet = models.ForeignKey(Wallet, on_delete=models.PROTECT, related_name="transactions")
    type = models.CharField(max_length=20, choices=Type.choices)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    balance_before = models.DecimalField(max_digits=12, decimal_places=2)
    balance_after = models.DecimalField(max_digits=12, decimal_places=2)
    description = models.CharField(max_length=255, blank=True)
    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="wallet_transactions",
    )
    payout = models.ForeignKey(
        Payout,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="wallet_transactions",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Wallet transaction")
        verbose_name_plural = _("Wallet transactions")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.type} {self.amount} for wallet {self.wallet_id}"

    def save(self, *args, **kwargs):  # type: ignore
        if not self._state.adding:
            raise ValueError("Wallet transactions are immutable")
        super().save(*args, **kwargs)
