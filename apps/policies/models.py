"""Operator-tunable platform policies."""

from __future__ import annotations

from decimal import Decimal

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class PlatformPolicy(models.Model):
    """Single row holding the refund and auto-confirm settings."""

    SINGLETON_PK = 1

    admin_deduction_rate = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        default=Decimal("0.1000"),
        help_text=_("Share of the refundable amount kept by the platform (0..1)."),
    )
    refund_schedules = models.JSONField(
        default=dict,
        blank=True,
        help_text=_("Per-tier refund steps, e.g. {\"moderate\": {\"steps\": [...], \"floor\": \"0\"}}."),
    )
    auto_confirm_delay_hours = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("Hours before a pending booking is confirmed automatically."),
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Platform policy")
        verbose_name_plural = _("Platform policies")

    def __str__(self) -> str:
        return f"Platform policy (admin deduction {self.admin_deduction_rate})"

    def save(self, *args, **kwargs):  # type: ignore
        self.pk = self.SINGLETON_PK
        super().save(*args, **kwargs)
