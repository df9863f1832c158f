"""Read and update the platform policy.

The booking core never hard-codes its tunables: refund schedules, the admin
deduction rate and the auto-confirm delay come from the ``PlatformPolicy``
row, then the ``BOOKINGS_*`` settings, then the code defaults.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from decimal import Decimal, InvalidOperation

from django.conf import settings  # type: ignore

from apps.bookings.domain.auto_confirm import AUTO_CONFIRM_DELAY
from apps.bookings.domain.refunds import (
    ADMIN_DEDUCTION_RATE,
    CancellationPolicy,
    RefundPolicy,
    RefundSchedule,
)

from .models import PlatformPolicy

logger = logging.getLogger(__name__)


def _stored_policy() -> PlatformPolicy | None:
    return PlatformPolicy.objects.filter(pk=PlatformPolicy.SINGLETON_PK).first()


def _default_admin_deduction_rate() -> Decimal:
    return Decimal(str(getattr(settings, "BOOKINGS_ADMIN_DEDUCTION_RATE", ADMIN_DEDUCTION_RATE)))


def get_refund_policy() -> RefundPolicy:
    """Current refund policy, falling back to defaults on missing or bad data."""

    stored = _stored_policy()
    rate = stored.admin_deduction_rate if stored else _default_admin_deduction_rate()

    schedules: dict[CancellationPolicy, RefundSchedule] = {}
    for tier_name, data in ((stored.refund_schedules if stored else None) or {}).items():
        try:
            schedules[CancellationPolicy(tier_name)] = RefundSchedule.from_dict(data)
        except (KeyError, TypeError, ValueError, InvalidOperation) as exc:
            logger.warning(f"Ignoring invalid refund schedule for tier '{tier_name}': {exc}")

    try:
        return RefundPolicy(admin_deduction_rate=rate, schedules=schedules)
    except ValueError as exc:
        logger.warning(f"Invalid stored refund policy, using defaults: {exc}")
        return RefundPolicy()


def get_auto_confirm_delay() -> timedelta:
    stored = _stored_policy()
    if stored and stored.auto_confirm_delay_hours:
        return timedelta(hours=stored.auto_confirm_delay_hours)
    hours = getattr(settings, "BOOKINGS_AUTO_CONFIRM_DELAY_HOURS", None)
    if hours:
        return timedelta(hours=float(hours))
    return AUTO_CONFIRM_DELAY


def update_admin_deduction_rate(rate: Decimal) -> PlatformPolicy:
    if not Decimal("0") <= rate <= Decimal("1"):
        raise ValueError("Admin deduction rate must be between 0% and 100%")
    policy, _ = PlatformPolicy.objects.update_or_create(
        pk=PlatformPolicy.SINGLETON_PK,
        defaults={"admin_deduction_rate": rate},
    )
    logger.info(f"Admin deduction rate set to {rate}")
    return policy


def update_refund_schedule(tier: CancellationPolicy, schedule: RefundSchedule) -> PlatformPolicy:
    policy, _ = PlatformPolicy.objects.get_or_create(
        pk=PlatformPolicy.SINGLETON_PK,
        defaults={"admin_deduction_rate": _default_admin_deduction_rate()},
    )
    schedules = dict(policy.refund_schedules or {})
    schedules[tier.value] = schedule.to_dict()
    policy.refund_schedules = schedules
    policy.save(update_fields=["refund_schedules", "updated_at"])
    logger.info(f"Refund schedule for {tier.value} updated")
    return policy
