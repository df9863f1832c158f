import logging
from datetime import timedelta
from decimal import Decimal

import pytest

from apps.bookings.domain.refunds import CancellationPolicy, RefundSchedule, RefundStep
from apps.policies.models import PlatformPolicy
from apps.policies.services import (
    get_auto_confirm_delay,
    get_refund_policy,
    update_admin_deduction_rate,
    update_refund_schedule,
)

pytestmark = pytest.mark.django_db


def test_defaults_without_stored_policy(settings):
    settings.BOOKINGS_ADMIN_DEDUCTION_RATE = "0.10"
    settings.BOOKINGS_AUTO_CONFIRM_DELAY_HOURS = 24

    policy = get_refund_policy()

    assert policy.admin_deduction_rate == Decimal("0.10")
    assert policy.schedule_for(CancellationPolicy.MODERATE).percentage_for(5) == Decimal("1")
    assert get_auto_confirm_delay() == timedelta(hours=24)


def test_settings_override_defaults(settings):
    settings.BOOKINGS_ADMIN_DEDUCTION_RATE = "0.05"
    settings.BOOKINGS_AUTO_CONFIRM_DELAY_HOURS = 48

    assert get_refund_policy().admin_deduction_rate == Decimal("0.05")
    assert get_auto_confirm_delay() == timedelta(hours=48)


def test_stored_policy_wins_over_settings(settings):
    settings.BOOKINGS_AUTO_CONFIRM_DELAY_HOURS = 48
    PlatformPolicy.objects.create(admin_deduction_rate=Decimal("0.2000"), auto_confirm_delay_hours=6)

    assert get_refund_policy().admin_deduction_rate == Decimal("0.2000")
    assert get_auto_confirm_delay() == timedelta(hours=6)


def test_policy_is_a_single_row():
    PlatformPolicy.objects.create(admin_deduction_rate=Decimal("0.2000"))
    PlatformPolicy(admin_deduction_rate=Decimal("0.3000")).save()

    assert PlatformPolicy.objects.count() == 1
    assert PlatformPolicy.objects.get().admin_deduction_rate == Decimal("0.3000")


def test_update_admin_deduction_rate():
    update_admin_deduction_rate(Decimal("0.15"))

    assert get_refund_policy().admin_deduction_rate == Decimal("0.1500")


@pytest.mark.parametrize("rate", [Decimal("-0.01"), Decimal("1.01")])
def test_admin_deduction_rate_must_be_a_fraction(rate):
    with pytest.raises(ValueError):
        update_admin_deduction_rate(rate)

    assert not PlatformPolicy.objects.exists()


def test_refund_schedule_override_applies_to_its_tier_only():
    update_refund_schedule(
        CancellationPolicy.STRICT,
        RefundSchedule(steps=(RefundStep(30, Decimal("1")), RefundStep(14, Decimal("0.5")))),
    )

    policy = get_refund_policy()

    assert policy.schedule_for(CancellationPolicy.STRICT).percentage_for(30) == Decimal("1")
    assert policy.schedule_for(CancellationPolicy.STRICT).percentage_for(10) == Decimal("0")
    assert policy.schedule_for(CancellationPolicy.FLEXIBLE).floor == Decimal("0.5")


def test_malformed_schedule_is_ignored_with_warning(caplog):
    PlatformPolicy.objects.create(
        refund_schedules={
            "moderate": {"steps": [{"min_days": 0, "percentage": "1"}]},
            "strict": {"steps": [{"min_days": 3, "percentage": "2"}]},
            "lenient": {"steps": []},
        }
    )

    with caplog.at_level(logging.WARNING):
        policy = get_refund_policy()

    assert policy.schedule_for(CancellationPolicy.MODERATE).percentage_for(3) == Decimal("0.5")
    assert policy.schedule_for(CancellationPolicy.STRICT).percentage_for(14) == Decimal("0.5")
    assert "Ignoring invalid refund schedule for tier 'lenient'" in caplog.text


def test_non_mapping_schedule_is_ignored_with_warning(caplog):
    PlatformPolicy.objects.create(
        refund_schedules={
            "strict": ["bad"],
            "flexible": "full refund",
            "moderate": {"steps": "often"},
        }
    )

    with caplog.at_level(logging.WARNING):
        policy = get_refund_policy()

    assert policy.schedule_for(CancellationPolicy.STRICT).percentage_for(14) == Decimal("0.5")
    assert policy.schedule_for(CancellationPolicy.FLEXIBLE).floor == Decimal("0.5")
    assert policy.schedule_for(CancellationPolicy.MODERATE).percentage_for(5) == Decimal("1")
    assert "Ignoring invalid refund schedule for tier 'strict'" in caplog.text
    assert "Ignoring invalid refund schedule for tier 'flexible'" in caplog.text
