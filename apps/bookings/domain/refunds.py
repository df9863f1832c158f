"""
Refund Calculation

Pure computation of what a guest gets back when a booking is cancelled.

The refund depends on:
- the booking's cancellation policy tier (flexible / moderate / strict)
- how many calendar days are left until check-in (fractional days round up)
- the platform's admin deduction rate

Nothing here performs I/O or mutates its inputs. Identical inputs always
produce an identical RefundBreakdown.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Mapping

from shared.domain.base import ValueObject
from shared.domain.value_objects import Money

from apps.bookings.domain.errors import MissingDataError

ONE_DAY = timedelta(days=1)

# Platform cut taken from the refundable portion of a cancelled booking
ADMIN_DEDUCTION_RATE = Decimal('0.10')


class CancellationPolicy(Enum):
    """Cancellation policy tiers, from most to least generous"""
    FLEXIBLE = 'flexible'
    MODERATE = 'moderate'
    STRICT = 'strict'

    @classmethod
    def resolve(cls, value) -> tuple['CancellationPolicy', bool]:
        """
        Map a stored tier name to a policy.

        Returns (policy, defaulted). Missing or unknown names fall back to
        MODERATE with defaulted=True.
        """
        if isinstance(value, cls):
            return value, False
        try:
            return cls(str(value).strip().lower()), False
        except ValueError:
            return cls.MODERATE, True


DEFAULT_CANCELLATION_POLICY = CancellationPolicy.MODERATE


def _as_rate(value, name: str) -> Decimal:
    rate = value if isinstance(value, Decimal) else Decimal(str(value))
    if not Decimal('0') <= rate <= Decimal('1'):
        raise ValueError(f"{name} must be between 0 and 1, got {rate}")
    return rate


def _label(percentage: Decimal) -> str:
    if percentage == 1:
        return "Full refund"
    if percentage == 0:
        return "No refund"
    return f"{format((percentage * 100).normalize(), 'f')}% refund"


def _span(days: int) -> str:
    if days == 1:
        return "24 hours"
    return f"{days} days"


@dataclass(frozen=True)
class RefundStep(ValueObject):
    """Refund `percentage` applies when at least `min_days` remain before check-in"""
    min_days: int
    percentage: Decimal

    def __post_init__(self):
        object.__setattr__(self, 'percentage', _as_rate(self.percentage, 'percentage'))
        if self.min_days < 1:
            raise ValueError("Refund step must require at least one day of notice")


@dataclass(frozen=True)
class RefundSchedule(ValueObject):
    """
    Refund thresholds for one cancellation policy tier.

    Steps are evaluated from the longest notice down; when no step matches
    (including zero or negative notice) the floor percentage applies.
    """
    steps: tuple[RefundStep, ...]
    floor: Decimal = Decimal('0')

    def __post_init__(self):
        ordered = tuple(sorted(self.steps, key=lambda step: step.min_days, reverse=True))
        object.__setattr__(self, 'steps', ordered)
        object.__setattr__(self, 'floor', _as_rate(self.floor, 'floor'))

    def percentage_for(self, days_until_check_in: int) -> Decimal:
        for step in self.steps:
            if days_until_check_in >= step.min_days:
                return step.percentage
        return self.floor

    def describe(self, days_until_check_in: int) -> str:
        """Guest-facing summary of which threshold applied"""
        for index, step in enumerate(self.steps):
            if days_until_check_in >= step.min_days:
                return f"{_label(step.percentage)} ({self._window(index)})"
        if not self.steps:
            return f"{_label(self.floor)} (applies regardless of notice)"
        shortest = self.steps[-1].min_days
        return f"{_label(self.floor)} (cancelled less than {_span(shortest)} before check-in)"

    def _window(self, index: int) -> str:
        step = self.steps[index]
        if index == 0:
            if step.min_days == 1:
                return "cancelled 24+ hours before check-in"
            return f"cancelled {step.min_days}+ days before check-in"
        upper = self.steps[index - 1].min_days - 1
        if upper == step.min_days:
            unit = "day" if step.min_days == 1 else "days"
            return f"cancelled {step.min_days} {unit} before check-in"
        return f"cancelled {step.min_days}-{upper} days before check-in"

    @classmethod
    def from_dict(cls, data: Mapping) -> 'RefundSchedule':
        if not isinstance(data, Mapping):
            raise ValueError(f"Refund schedule must be a mapping, got {type(data).__name__}")
        items = data.get('steps', ())
        if not isinstance(items, (list, tuple)) or not all(isinstance(item, Mapping) for item in items):
            raise ValueError("Refund schedule steps must be a list of mappings")
        steps = tuple(
            RefundStep(min_days=int(item['min_days']), percentage=item['percentage'])
            for item in items
        )
        return cls(steps=steps, floor=data.get('floor', '0'))

    def to_dict(self) -> dict:
        return {
            'steps': [
                {'min_days': step.min_days, 'percentage': str(step.percentage)}
                for step in self.steps
            ],
            'floor': str(self.floor),
        }


DEFAULT_REFUND_SCHEDULES: dict[CancellationPolicy, RefundSchedule] = {
    CancellationPolicy.FLEXIBLE: RefundSchedule(
        steps=(RefundStep(1, Decimal('1')),),
        floor=Decimal('0.5'),
    ),
    CancellationPolicy.MODERATE: RefundSchedule(
        steps=(RefundStep(5, Decimal('1')), RefundStep(1, Decimal('0.5'))),
        floor=Decimal('0'),
    ),
    CancellationPolicy.STRICT: RefundSchedule(
        steps=(RefundStep(14, Decimal('0.5')), RefundStep(7, Decimal('0.25'))),
        floor=Decimal('0'),
    ),
}


@dataclass(frozen=True)
class RefundPolicy(ValueObject):
    """Operator-tunable inputs of the refund calculation"""
    admin_deduction_rate: Decimal = ADMIN_DEDUCTION_RATE
    schedules: Mapping[CancellationPolicy, RefundSchedule] = field(
        default_factory=lambda: dict(DEFAULT_REFUND_SCHEDULES)
    )

    def __post_init__(self):
        object.__setattr__(
            self, 'admin_deduction_rate', _as_rate(self.admin_deduction_rate, 'admin_deduction_rate')
        )
        merged = dict(DEFAULT_REFUND_SCHEDULES)
        merged.update(self.schedules)
        object.__setattr__(self, 'schedules', merged)

    def schedule_for(self, tier: CancellationPolicy) -> RefundSchedule:
        return self.schedules[tier]


DEFAULT_REFUND_POLICY = RefundPolicy()


@dataclass(frozen=True)
class RefundBreakdown(ValueObject):
    """Result of a refund calculation, as shown on receipts and emails"""
    original_amount: Money
    refund_percentage: Decimal
    refund_before_deduction: Money
    admin_deduction: Money
    cancellation_fee: Money
    final_refund_amount: Money
    days_until_check_in: int
    cancellation_policy: CancellationPolicy
    policy_description: str
    admin_deduction_rate: Decimal
    policy_defaulted: bool = False

    @property
    def refund_percentage_display(self) -> Decimal:
        """Refund percentage on a 0-100 scale"""
        return self.refund_percentage * 100

    def to_dict(self) -> dict:
        return {
            'original_amount': str(self.original_amount.amount),
            'refund_percentage': str(self.refund_percentage),
            'refund_before_deduction': str(self.refund_before_deduction.amount),
            'admin_deduction': str(self.admin_deduction.amount),
            'cancellation_fee': str(self.cancellation_fee.amount),
            'final_refund_amount': str(self.final_refund_amount.amount),
            'currency': self.original_amount.currency,
            'days_until_check_in': self.days_until_check_in,
            'cancellation_policy': self.cancellation_policy.value,
            'policy_description': self.policy_description,
            'admin_deduction_rate': str(self.admin_deduction_rate),
        }


def days_until_check_in(check_in: datetime, moment: datetime) -> int:
    """Whole days from `moment` to `check_in`, rounding any partial day up"""
    return -((moment - check_in) // ONE_DAY)


def calculate_refund(
    booking,
    cancelled_at: datetime,
    policy: RefundPolicy = DEFAULT_REFUND_POLICY,
) -> RefundBreakdown:
    """
    Compute the refund for cancelling `booking` at `cancelled_at`.

    `booking` needs `check_in`, `total_amount` (Money or Decimal) and
    `cancellation_policy`. Raises MissingDataError when check-in or the
    total amount is absent.
    """
    booking_id = getattr(booking, 'id', None)
    check_in = getattr(booking, 'check_in', None)
    if not isinstance(check_in, datetime):
        raise MissingDataError('check_in', booking_id)

    total = getattr(booking, 'total_amount', None)
    if total is None:
        raise MissingDataError('total_amount', booking_id)
    if not isinstance(total, Money):
        try:
            total = Money(total)
        except (ArithmeticError, ValueError) as exc:
            raise MissingDataError('total_amount', booking_id) from exc
    total = total.quantize()

    tier, defaulted = CancellationPolicy.resolve(getattr(booking, 'cancellation_policy', None))
    schedule = policy.schedule_for(tier)
    days = days_until_check_in(check_in, cancelled_at)

    percentage = schedule.percentage_for(days)
    refund_before_deduction = (total * percentage).quantize()
    admin_deduction = (refund_before_deduction * policy.admin_deduction_rate).quantize()

    return RefundBreakdown(
        original_amount=total,
        refund_percentage=percentage,
        refund_before_deduction=refund_before_deduction,
        admin_deduction=admin_deduction,
        cancellation_fee=total - refund_before_deduction,
        final_refund_amount=refund_before_deduction - admin_deduction,
        days_until_check_in=days,
        cancellation_policy=tier,
        policy_description=schedule.describe(days),
        admin_deduction_rate=policy.admin_deduction_rate,
        policy_defaulted=defaulted,
    )
