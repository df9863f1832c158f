"""
Auto-Confirm Policy

A pending booking the host has not answered within AUTO_CONFIRM_DELAY is
confirmed automatically. This module only decides eligibility; the sweep in
the application layer performs the transition.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from apps.bookings.domain.entities import BookingStatus

AUTO_CONFIRM_DELAY = timedelta(hours=24)

NOT_PENDING = "not pending"
INVALID_CREATION_DATE = "invalid creation date"

ONE_HOUR = timedelta(hours=1)


@dataclass(frozen=True)
class AutoConfirmEligibility:
    """Eligibility decision plus the timing details shown in the UI"""
    eligible: bool
    reason: str = ''
    remaining: timedelta = timedelta(0)
    remaining_hours: int = 0
    created_at: datetime | None = None
    eligible_at: datetime | None = None

    def __bool__(self):
        return self.eligible


def is_eligible_for_auto_confirm(
    booking,
    now: datetime,
    delay: timedelta = AUTO_CONFIRM_DELAY,
) -> AutoConfirmEligibility:
    """
    Decide whether `booking` should be auto-confirmed at `now`.

    Eligibility is monotonic in time: once eligible, a booking stays
    eligible for every later `now` while its status is unchanged.
    """
    if booking.status != BookingStatus.PENDING:
        return AutoConfirmEligibility(eligible=False, reason=NOT_PENDING)

    created_at = getattr(booking, 'created_at', None)
    if not isinstance(created_at, datetime):
        return AutoConfirmEligibility(eligible=False, reason=INVALID_CREATION_DATE)

    eligible_at = created_at + delay
    remaining = max(eligible_at - now, timedelta(0))

    return AutoConfirmEligibility(
        eligible=now >= eligible_at,
        remaining=remaining,
        remaining_hours=math.ceil(remaining / ONE_HOUR),
        created_at=created_at,
        eligible_at=eligible_at,
    )


def auto_confirm_delay_hours(delay: timedelta = AUTO_CONFIRM_DELAY) -> float:
    return delay / ONE_HOUR


def auto_confirm_reason(delay: timedelta = AUTO_CONFIRM_DELAY) -> str:
    return f"Host did not respond within {auto_confirm_delay_hours(delay):g} hours"
