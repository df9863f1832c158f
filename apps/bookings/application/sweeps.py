"""
Booking Sweeps

Batch jobs run by Celery beat. Each sweep handles bookings one at a time;
a failure on one booking is logged and the sweep moves on to the next.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Callable, Iterable
import logging

from apps.bookings.domain.auto_confirm import (
    AUTO_CONFIRM_DELAY,
    is_eligible_for_auto_confirm,
)
from apps.bookings.domain.entities import Booking, ReminderType
from apps.bookings.domain.errors import BookingError
from apps.bookings.domain.events import NotificationTemplate
from apps.bookings.domain.reminders import (
    REMINDER_MESSAGES,
    due_check_in_reminders,
    is_review_reminder_due,
)

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    checked: int = 0
    confirmed: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return {'checked': self.checked, 'confirmed': self.confirmed, 'failed': self.failed}


def run_auto_confirm_sweep(
    pending_bookings: Iterable[Booking],
    now: datetime,
    confirm: Callable[[Booking], object],
    delay: timedelta = AUTO_CONFIRM_DELAY,
) -> SweepResult:
    """
    Auto-confirm every eligible booking in `pending_bookings`.

    `confirm(booking)` performs the actual auto-confirmation; anything it
    raises counts as a failure for that booking only.
    """
    result = SweepResult()

    for booking in pending_bookings:
        result.checked += 1
        eligibility = is_eligible_for_auto_confirm(booking, now, delay)
        if not eligibility:
            continue

        try:
            confirm(booking)
        except BookingError as e:
            result.failed += 1
            logger.warning(f"Auto-confirm skipped for booking {booking.id}: {e}")
        except Exception as e:
            result.failed += 1
            logger.error(f"Error auto-confirming booking {booking.id}: {e}", exc_info=True)
        else:
            result.confirmed += 1
            logger.info(f"Booking {booking.id} auto-confirmed (created {eligibility.created_at})")

    return result


def run_check_in_reminder_sweep(
    confirmed_bookings: Iterable[Booking],
    today: date,
    now: datetime,
    claim: Callable[[Booking, ReminderType], bool],
    send: Callable[[Booking, NotificationTemplate, dict], object],
    tz: tzinfo | None = None,
) -> dict[str, int]:
    """
    Send check-in reminders due `today`.

    `claim` sets the reminder flag and returns False if another run already
    did, so each reminder goes out at most once even when sweeps overlap.
    """
    checked = sent = 0

    for booking in confirmed_bookings:
        checked += 1
        for reminder in due_check_in_reminders(booking, today, tz):
            try:
                if not claim(booking, reminder):
                    continue
                booking.mark_reminder_sent(reminder, now)
                send(
                    booking,
                    NotificationTemplate.CHECK_IN_REMINDER,
                    booking.notification_details(
                        reminder=reminder.value,
                        message=REMINDER_MESSAGES[reminder],
                    ),
                )
                sent += 1
                logger.info(f"Check-in reminder {reminder.value} sent for booking {booking.id}")
            except Exception as e:
                logger.error(
                    f"Error sending {reminder.value} reminder for booking {booking.id}: {e}",
                    exc_info=True,
                )

    return {'checked': checked, 'sent': sent}


def run_review_reminder_sweep(
    completed_bookings: Iterable[Booking],
    today: date,
    now: datetime,
    claim: Callable[[Booking, ReminderType], bool],
    send: Callable[[Booking, NotificationTemplate, dict], object],
    tz: tzinfo | None = None,
) -> dict[str, int]:
    """Ask guests who checked out yesterday for a review"""
    checked = sent = 0

    for booking in completed_bookings:
        checked += 1
        if not is_review_reminder_due(booking, today, tz):
            continue
        try:
            if not claim(booking, ReminderType.REVIEW):
                continue
            booking.mark_reminder_sent(ReminderType.REVIEW, now)
            send(booking, NotificationTemplate.REVIEW_REMINDER, booking.notification_details())
            sent += 1
            logger.info(f"Review reminder sent for booking {booking.id}")
        except Exception as e:
            logger.error(f"Error sending review reminder for booking {booking.id}: {e}", exc_info=True)

    return {'checked': checked, 'sent': sent}


def run_completion_sweep(
    confirmed_bookings: Iterable[Booking],
    now: datetime,
    complete: Callable[[Booking], object],
) -> dict[str, int]:
    """Complete confirmed bookings whose stay has ended"""
    checked = completed = failed = 0

    for booking in confirmed_bookings:
        checked += 1
        if not booking.has_checked_out(now):
            continue
        try:
            complete(booking)
        except BookingError as e:
            failed += 1
            logger.warning(f"Completion skipped for booking {booking.id}: {e}")
        except Exception as e:
            failed += 1
            logger.error(f"Error completing booking {booking.id}: {e}", exc_info=True)
        else:
            completed += 1

    return {'checked': checked, 'completed': completed, 'failed': failed}
