"""
Reminder Policy

Decides which one-shot reminders a booking is due for on a given local date:
- check-in reminder the day before check-in
- check-in reminder on the check-in day
- review reminder the day after check-out

Each reminder is sent at most once per booking; the flags live on the Booking.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo
from typing import List

from apps.bookings.domain.entities import BookingStatus, ReminderType

REMINDER_MESSAGES = {
    ReminderType.CHECK_IN_1_DAY: "Your check-in is tomorrow! Get ready for your stay.",
    ReminderType.CHECK_IN_DAY_OF: "Today is your check-in day! Have a wonderful stay.",
}


def local_date(moment: datetime, tz: tzinfo | None = None) -> date:
    """Calendar date of `moment` in `tz` (or in its own zone)"""
    if tz is not None and moment.tzinfo is not None:
        moment = moment.astimezone(tz)
    return moment.date()


def due_check_in_reminders(booking, today: date, tz: tzinfo | None = None) -> List[ReminderType]:
    """Check-in reminders `booking` should receive on `today`"""
    if booking.status != BookingStatus.CONFIRMED or booking.check_in is None:
        return []

    check_in_day = local_date(booking.check_in, tz)
    due = []
    if check_in_day == today + timedelta(days=1) and not booking.reminder_sent(ReminderType.CHECK_IN_1_DAY):
        due.append(ReminderType.CHECK_IN_1_DAY)
    if check_in_day == today and not booking.reminder_sent(ReminderType.CHECK_IN_DAY_OF):
        due.append(ReminderType.CHECK_IN_DAY_OF)
    return due


def is_review_reminder_due(booking, today: date, tz: tzinfo | None = None) -> bool:
    """True the day after check-out of a completed booking, until the reminder is sent"""
    if booking.status != BookingStatus.COMPLETED or booking.check_out is None:
        return False
    if booking.reminder_sent(ReminderType.REVIEW):
        return False
    return local_date(booking.check_out, tz) == today - timedelta(days=1)
