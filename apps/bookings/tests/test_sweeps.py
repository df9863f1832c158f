"""Sweep and periodic task tests."""

from datetime import date, datetime, timedelta
from datetime import timezone as dt_timezone

import pytest
from django.utils import timezone

from apps.bookings.application.sweeps import (
    run_auto_confirm_sweep,
    run_check_in_reminder_sweep,
    run_completion_sweep,
    run_review_reminder_sweep,
)
from apps.bookings.domain.entities import BookingStatus, ReminderType
from apps.bookings.domain.errors import InvalidTransitionError
from apps.bookings.domain.events import NotificationTemplate
from apps.bookings.models import Booking
from apps.bookings.tasks import (
    auto_confirm_pending_bookings,
    complete_finished_bookings,
    send_check_in_reminders,
    send_review_reminders,
)
from apps.bookings.tests.factories import NOW, create_booking_record, make_booking
from apps.finances.models import Payout


# ===== Sweeps (no database) =====

def test_auto_confirm_sweep_confirms_only_eligible_bookings():
    overdue = make_booking(created_at=NOW - timedelta(hours=30))
    fresh = make_booking(created_at=NOW - timedelta(hours=2))
    confirmed = []

    result = run_auto_confirm_sweep([overdue, fresh], NOW, confirmed.append)

    assert confirmed == [overdue]
    assert result.to_dict() == {"checked": 2, "confirmed": 1, "failed": 0}


def test_auto_confirm_sweep_continues_after_a_failure():
    first = make_booking(created_at=NOW - timedelta(hours=30))
    second = make_booking(created_at=NOW - timedelta(hours=40))
    third = make_booking(created_at=NOW - timedelta(hours=50))
    confirmed = []

    def confirm(booking):
        if booking is first:
            raise InvalidTransitionError(BookingStatus.CONFIRMED, BookingStatus.CONFIRMED, booking.id)
        if booking is second:
            raise RuntimeError("database went away")
        confirmed.append(booking)

    result = run_auto_confirm_sweep([first, second, third], NOW, confirm)

    assert confirmed == [third]
    assert result.checked == 3
    assert result.confirmed == 1
    assert result.failed == 2


def test_check_in_sweep_claims_before_sending():
    booking = make_booking(
        status=BookingStatus.CONFIRMED,
        check_in=datetime(2025, 6, 2, 14, 0, tzinfo=dt_timezone.utc),
        check_out=datetime(2025, 6, 4, 11, 0, tzinfo=dt_timezone.utc),
    )
    claimed = set()
    sent = []

    def claim(booking, reminder):
        if (booking.id, reminder) in claimed:
            return False
        claimed.add((booking.id, reminder))
        return True

    def send(booking, template, details):
        sent.append((template, details["reminder"]))

    first = run_check_in_reminder_sweep([booking], date(2025, 6, 1), NOW, claim, send)
    # A second worker holding an old copy of the booking
    stale = make_booking(id=booking.id, status=BookingStatus.CONFIRMED, check_in=booking.check_in, check_out=booking.check_out)
    second = run_check_in_reminder_sweep([stale], date(2025, 6, 1), NOW, claim, send)

    assert first == {"checked": 1, "sent": 1}
    assert second == {"checked": 1, "sent": 0}
    assert sent == [(NotificationTemplate.CHECK_IN_REMINDER, "check_in_1_day")]
    assert booking.check_in_reminder_1_day_sent is True


def test_failed_reminder_send_is_not_retried():
    booking = make_booking(
        status=BookingStatus.COMPLETED,
        check_in=datetime(2025, 5, 28, 14, 0, tzinfo=dt_timezone.utc),
        check_out=datetime(2025, 5, 31, 11, 0, tzinfo=dt_timezone.utc),
    )
    claims = []

    def claim(booking, reminder):
        claims.append(reminder)
        return len(claims) == 1

    def send(booking, template, details):
        raise RuntimeError("smtp down")

    result = run_review_reminder_sweep([booking], date(2025, 6, 1), NOW, claim, send)

    assert result == {"checked": 1, "sent": 0}
    assert claims == [ReminderType.REVIEW]
    assert booking.review_reminder_sent is True


def test_completion_sweep_skips_stays_in_progress():
    finished = make_booking(
        status=BookingStatus.CONFIRMED,
        check_in=NOW - timedelta(days=3),
        check_out=NOW - timedelta(hours=1),
    )
    in_progress = make_booking(
        status=BookingStatus.CONFIRMED,
        check_in=NOW - timedelta(days=1),
        check_out=NOW + timedelta(days=1),
    )
    completed = []

    result = run_completion_sweep([finished, in_progress], NOW, completed.append)

    assert completed == [finished]
    assert result == {"checked": 2, "completed": 1, "failed": 0}


# ===== Celery tasks =====

@pytest.mark.django_db
def test_auto_confirm_task(guest, host, mailoutbox, django_capture_on_commit_callbacks):
    now = timezone.now()
    overdue = create_booking_record(guest, host, created_at=now - timedelta(hours=25))
    recent = create_booking_record(guest, host, created_at=now - timedelta(hours=23))

    with django_capture_on_commit_callbacks(execute=True):
        result = auto_confirm_pending_bookings()

    assert result == {"checked": 1, "confirmed": 1, "failed": 0}
    overdue.refresh_from_db()
    recent.refresh_from_db()
    assert overdue.status == Booking.Status.CONFIRMED
    assert overdue.auto_confirmed is True
    assert overdue.auto_confirm_reason == "Host did not respond within 24 hours"
    assert recent.status == Booking.Status.PENDING
    assert Payout.objects.get(booking=overdue).status == Payout.Status.ON_HOLD
    assert len(mailoutbox) == 1


@pytest.mark.django_db
def test_auto_confirm_task_honours_configured_delay(guest, host, settings, django_capture_on_commit_callbacks):
    settings.BOOKINGS_AUTO_CONFIRM_DELAY_HOURS = 12
    record = create_booking_record(guest, host, created_at=timezone.now() - timedelta(hours=13))

    with django_capture_on_commit_callbacks(execute=True):
        auto_confirm_pending_bookings()

    record.refresh_from_db()
    assert record.status == Booking.Status.CONFIRMED
    assert record.auto_confirm_reason == "Host did not respond within 12 hours"


@pytest.mark.django_db
def test_check_in_reminder_task_sends_once(guest, host, mailoutbox):
    tomorrow = timezone.localtime() + timedelta(days=1)
    check_in = tomorrow.replace(hour=14, minute=0, second=0, microsecond=0)
    record = create_booking_record(
        guest, host, status=Booking.Status.CONFIRMED, check_in=check_in, check_out=check_in + timedelta(days=2)
    )

    first = send_check_in_reminders()
    second = send_check_in_reminders()

    assert first["sent"] == 1
    assert second["sent"] == 0
    record.refresh_from_db()
    assert record.check_in_reminder_1_day_sent is True
    assert record.check_in_reminder_day_of_sent is False
    assert len(mailoutbox) == 1
    assert mailoutbox[0].subject == "Check-in reminder: Beach House"
    assert "Your check-in is tomorrow!" in mailoutbox[0].body


@pytest.mark.django_db
def test_review_reminder_task_sends_once(guest, host, mailoutbox):
    yesterday = timezone.localtime() - timedelta(days=1)
    check_out = yesterday.replace(hour=11, minute=0, second=0, microsecond=0)
    record = create_booking_record(
        guest, host, status=Booking.Status.COMPLETED, check_in=check_out - timedelta(days=3), check_out=check_out
    )

    assert send_review_reminders()["sent"] == 1
    assert send_review_reminders()["sent"] == 0

    record.refresh_from_db()
    assert record.review_reminder_sent is True
    assert mailoutbox[0].subject == "How was your stay at Beach House?"


@pytest.mark.django_db
def test_complete_finished_bookings_task(guest, host, django_capture_on_commit_callbacks):
    now = timezone.now()
    finished = create_booking_record(
        guest, host, status=Booking.Status.CONFIRMED, check_in=now - timedelta(days=3), check_out=now - timedelta(hours=1)
    )
    ongoing = create_booking_record(
        guest, host, status=Booking.Status.CONFIRMED, check_in=now - timedelta(days=1), check_out=now + timedelta(days=1)
    )

    with django_capture_on_commit_callbacks(execute=True):
        result = complete_finished_bookings()

    assert result == {"checked": 2, "completed": 1, "failed": 0}
    finished.refresh_from_db()
    ongoing.refresh_from_db()
    assert finished.status == Booking.Status.COMPLETED
    assert ongoing.status == Booking.Status.CONFIRMED
