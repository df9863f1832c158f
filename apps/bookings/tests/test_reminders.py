from datetime import date, datetime, timedelta, timezone

from apps.bookings.domain.entities import BookingStatus, ReminderType
from apps.bookings.domain.reminders import due_check_in_reminders, is_review_reminder_due
from apps.bookings.tests.factories import NOW, make_booking

MANILA = timezone(timedelta(hours=8))

CHECK_IN = datetime(2025, 6, 2, 14, 0, tzinfo=timezone.utc)


def _confirmed(**overrides):
    fields = dict(status=BookingStatus.CONFIRMED, check_in=CHECK_IN, check_out=CHECK_IN + timedelta(days=2))
    fields.update(overrides)
    return make_booking(**fields)


def test_day_before_check_in():
    assert due_check_in_reminders(_confirmed(), date(2025, 6, 1)) == [ReminderType.CHECK_IN_1_DAY]


def test_check_in_day():
    assert due_check_in_reminders(_confirmed(), date(2025, 6, 2)) == [ReminderType.CHECK_IN_DAY_OF]


def test_no_reminder_on_other_days():
    assert due_check_in_reminders(_confirmed(), date(2025, 5, 30)) == []
    assert due_check_in_reminders(_confirmed(), date(2025, 6, 3)) == []


def test_only_confirmed_bookings_get_check_in_reminders():
    booking = _confirmed(status=BookingStatus.PENDING)

    assert due_check_in_reminders(booking, date(2025, 6, 1)) == []


def test_reminder_flag_is_set_once():
    booking = _confirmed()

    assert booking.mark_reminder_sent(ReminderType.CHECK_IN_1_DAY, NOW) is True
    assert booking.check_in_reminder_1_day_sent_at == NOW
    assert booking.mark_reminder_sent(ReminderType.CHECK_IN_1_DAY, NOW + timedelta(hours=1)) is False
    assert booking.check_in_reminder_1_day_sent_at == NOW
    assert due_check_in_reminders(booking, date(2025, 6, 1)) == []


def test_check_in_date_uses_the_local_zone():
    # 20:00 UTC on June 1st is already June 2nd in Manila
    booking = _confirmed(check_in=datetime(2025, 6, 1, 20, 0, tzinfo=timezone.utc), check_out=None)

    assert due_check_in_reminders(booking, date(2025, 6, 2), tz=MANILA) == [ReminderType.CHECK_IN_DAY_OF]
    assert due_check_in_reminders(booking, date(2025, 6, 1)) == [ReminderType.CHECK_IN_DAY_OF]


def test_review_reminder_the_day_after_check_out():
    booking = _confirmed(status=BookingStatus.COMPLETED)
    check_out_day = booking.check_out.date()

    assert is_review_reminder_due(booking, check_out_day + timedelta(days=1))
    assert not is_review_reminder_due(booking, check_out_day)
    assert not is_review_reminder_due(booking, check_out_day + timedelta(days=2))

    booking.mark_reminder_sent(ReminderType.REVIEW, NOW)
    assert not is_review_reminder_due(booking, check_out_day + timedelta(days=1))


def test_review_reminder_needs_a_completed_booking():
    booking = _confirmed()

    assert not is_review_reminder_due(booking, booking.check_out.date() + timedelta(days=1))
