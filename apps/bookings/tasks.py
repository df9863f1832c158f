"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task  # type: ignore
from django.contrib.auth import get_user_model  # type: ignore
from django.utils import timezone  # type: ignore

from shared.application.message_bus import message_bus

from .application.command_handlers import CompleteBookingCommand, ConfirmBookingCommand
from .application.sweeps import (
    run_auto_confirm_sweep,
    run_check_in_reminder_sweep,
    run_completion_sweep,
    run_review_reminder_sweep,
)
from .domain.auto_confirm import auto_confirm_reason
from .domain.entities import BookingStatus
from .infrastructure.repositories import DjangoBookingRepository

logger = logging.getLogger(__name__)


def _send_reminder(booking, template, details) -> None:
    from apps.notifications.services import dispatch_notification

    guest = get_user_model().objects.get(pk=booking.guest_id)
    dispatch_notification(guest, template, details)


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="bookings.auto_confirm_pending_bookings")
def auto_confirm_pending_bookings() -> dict[str, int]:
    """
    Confirm pending bookings the host has not answered in time.

    Runs every 15 minutes.

    Returns:
        dict: {"checked": ..., "confirmed": ..., "failed": ...}
    """
    from apps.policies.services import get_auto_confirm_delay

    now = timezone.now()
    delay = get_auto_confirm_delay()
    reason = auto_confirm_reason(delay)
    repo = DjangoBookingRepository()

    result = run_auto_confirm_sweep(
        repo.list_by_status(BookingStatus.PENDING, created_at__lte=now - delay),
        now,
        lambda booking: message_bus.handle_command(
            ConfirmBookingCommand(booking_id=booking.id, auto_confirmed=True, reason=reason)
        ),
        delay,
    )

    if result.confirmed or result.failed:
        logger.info(
            f"Auto-confirm sweep: {result.confirmed} confirmed, "
            f"{result.failed} failed of {result.checked} checked"
        )
    return result.to_dict()


@shared_task(name="bookings.send_check_in_reminders")
def send_check_in_reminders() -> dict[str, int]:
    """
    Remind guests the day before and on the day of check-in.

    Runs every hour.
    """
    now = timezone.now()
    today = timezone.localdate(now)
    repo = DjangoBookingRepository()

    # Coarse window; the reminder policy checks exact local dates
    bookings = repo.list_by_status(
        BookingStatus.CONFIRMED,
        check_in__date__gte=today - timedelta(days=1),
        check_in__date__lte=today + timedelta(days=2),
    )

    result = run_check_in_reminder_sweep(
        bookings,
        today,
        now,
        lambda booking, reminder: repo.claim_reminder(booking.id, reminder, now),
        _send_reminder,
        timezone.get_current_timezone(),
    )

    if result["sent"]:
        logger.info(f"Sent {result['sent']} check-in reminders")
    return result


@shared_task(name="bookings.send_review_reminders")
def send_review_reminders() -> dict[str, int]:
    """
    Ask guests who checked out yesterday to leave a review.

    Runs once a day.
    """
    now = timezone.now()
    today = timezone.localdate(now)
    repo = DjangoBookingRepository()

    bookings = repo.list_by_status(
        BookingStatus.COMPLETED,
        review_reminder_sent=False,
        check_out__date__gte=today - timedelta(days=2),
        check_out__date__lte=today,
    )

    result = run_review_reminder_sweep(
        bookings,
        today,
        now,
        lambda booking, reminder: repo.claim_reminder(booking.id, reminder, now),
        _send_reminder,
        timezone.get_current_timezone(),
    )

    if result["sent"]:
        logger.info(f"Sent {result['sent']} review reminders")
    return result


@shared_task(name="bookings.complete_finished_bookings")
def complete_finished_bookings() -> dict[str, int]:
    """
    Complete confirmed bookings whose stay is over.

    Runs every hour.
    """
    now = timezone.now()
    repo = DjangoBookingRepository()

    result = run_completion_sweep(
        repo.list_by_status(BookingStatus.CONFIRMED, check_in__lte=now),
        now,
        lambda booking: message_bus.handle_command(CompleteBookingCommand(booking_id=booking.id)),
    )

    if result["completed"]:
        logger.info(f"Completed {result['completed']} finished bookings")
    return result
