"""Notification services for booking emails and in-app messages."""

from __future__ import annotations

import html
import logging
from typing import TYPE_CHECKING, Callable

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.utils.html import format_html, strip_tags  # type: ignore

from apps.bookings.domain.errors import NotificationDispatchError

from .models import Notification

if TYPE_CHECKING:  # pragma: no cover
    from django.contrib.auth.models import User

logger = logging.getLogger(__name__)


# ============================================================================
# MESSAGE TEMPLATES
# ============================================================================

def _amount(details: dict, key: str = "total_amount") -> str:
    return f"{details.get(key, '0.00')} {details.get('currency', 'PHP')}"


def _stay(details: dict) -> str:
    return f"{details.get('check_in', 'N/A')} - {details.get('check_out', 'N/A')}"


def _new_booking_host(details: dict) -> tuple[str, str]:
    return (
        f"New booking request for {details['listing_title']}",
        format_html(
            "<p>You have a new booking request for <strong>{}</strong>.</p>"
            "<ul><li>Dates: {}</li><li>Guests: {}</li><li>Total: {}</li></ul>"
            "<p>Please approve or decline it within 24 hours, otherwise it is confirmed automatically.</p>",
            details["listing_title"],
            _stay(details),
            details.get("guests", 1),
            _amount(details),
        ),
    )


def _booking_approved(details: dict) -> tuple[str, str]:
    return (
        f"Your booking for {details['listing_title']} is confirmed",
        format_html(
            "<p>The host approved your booking for <strong>{}</strong>.</p>"
            "<ul><li>Dates: {}</li><li>Total: {}</li></ul>",
            details["listing_title"],
            _stay(details),
            _amount(details),
        ),
    )


def _booking_auto_confirmed(details: dict) -> tuple[str, str]:
    return (
        f"Your booking for {details['listing_title']} is confirmed",
        format_html(
            "<p>Your booking for <strong>{}</strong> was confirmed automatically.</p>"
            "<p>{}</p>"
            "<ul><li>Dates: {}</li><li>Total: {}</li></ul>",
            details["listing_title"],
            details.get("auto_confirm_reason", ""),
            _stay(details),
            _amount(details),
        ),
    )


def _booking_rejected(details: dict) -> tuple[str, str]:
    return (
        f"Your booking request for {details['listing_title']} was declined",
        format_html(
            "<p>Unfortunately the host declined your booking for <strong>{}</strong>.</p>"
            "<p>Reason: {}</p>",
            details["listing_title"],
            details.get("rejection_reason", "Not specified"),
        ),
    )


def _booking_cancelled(details: dict) -> tuple[str, str]:
    return (
        f"Booking cancelled: {details['listing_title']}",
        format_html(
            "<p>Your booking for <strong>{}</strong> ({}) was cancelled.</p>"
            "<h3>Refund details</h3>"
            "<ul><li>Policy: {}</li>"
            "<li>Original amount: {}</li>"
            "<li>Refund before deduction: {}</li>"
            "<li>Admin deduction: {}</li>"
            "<li>Refund: <strong>{}</strong></li></ul>",
            details["listing_title"],
            _stay(details),
            details.get("policy_description", "N/A"),
            _amount(details, "original_amount"),
            _amount(details, "refund_before_deduction"),
            _amount(details, "admin_deduction"),
            _amount(details, "final_refund_amount"),
        ),
    )


def _booking_completed(details: dict) -> tuple[str, str]:
    if details.get("role") == "host":
        return (
            f"Stay completed at {details['listing_title']}",
            format_html(
                "<p>The stay at <strong>{}</strong> ({}) is complete.</p>"
                "<p>Don't forget to review your guest.</p>",
                details["listing_title"],
                _stay(details),
            ),
        )
    return (
        f"Thanks for staying at {details['listing_title']}",
        format_html(
            "<p>Your stay at <strong>{}</strong> ({}) is complete.</p>"
            "<p>We hope you enjoyed it!</p>",
            details["listing_title"],
            _stay(details),
        ),
    )


def _check_in_reminder(details: dict) -> tuple[str, str]:
    return (
        f"Check-in reminder: {details['listing_title']}",
        format_html(
            "<p>{}</p><ul><li>Listing: {}</li><li>Check-in: {}</li></ul>",
            details.get("message", "Your check-in is coming up."),
            details["listing_title"],
            details.get("check_in", "N/A"),
        ),
    )


def _review_reminder(details: dict) -> tuple[str, str]:
    return (
        f"How was your stay at {details['listing_title']}?",
        format_html(
            "<p>You checked out of <strong>{}</strong> yesterday.</p>"
            "<p>Share your experience by leaving a review.</p>",
            details["listing_title"],
        ),
    )


TEMPLATES: dict[str, Callable[[dict], tuple[str, str]]] = {
    "new_booking_host": _new_booking_host,
    "booking_approved": _booking_approved,
    "booking_auto_confirmed": _booking_auto_confirmed,
    "booking_rejected": _booking_rejected,
    "booking_cancelled": _booking_cancelled,
    "booking_completed": _booking_completed,
    "check_in_reminder": _check_in_reminder,
    "review_reminder": _review_reminder,
}


def render_notification(template: str, details: dict) -> tuple[str, str]:
    """Subject and HTML body for ``template``."""

    try:
        renderer = TEMPLATES[template]
    except KeyError:
        raise NotificationDispatchError(f"Unknown notification template '{template}'")
    return renderer({"listing_title": "Listing", **details})


# ============================================================================
# CHANNELS
# ============================================================================

def _plain_text(html_message: str) -> str:
    return html.unescape(strip_tags(html_message))


def send_email_notification(recipient_email: str, subject: str, html_message: str) -> bool:
    """
    Send one HTML email with a plain-text alternative.

    Returns True when the mail backend accepted the message.
    """
    try:
        send_mail(
            subject=subject,
            message=_plain_text(html_message),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            html_message=html_message,
            fail_silently=False,
        )
        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


def create_in_app_notification(user: "User", template: str, title: str, message: str, booking_id=None) -> Notification:
    notification = Notification.objects.create(
        user=user,
        template=template,
        booking_id=booking_id,
        title=title,
        message=message,
    )
    logger.info(f"In-app notification created for user {user.pk}: {title}")
    return notification


# ============================================================================
# DISPATCHER
# ============================================================================

def dispatch_notification(recipient: "User", template, details: dict) -> Notification:
    """
    Deliver ``template`` to ``recipient`` by email and as an in-app message.

    Raises NotificationDispatchError when any channel fails; callers running
    after a committed status change only log it.
    """
    template = getattr(template, "value", template)
    subject, html_message = render_notification(template, details)

    try:
        notification = create_in_app_notification(
            recipient,
            template,
            subject,
            _plain_text(html_message),
            booking_id=details.get("booking_id"),
        )
    except Exception as e:
        raise NotificationDispatchError(
            f"Could not store {template} notification for user {recipient.pk}: {e}"
        ) from e

    if not recipient.email:
        logger.warning(f"User {recipient.pk} has no email address, {template} sent in-app only")
        return notification

    if not send_email_notification(recipient.email, subject, html_message):
        raise NotificationDispatchError(f"Email {template} to {recipient.email} failed")

    return notification
