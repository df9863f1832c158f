from smtplib import SMTPException

import pytest
from django.contrib.auth import get_user_model

from apps.bookings.domain.errors import NotificationDispatchError
from apps.bookings.domain.events import NotificationTemplate
from apps.notifications.models import Notification
from apps.notifications.services import TEMPLATES, dispatch_notification, render_notification

DETAILS = {
    "booking_id": "0b0c1d6e-6a8e-4a51-9a0b-8a3e2a6f9c11",
    "listing_title": "Beach House",
    "check_in": "2025-06-10",
    "check_out": "2025-06-13",
    "total_amount": "10000.00",
    "currency": "PHP",
}


def test_every_booking_template_has_a_renderer():
    assert set(TEMPLATES) == {template.value for template in NotificationTemplate}


def test_cancellation_email_lists_refund_breakdown():
    subject, html = render_notification(
        "booking_cancelled",
        {
            **DETAILS,
            "original_amount": "10000.00",
            "refund_before_deduction": "5000.00",
            "admin_deduction": "500.00",
            "final_refund_amount": "4500.00",
            "policy_description": "50% refund (cancelled 1-4 days before check-in)",
        },
    )

    assert subject == "Booking cancelled: Beach House"
    assert "4500.00 PHP" in html
    assert "50% refund (cancelled 1-4 days before check-in)" in html


def test_user_text_is_escaped_in_html_body():
    _, host_html = render_notification(
        "new_booking_host", {**DETAILS, "listing_title": '<img src=x onerror="alert(1)">'}
    )
    _, guest_html = render_notification(
        "booking_rejected", {**DETAILS, "rejection_reason": "<script>steal()</script>"}
    )

    assert "<img" not in host_html
    assert "&lt;img src=x" in host_html
    assert "<script>" not in guest_html
    assert "&lt;script&gt;steal()&lt;/script&gt;" in guest_html


@pytest.mark.django_db
def test_in_app_message_keeps_plain_characters():
    user = get_user_model().objects.create_user(username="guest", email="guest@example.com", password="pass")

    notification = dispatch_notification(
        user, "booking_rejected", {**DETAILS, "listing_title": "Anna's Loft", "rejection_reason": "Pets & kids"}
    )

    assert "Anna's Loft" in notification.message
    assert "Reason: Pets & kids" in notification.message


def test_missing_listing_title_falls_back():
    subject, _ = render_notification("review_reminder", {})

    assert subject == "How was your stay at Listing?"


def test_unknown_template_is_rejected():
    with pytest.raises(NotificationDispatchError):
        render_notification("birthday_greeting", DETAILS)


@pytest.mark.django_db
def test_dispatch_sends_email_and_stores_in_app_message(mailoutbox):
    user = get_user_model().objects.create_user(username="guest", email="guest@example.com", password="pass")

    notification = dispatch_notification(user, NotificationTemplate.BOOKING_APPROVED, DETAILS)

    assert notification.template == "booking_approved"
    assert str(notification.booking_id) == DETAILS["booking_id"]
    assert notification.title == "Your booking for Beach House is confirmed"
    assert "<" not in notification.message
    assert len(mailoutbox) == 1
    assert mailoutbox[0].to == ["guest@example.com"]
    assert mailoutbox[0].alternatives[0][1] == "text/html"


@pytest.mark.django_db
def test_user_without_email_gets_in_app_message_only(mailoutbox):
    user = get_user_model().objects.create_user(username="no_email", password="pass")

    dispatch_notification(user, "check_in_reminder", DETAILS)

    assert Notification.objects.filter(user=user).count() == 1
    assert mailoutbox == []


@pytest.mark.django_db
def test_mail_failure_raises_dispatch_error(monkeypatch):
    user = get_user_model().objects.create_user(username="guest", email="guest@example.com", password="pass")

    def broken_send_mail(*args, **kwargs):
        raise SMTPException("Connection refused")

    monkeypatch.setattr("apps.notifications.services.send_mail", broken_send_mail)

    with pytest.raises(NotificationDispatchError):
        dispatch_notification(user, "booking_rejected", DETAILS)

    assert Notification.objects.filter(user=user).count() == 1
