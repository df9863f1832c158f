"""Integration tests for booking API endpoints."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core import mail
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.bookings.tests.factories import create_booking_record
from apps.finances.models import Payout, Wallet
from apps.finances.services import credit_wallet


class BookingAPITests(APITestCase):
    """Covers creation, host decisions, cancellation with refund and quotes."""

    def setUp(self) -> None:
        User = get_user_model()
        self.guest = User.objects.create_user(username="guest", email="guest@example.com", password="GuestPass123")
        self.host = User.objects.create_user(username="host", email="host@example.com", password="HostPass123")
        self.stranger = User.objects.create_user(
            username="stranger", email="stranger@example.com", password="StrangerPass123"
        )
        self.client.force_authenticate(self.guest)
        self.list_url = reverse("booking-list")

    def _payload(self, days_ahead: int = 10, **overrides) -> dict:
        check_in = timezone.now() + timedelta(days=days_ahead)
        payload = {
            "host": self.host.pk,
            "listing_id": "listing-1",
            "listing_title": "Beach House",
            "check_in": check_in.isoformat(),
            "check_out": (check_in + timedelta(days=3)).isoformat(),
            "guests_count": 2,
            "total_amount": "10000.00",
            "base_price": "9000.00",
            "service_fee": "1000.00",
            "cancellation_policy": "moderate",
        }
        payload.update(overrides)
        return payload

    def _action_url(self, booking_id, name: str) -> str:
        return reverse(f"booking-{name}", args=[booking_id])

    # ===== Create =====

    def test_guest_can_create_booking(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(self.list_url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], "pending")
        booking = Booking.objects.get()
        self.assertEqual(booking.guest, self.guest)
        self.assertEqual(booking.host, self.host)
        self.assertEqual(Payout.objects.get(booking=booking).status, Payout.Status.PENDING)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["host@example.com"])

    def test_check_out_must_follow_check_in(self) -> None:
        payload = self._payload()
        payload["check_out"] = payload["check_in"]

        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Booking.objects.exists())

    def test_host_cannot_book_own_listing(self) -> None:
        self.client.force_authenticate(self.host)

        response = self.client.post(self.list_url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_wallet_booking_requires_balance(self) -> None:
        response = self.client.post(self.list_url, self._payload(payment_method="wallet"), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("Insufficient wallet balance", response.data["detail"])
        self.assertFalse(Booking.objects.exists())

    def test_wallet_booking_is_paid_from_balance(self) -> None:
        credit_wallet(self.guest, Decimal("12000.00"))

        response = self.client.post(self.list_url, self._payload(payment_method="wallet"), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(Wallet.objects.get(user=self.guest).balance, Decimal("2000.00"))

    # ===== Host decisions =====

    def test_host_confirms_booking(self) -> None:
        booking = create_booking_record(self.guest, self.host)
        self.client.force_authenticate(self.host)

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(self._action_url(booking.id, "confirm"))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "confirmed")
        self.assertEqual(Payout.objects.get(booking=booking).status, Payout.Status.ON_HOLD)
        self.assertEqual(mail.outbox[0].subject, "Your booking for Beach House is confirmed")

    def test_guest_cannot_confirm(self) -> None:
        booking = create_booking_record(self.guest, self.host)

        response = self.client.post(self._action_url(booking.id, "confirm"))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.PENDING)

    def test_confirming_twice_returns_readable_error(self) -> None:
        booking = create_booking_record(self.guest, self.host, status=Booking.Status.CONFIRMED)
        self.client.force_authenticate(self.host)

        response = self.client.post(self._action_url(booking.id, "confirm"))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["detail"], "Booking already confirmed")

    def test_host_rejects_with_reason(self) -> None:
        booking = create_booking_record(self.guest, self.host)
        self.client.force_authenticate(self.host)

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(
                self._action_url(booking.id, "reject"), {"reason": "Under renovation"}, format="json"
            )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "rejected")
        self.assertEqual(response.data["rejection_reason"], "Under renovation")

    # ===== Cancellation =====

    def test_guest_cancels_and_gets_refund_breakdown(self) -> None:
        booking = create_booking_record(
            self.guest,
            self.host,
            status=Booking.Status.CONFIRMED,
            check_in=timezone.now() + timedelta(days=6, hours=1),
            check_out=timezone.now() + timedelta(days=8),
        )

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(
                self._action_url(booking.id, "cancel"), {"reason": "Plans changed"}, format="json"
            )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "cancelled")
        self.assertEqual(response.data["cancelled_by"], "guest")
        self.assertEqual(Decimal(response.data["refund_amount"]), Decimal("9000.00"))
        self.assertEqual(Decimal(response.data["admin_deduction"]), Decimal("1000.00"))
        self.assertEqual(Payout.objects.get(booking=booking).status, Payout.Status.REFUNDED)
        self.assertEqual(mail.outbox[0].subject, "Booking cancelled: Beach House")

    def test_host_cancellation_is_attributed_to_host(self) -> None:
        booking = create_booking_record(self.guest, self.host)
        self.client.force_authenticate(self.host)

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(self._action_url(booking.id, "cancel"), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["cancelled_by"], "host")

    def test_cancelled_booking_cannot_be_cancelled_again(self) -> None:
        booking = create_booking_record(self.guest, self.host, status=Booking.Status.CANCELLED)

        response = self.client.post(self._action_url(booking.id, "cancel"), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["detail"], "Booking already cancelled")

    def test_stranger_cannot_see_or_cancel_booking(self) -> None:
        booking = create_booking_record(self.guest, self.host)
        self.client.force_authenticate(self.stranger)

        response = self.client.post(self._action_url(booking.id, "cancel"), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    # ===== Queries =====

    def test_refund_quote_does_not_change_booking(self) -> None:
        booking = create_booking_record(
            self.guest,
            self.host,
            check_in=timezone.now() + timedelta(days=2, hours=12),
            check_out=timezone.now() + timedelta(days=5),
        )

        response = self.client.get(self._action_url(booking.id, "refund-quote"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["can_cancel"])
        self.assertEqual(response.data["days_until_check_in"], 3)
        self.assertEqual(response.data["final_refund_amount"], "4500.00")
        self.assertEqual(response.data["cancellation_fee"], "5000.00")
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.PENDING)
        self.assertIsNone(booking.refund_amount)

    def test_auto_confirm_status(self) -> None:
        booking = create_booking_record(self.guest, self.host, created_at=timezone.now() - timedelta(hours=23))

        response = self.client.get(self._action_url(booking.id, "auto-confirm"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["eligible"])
        self.assertEqual(response.data["remaining_hours"], 1)

    def test_list_filters_by_status_and_role(self) -> None:
        create_booking_record(self.guest, self.host)
        create_booking_record(self.guest, self.host, status=Booking.Status.CONFIRMED)
        create_booking_record(self.host, self.guest, listing_id="listing-2")

        confirmed = self.client.get(self.list_url, {"status": "confirmed"})
        as_host = self.client.get(self.list_url, {"role": "host"})
        everything = self.client.get(self.list_url)

        self.assertEqual(confirmed.data["count"], 1)
        self.assertEqual(as_host.data["count"], 1)
        self.assertEqual(as_host.data["results"][0]["listing_id"], "listing-2")
        self.assertEqual(everything.data["count"], 3)

    def test_stranger_sees_no_bookings(self) -> None:
        create_booking_record(self.guest, self.host)
        self.client.force_authenticate(self.stranger)

        response = self.client.get(self.list_url)

        self.assertEqual(response.data["count"], 0)
