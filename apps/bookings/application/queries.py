"""Read-only booking queries: refund previews and auto-confirm status."""

from datetime import datetime
from uuid import UUID

from apps.bookings.domain.auto_confirm import AutoConfirmEligibility, is_eligible_for_auto_confirm
from apps.bookings.domain.entities import BookingStatus
from apps.bookings.domain.refunds import RefundBreakdown, calculate_refund
from apps.bookings.infrastructure.repositories import DjangoBookingRepository


def get_refund_quote(booking_id: UUID, now: datetime, repo=None) -> tuple[RefundBreakdown, bool]:
    """
    Refund the guest would get when cancelling at `now`.

    Returns (breakdown, can_cancel); nothing is persisted.
    """
    from apps.policies.services import get_refund_policy

    booking = (repo or DjangoBookingRepository()).get_by_id(booking_id)
    breakdown = calculate_refund(booking, now, get_refund_policy())
    return breakdown, booking.can_transition_to(BookingStatus.CANCELLED)


def get_auto_confirm_status(booking_id: UUID, now: datetime, repo=None) -> AutoConfirmEligibility:
    from apps.policies.services import get_auto_confirm_delay

    booking = (repo or DjangoBookingRepository()).get_by_id(booking_id)
    return is_eligible_for_auto_confirm(booking, now, get_auto_confirm_delay())
