"""
Booking Effects

Each status transition returns the effects it requires instead of performing
them inline. Effects are domain events: the unit of work publishes them to the
message bus after the status change commits, and the registered handlers
perform the I/O (email, payout record, wallet credit).

A failing effect never reverts the transition that produced it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import UUID

from shared.domain.base import DomainEvent
from shared.domain.value_objects import Money

from apps.bookings.domain.entities import PayoutStatus


class NotificationTemplate(Enum):
    """Message types understood by the notification dispatcher"""
    NEW_BOOKING_HOST = 'new_booking_host'
    BOOKING_APPROVED = 'booking_approved'
    BOOKING_AUTO_CONFIRMED = 'booking_auto_confirmed'
    BOOKING_REJECTED = 'booking_rejected'
    BOOKING_CANCELLED = 'booking_cancelled'
    BOOKING_COMPLETED = 'booking_completed'
    CHECK_IN_REMINDER = 'check_in_reminder'
    REVIEW_REMINDER = 'review_reminder'


@dataclass(kw_only=True)
class BookingEffect(DomainEvent):
    booking_id: UUID


@dataclass(kw_only=True)
class NotifyGuest(BookingEffect):
    """
    Effect: send a message to the booking's guest

    Emitted by: confirm, reject, cancel, complete
    """
    guest_id: Any
    template: NotificationTemplate
    details: dict = field(default_factory=dict)


@dataclass(kw_only=True)
class NotifyHost(BookingEffect):
    """
    Effect: send a message to the listing's host

    Emitted by: booking creation, complete
    """
    host_id: Any
    template: NotificationTemplate
    details: dict = field(default_factory=dict)


@dataclass(kw_only=True)
class UpdatePayout(BookingEffect):
    """
    Effect: move the booking's payout record to a new status

    Emitted by: confirm (ON_HOLD), cancel (REFUNDED)
    """
    status: PayoutStatus
    refund_amount: Money | None = None


@dataclass(kw_only=True)
class CreditWallet(BookingEffect):
    """
    Effect: add money to a user's wallet and record the audit transaction

    Emitted by: cancel, when the booking was paid from the guest wallet
    """
    user_id: Any
    amount: Money
    description: str = ''
