"""
Booking Domain Entities

Core business entities for the booking lifecycle:
- Booking: aggregate root representing a reservation
- BookingStatus: FSM states for the booking lifecycle
- PaymentMethod / PaymentStatus: how the guest paid
- PayoutStatus: state of the money owed to the host
- ReminderType: one-shot reminders tracked on the booking
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, List

from shared.domain.base import Aggregate, DomainEvent
from shared.domain.value_objects import Money

from apps.bookings.domain.errors import InvalidTransitionError
from apps.bookings.domain.refunds import (
    DEFAULT_CANCELLATION_POLICY,
    DEFAULT_REFUND_POLICY,
    CancellationPolicy,
    RefundBreakdown,
    RefundPolicy,
    calculate_refund,
)


class BookingStatus(Enum):
    """
    Booking Status Finite State Machine

    State transitions:
    - PENDING -> CONFIRMED (host approved, or auto-confirm timeout)
    - PENDING -> REJECTED (host declined)
    - PENDING -> CANCELLED (guest or host cancelled)
    - CONFIRMED -> CANCELLED (guest or host cancelled)
    - CONFIRMED -> COMPLETED (check-out has passed)

    REJECTED, CANCELLED and COMPLETED are terminal.
    """
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    REJECTED = 'rejected'
    CANCELLED = 'cancelled'
    COMPLETED = 'completed'

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self]


ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset] = {
    BookingStatus.PENDING: frozenset({
        BookingStatus.CONFIRMED,
        BookingStatus.REJECTED,
        BookingStatus.CANCELLED,
    }),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.CANCELLED,
        BookingStatus.COMPLETED,
    }),
    BookingStatus.REJECTED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}


class PaymentMethod(Enum):
    WALLET = 'wallet'
    PAYPAL = 'paypal'  # External payment, settled through the platform account


class PaymentStatus(Enum):
    PENDING = 'pending'
    PAID = 'paid'
    REFUNDED = 'refunded'


class CancelledBy(Enum):
    GUEST = 'guest'
    HOST = 'host'
    SYSTEM = 'system'


class PayoutStatus(Enum):
    """Money owed to the host, driven by (but independent from) BookingStatus"""
    PENDING = 'PENDING'
    ON_HOLD = 'ON_HOLD'
    RELEASED = 'RELEASED'
    REFUNDED = 'REFUNDED'


class ReminderType(Enum):
    CHECK_IN_1_DAY = 'check_in_1_day'
    CHECK_IN_DAY_OF = 'check_in_day_of'
    REVIEW = 'review'


@dataclass(kw_only=True, eq=False)
class Booking(Aggregate):
    """
    Booking Aggregate Root

    A guest's reservation of a listing. Status only changes through the
    transition methods below; each returns the effects the change requires
    and records them as pending events.

    Key invariants:
    - check_out, when present, is strictly after check_in
    - status never moves backwards; terminal statuses never change
    - reminder flags, once set, are never cleared
    - refund amount never exceeds the total amount
    """

    # Parties (users and listing live outside this aggregate)
    guest_id: Any
    host_id: Any
    listing_id: str
    listing_title: str = ''

    # Dates
    check_in: datetime | None
    check_out: datetime | None = None
    guests_count: int = 1

    # Pricing
    total_amount: Money
    base_price: Money | None = None
    service_fee: Money | None = None

    # Payment
    payment_method: PaymentMethod = PaymentMethod.PAYPAL
    payment_status: PaymentStatus = PaymentStatus.PAID

    # Raw tier name as stored; unknown names resolve to moderate when refunding
    cancellation_policy: str = DEFAULT_CANCELLATION_POLICY.value

    # Status tracking
    status: BookingStatus = BookingStatus.PENDING
    auto_confirmed: bool = False
    auto_confirm_reason: str = ''
    rejection_reason: str = ''
    cancellation_reason: str = ''
    cancelled_by: CancelledBy | None = None

    # Timestamps
    confirmed_at: datetime | None = None
    cancelled_at: datetime | None = None
    completed_at: datetime | None = None

    # Reminders
    check_in_reminder_1_day_sent: bool = False
    check_in_reminder_1_day_sent_at: datetime | None = None
    check_in_reminder_day_of_sent: bool = False
    check_in_reminder_day_of_sent_at: datetime | None = None
    review_reminder_sent: bool = False
    review_reminder_sent_at: datetime | None = None

    # Populated on cancellation
    refund: RefundBreakdown | None = None

    def __post_init__(self):
        if self.check_in and self.check_out and self.check_out <= self.check_in:
            raise ValueError(
                f"Check-out ({self.check_out}) must be after check-in ({self.check_in})"
            )
        if self.guests_count < 1:
            raise ValueError("Guests count must be at least 1")
        if self.base_price is None:
            self.base_price = self.total_amount
        if self.service_fee is None:
            self.service_fee = Money.zero(self.total_amount.currency)

    @classmethod
    def request(cls, **fields) -> 'Booking':
        """
        Create a new PENDING booking on behalf of a guest.

        Events: NotifyHost(new booking)
        """
        from apps.bookings.domain.events import NotificationTemplate, NotifyHost

        booking = cls(status=BookingStatus.PENDING, **fields)
        booking._record([
            NotifyHost(
                aggregate_id=booking.id,
                booking_id=booking.id,
                host_id=booking.host_id,
                template=NotificationTemplate.NEW_BOOKING_HOST,
                details=booking.notification_details(guests=booking.guests_count),
            )
        ])
        return booking

    # ===== Transitions =====

    def can_transition_to(self, target: BookingStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]

    def transition_to(self, target: BookingStatus, now: datetime, **options) -> List[DomainEvent]:
        """Apply the transition to `target`, dispatching to the specific method"""
        handlers = {
            BookingStatus.CONFIRMED: self.confirm,
            BookingStatus.REJECTED: self.reject,
            BookingStatus.CANCELLED: self.cancel,
            BookingStatus.COMPLETED: self.complete,
        }
        handler = handlers.get(target)
        if handler is None:
            raise InvalidTransitionError(self.status, target, self.id)
        return handler(now, **options)

    def confirm(self, now: datetime, *, auto_confirmed: bool = False, reason: str = '') -> List[DomainEvent]:
        """
        Confirm booking (PENDING -> CONFIRMED)

        Events: NotifyGuest(approved or auto-confirmed), UpdatePayout(ON_HOLD)
        """
        self._ensure_transition(BookingStatus.CONFIRMED)

        from apps.bookings.domain.events import NotificationTemplate, NotifyGuest, UpdatePayout

        self.status = BookingStatus.CONFIRMED
        self.confirmed_at = now
        self.auto_confirmed = auto_confirmed
        self.auto_confirm_reason = reason if auto_confirmed else ''
        self.updated_at = now

        template = (
            NotificationTemplate.BOOKING_AUTO_CONFIRMED
            if auto_confirmed
            else NotificationTemplate.BOOKING_APPROVED
        )
        details = self.notification_details()
        if auto_confirmed:
            details['auto_confirm_reason'] = reason

        return self._record([
            NotifyGuest(
                aggregate_id=self.id,
                booking_id=self.id,
                guest_id=self.guest_id,
                template=template,
                details=details,
            ),
            UpdatePayout(aggregate_id=self.id, booking_id=self.id, status=PayoutStatus.ON_HOLD),
        ])

    def reject(self, now: datetime, *, reason: str = '') -> List[DomainEvent]:
        """
        Reject booking (PENDING -> REJECTED)

        Events: NotifyGuest(rejected, with reason)
        """
        self._ensure_transition(BookingStatus.REJECTED)

        from apps.bookings.domain.events import NotificationTemplate, NotifyGuest

        self.status = BookingStatus.REJECTED
        self.cancelled_at = now
        self.rejection_reason = reason or "Host unavailable for these dates"
        self.updated_at = now

        return self._record([
            NotifyGuest(
                aggregate_id=self.id,
                booking_id=self.id,
                guest_id=self.guest_id,
                template=NotificationTemplate.BOOKING_REJECTED,
                details=self.notification_details(rejection_reason=self.rejection_reason),
            ),
        ])

    def cancel(
        self,
        now: datetime,
        *,
        cancelled_by: CancelledBy = CancelledBy.GUEST,
        reason: str = '',
        refund_policy: RefundPolicy = DEFAULT_REFUND_POLICY,
    ) -> List[DomainEvent]:
        """
        Cancel booking (PENDING or CONFIRMED -> CANCELLED)

        The refund is computed for `now` under `refund_policy`.
        Events: NotifyGuest(refund breakdown), UpdatePayout(REFUNDED),
        CreditWallet (wallet payments with a positive refund only)
        """
        self._ensure_transition(BookingStatus.CANCELLED)

        # Raises MissingDataError before anything is mutated
        refund = calculate_refund(self, now, refund_policy)

        from apps.bookings.domain.events import (
            CreditWallet,
            NotificationTemplate,
            NotifyGuest,
            UpdatePayout,
        )

        self.status = BookingStatus.CANCELLED
        self.cancelled_at = now
        self.cancelled_by = cancelled_by
        self.cancellation_reason = reason
        self.refund = refund
        self.updated_at = now

        if not refund.final_refund_amount.is_zero:
            self.payment_status = PaymentStatus.REFUNDED

        effects: List[DomainEvent] = [
            NotifyGuest(
                aggregate_id=self.id,
                booking_id=self.id,
                guest_id=self.guest_id,
                template=NotificationTemplate.BOOKING_CANCELLED,
                details=self.notification_details(**refund.to_dict()),
            ),
            UpdatePayout(
                aggregate_id=self.id,
                booking_id=self.id,
                status=PayoutStatus.REFUNDED,
                refund_amount=refund.final_refund_amount,
            ),
        ]

        if self.payment_method == PaymentMethod.WALLET and not refund.final_refund_amount.is_zero:
            effects.append(CreditWallet(
                aggregate_id=self.id,
                booking_id=self.id,
                user_id=self.guest_id,
                amount=refund.final_refund_amount,
                description=f"Refund for cancelled booking: {self.listing_title or self.listing_id}",
            ))

        return self._record(effects)

    def complete(self, now: datetime) -> List[DomainEvent]:
        """
        Complete booking (CONFIRMED -> COMPLETED)

        Events: NotifyGuest(completed), NotifyHost(completed)
        """
        self._ensure_transition(BookingStatus.COMPLETED)

        from apps.bookings.domain.events import NotificationTemplate, NotifyGuest, NotifyHost

        self.status = BookingStatus.COMPLETED
        self.completed_at = now
        self.updated_at = now

        return self._record([
            NotifyGuest(
                aggregate_id=self.id,
                booking_id=self.id,
                guest_id=self.guest_id,
                template=NotificationTemplate.BOOKING_COMPLETED,
                details=self.notification_details(role='guest'),
            ),
            NotifyHost(
                aggregate_id=self.id,
                booking_id=self.id,
                host_id=self.host_id,
                template=NotificationTemplate.BOOKING_COMPLETED,
                details=self.notification_details(role='host'),
            ),
        ])

    # ===== Reminders =====

    def reminder_sent(self, reminder: ReminderType) -> bool:
        return bool(getattr(self, REMINDER_FLAGS[reminder]))

    def mark_reminder_sent(self, reminder: ReminderType, now: datetime) -> bool:
        """
        Set the reminder flag once.

        Returns False (and changes nothing) when the flag was already set.
        """
        if self.reminder_sent(reminder):
            return False
        flag = REMINDER_FLAGS[reminder]
        setattr(self, flag, True)
        setattr(self, f"{flag}_at", now)
        return True

    # ===== Queries =====

    @property
    def policy_tier(self) -> CancellationPolicy:
        return CancellationPolicy.resolve(self.cancellation_policy)[0]

    @property
    def stay_ends_at(self) -> datetime | None:
        """Check-out, or check-in for single-date bookings (experiences, services)"""
        return self.check_out or self.check_in

    def has_checked_out(self, now: datetime) -> bool:
        ends_at = self.stay_ends_at
        return ends_at is not None and ends_at <= now

    def notification_details(self, **extra) -> dict:
        details = {
            'booking_id': str(self.id),
            'listing_title': self.listing_title or 'Listing',
            'check_in': self.check_in.date().isoformat() if self.check_in else 'N/A',
            'check_out': self.check_out.date().isoformat() if self.check_out else 'N/A',
            'total_amount': str(self.total_amount.amount),
            'currency': self.total_amount.currency,
        }
        details.update(extra)
        return details

    def _ensure_transition(self, target: BookingStatus):
        if not self.can_transition_to(target):
            raise InvalidTransitionError(self.status, target, self.id)

    def _record(self, effects: List[DomainEvent]) -> List[DomainEvent]:
        for effect in effects:
            self.add_event(effect)
        return effects

    def __str__(self):
        return f"Booking {self.id} ({self.status.value})"

    def __repr__(self):
        return (
            f"Booking(id={self.id}, status={self.status.value}, "
            f"check_in={self.check_in}, check_out={self.check_out})"
        )


REMINDER_FLAGS = {
    ReminderType.CHECK_IN_1_DAY: 'check_in_reminder_1_day_sent',
    ReminderType.CHECK_IN_DAY_OF: 'check_in_reminder_day_of_sent',
    ReminderType.REVIEW: 'review_reminder_sent',
}
