"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate domain operations within transactions.

Commands:
- CreateBookingCommand: Guest requests a booking (PENDING)
- ConfirmBookingCommand: Host approves, or the auto-confirm sweep confirms
- RejectBookingCommand: Host declines a pending booking
- CancelBookingCommand: Guest or host cancels, with refund
- CompleteBookingCommand: Stay is over

Every transition is saved with the status it was loaded with as a
precondition. Effects recorded by the aggregate are published only after
the transaction commits.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable
from uuid import UUID
import logging

from django.utils import timezone

from shared.application.uow import DjangoUnitOfWork
from shared.domain.value_objects import Money
from apps.bookings.domain.entities import Booking, CancelledBy, PaymentMethod
from apps.bookings.infrastructure.repositories import DjangoBookingRepository

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to create a new booking

    This is the primary entry point for creating bookings.
    Prices are final amounts computed by the caller.
    """
    guest_id: Any
    host_id: Any
    listing_id: str
    check_in: datetime
    check_out: datetime | None
    total_amount: Decimal
    base_price: Decimal | None = None
    service_fee: Decimal = Decimal('0')
    currency: str = 'PHP'
    guests_count: int = 1
    listing_title: str = ''
    payment_method: str = PaymentMethod.PAYPAL.value
    cancellation_policy: str = 'moderate'


@dataclass
class ConfirmBookingCommand:
    """Command to confirm a pending booking"""
    booking_id: UUID
    auto_confirmed: bool = False
    reason: str = ''


@dataclass
class RejectBookingCommand:
    """Command to decline a pending booking"""
    booking_id: UUID
    reason: str = ''


@dataclass
class CancelBookingCommand:
    """Command to cancel a booking"""
    booking_id: UUID
    cancelled_by: str = CancelledBy.GUEST.value
    reason: str = ''


@dataclass
class CompleteBookingCommand:
    """Command to complete a booking (stay is over)"""
    booking_id: UUID


# ===== Command Handlers =====

class BookingCommandHandler:
    """Shared wiring: repository, clock and message bus"""

    def __init__(self, booking_repo=None, clock: Callable[[], datetime] = timezone.now, bus=None):
        self.booking_repo = booking_repo or DjangoBookingRepository()
        self.clock = clock
        self.bus = bus

    def __call__(self, command):
        return self.handle(command)

    def _transition(self, booking_id: UUID, apply: Callable[[Booking, datetime], Any]) -> Booking:
        """Load, apply the transition, save conditionally, publish on commit"""
        now = self.clock()

        with DjangoUnitOfWork(bus=self.bus) as uow:
            booking = self.booking_repo.get_by_id(booking_id)
            expected_status = booking.status

            apply(booking, now)

            self.booking_repo.save(booking, expected_status=expected_status)
            uow.collect_events(booking)

        return booking


class CreateBookingHandler(BookingCommandHandler):
    """
    Handler for CreateBooking command

    Inserts the PENDING booking and its PENDING payout in one transaction.
    Wallet payments are debited in the same transaction, so an
    insufficient balance aborts the whole creation.
    """

    def handle(self, command: CreateBookingCommand) -> Booking:
        from apps.finances.services import create_payout_for_booking, debit_wallet
        from apps.finances.models import WalletTransaction

        logger.info(
            f"Creating booking for listing {command.listing_id}, "
            f"guest {command.guest_id}, check-in {command.check_in}"
        )

        now = self.clock()
        total = Money(command.total_amount, command.currency)
        booking = Booking.request(
            created_at=now,
            updated_at=now,
            guest_id=command.guest_id,
            host_id=command.host_id,
            listing_id=command.listing_id,
            listing_title=command.listing_title,
            check_in=command.check_in,
            check_out=command.check_out,
            guests_count=command.guests_count,
            total_amount=total,
            base_price=Money(command.base_price, command.currency) if command.base_price is not None else None,
            service_fee=Money(command.service_fee, command.currency),
            payment_method=PaymentMethod(command.payment_method),
            cancellation_policy=command.cancellation_policy,
        )

        with DjangoUnitOfWork(bus=self.bus) as uow:
            model = self.booking_repo.create(booking)
            create_payout_for_booking(model)

            if booking.payment_method == PaymentMethod.WALLET and not total.is_zero:
                debit_wallet(
                    model.guest,
                    total.amount,
                    tx_type=WalletTransaction.Type.PAYMENT,
                    description=f"Payment for booking: {booking.listing_title or booking.listing_id}",
                    booking=model,
                )

            uow.collect_events(booking)

        logger.info(f"Booking created successfully: {booking.id}")
        return booking


class ConfirmBookingHandler(BookingCommandHandler):
    """Handler for confirming a pending booking"""

    def handle(self, command: ConfirmBookingCommand) -> Booking:
        logger.info(
            f"Confirming booking {command.booking_id}"
            f"{' (auto-confirm)' if command.auto_confirmed else ''}"
        )

        booking = self._transition(
            command.booking_id,
            lambda booking, now: booking.confirm(
                now,
                auto_confirmed=command.auto_confirmed,
                reason=command.reason,
            ),
        )

        logger.info(f"Booking {booking.id} confirmed successfully")
        return booking


class RejectBookingHandler(BookingCommandHandler):
    """Handler for declining a pending booking"""

    def handle(self, command: RejectBookingCommand) -> Booking:
        logger.info(f"Rejecting booking {command.booking_id}, reason: {command.reason or '-'}")

        booking = self._transition(
            command.booking_id,
            lambda booking, now: booking.reject(now, reason=command.reason),
        )

        logger.info(f"Booking {booking.id} rejected")
        return booking


class CancelBookingHandler(BookingCommandHandler):
    """Handler for cancelling a booking and refunding the guest"""

    def __init__(self, *args, refund_policy_source=None, **kwargs):
        super().__init__(*args, **kwargs)
        if refund_policy_source is None:
            from apps.policies.services import get_refund_policy as refund_policy_source
        self.refund_policy_source = refund_policy_source

    def handle(self, command: CancelBookingCommand) -> Booking:
        logger.info(
            f"Cancelling booking {command.booking_id} by {command.cancelled_by}, "
            f"reason: {command.reason or '-'}"
        )

        refund_policy = self.refund_policy_source()
        cancelled_by = CancelledBy(command.cancelled_by)

        booking = self._transition(
            command.booking_id,
            lambda booking, now: booking.cancel(
                now,
                cancelled_by=cancelled_by,
                reason=command.reason,
                refund_policy=refund_policy,
            ),
        )

        refund = booking.refund
        if refund.policy_defaulted:
            logger.warning(
                f"Booking {booking.id} has unknown cancellation policy "
                f"'{booking.cancellation_policy}', refunded as {refund.cancellation_policy.value}"
            )

        logger.info(
            f"Booking {booking.id} cancelled successfully, refund "
            f"{refund.final_refund_amount} ({refund.policy_description})"
        )
        return booking


class CompleteBookingHandler(BookingCommandHandler):
    """Handler for completing booking (check out)"""

    def handle(self, command: CompleteBookingCommand) -> Booking:
        logger.info(f"Completing booking {command.booking_id}")

        booking = self._transition(
            command.booking_id,
            lambda booking, now: booking.complete(now),
        )

        logger.info(f"Booking {booking.id} completed successfully")
        return booking
