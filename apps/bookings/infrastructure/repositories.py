"""
Booking Repository

Maps the Booking aggregate to the Django ORM model and back.

Status changes are persisted with a conditional UPDATE on the status the
aggregate was loaded with, so two concurrent transitions on the same booking
cannot both succeed.
"""

from datetime import datetime
from decimal import Decimal
from typing import List
from uuid import UUID
import logging

from django.core.exceptions import ValidationError
from django.utils import timezone

from shared.domain.value_objects import Money
from apps.bookings.domain.entities import (
    Booking,
    BookingStatus,
    CancelledBy,
    PaymentMethod,
    PaymentStatus,
    ReminderType,
    REMINDER_FLAGS,
)
from apps.bookings.domain.errors import BookingNotFoundError, InvalidTransitionError
from apps.bookings.models import Booking as BookingModel

logger = logging.getLogger(__name__)

# Columns a transition may change. Reminder flags are written only by claim_reminder.
STATE_FIELDS = (
    'status',
    'payment_status',
    'auto_confirmed',
    'auto_confirm_reason',
    'rejection_reason',
    'cancellation_reason',
    'cancelled_by',
    'confirmed_at',
    'cancelled_at',
    'completed_at',
)


class DjangoBookingRepository:
    """Booking aggregate persistence on top of apps.bookings.models.Booking"""

    def get_by_id(self, booking_id: UUID) -> Booking:
        try:
            model = BookingModel.objects.get(pk=booking_id)
        except (BookingModel.DoesNotExist, ValidationError, ValueError):
            raise BookingNotFoundError(booking_id)
        return self.to_domain(model)

    def list_by_status(self, status: BookingStatus, **lookups) -> List[Booking]:
        """Bookings in `status`, optionally narrowed by extra ORM lookups"""
        queryset = BookingModel.objects.filter(status=status.value, **lookups).order_by('created_at')
        return [self.to_domain(model) for model in queryset]

    def create(self, booking: Booking) -> BookingModel:
        model = BookingModel.objects.create(
            id=booking.id,
            guest_id=booking.guest_id,
            host_id=booking.host_id,
            listing_id=booking.listing_id,
            listing_title=booking.listing_title,
            check_in=booking.check_in,
            check_out=booking.check_out,
            guests_count=booking.guests_count,
            base_price=booking.base_price.amount,
            service_fee=booking.service_fee.amount,
            total_amount=booking.total_amount.amount,
            currency=booking.total_amount.currency,
            payment_method=booking.payment_method.value,
            payment_status=booking.payment_status.value,
            cancellation_policy=booking.cancellation_policy,
            status=booking.status.value,
            created_at=booking.created_at or timezone.now(),
        )
        logger.debug(f"Booking {booking.id} inserted")
        return model

    def save(self, booking: Booking, expected_status: BookingStatus):
        """
        Persist the aggregate's state if the stored status is still
        `expected_status`.

        Raises InvalidTransitionError when another writer changed the status
        first; the caller's transaction then rolls back.
        """
        values = self._state_values(booking)
        updated = BookingModel.objects.filter(
            pk=booking.id,
            status=expected_status.value,
        ).update(**values)

        if updated == 0:
            current = (
                BookingModel.objects.filter(pk=booking.id)
                .values_list('status', flat=True)
                .first()
            )
            if current is None:
                raise BookingNotFoundError(booking.id)
            logger.warning(
                f"Concurrent update on booking {booking.id}: "
                f"expected {expected_status.value}, found {current}"
            )
            raise InvalidTransitionError(current, booking.status, booking.id)

    def claim_reminder(self, booking_id: UUID, reminder: ReminderType, now: datetime) -> bool:
        """
        Set the reminder flag unless it is already set.

        Returns True only for the single caller that flipped the flag.
        """
        flag = REMINDER_FLAGS[reminder]
        updated = BookingModel.objects.filter(pk=booking_id, **{flag: False}).update(
            **{flag: True, f'{flag}_at': now, 'updated_at': now}
        )
        return updated == 1

    # ===== Mapping =====

    def _state_values(self, booking: Booking) -> dict:
        values = {name: getattr(booking, name) for name in STATE_FIELDS}
        values['status'] = booking.status.value
        values['payment_status'] = booking.payment_status.value
        values['cancelled_by'] = booking.cancelled_by.value if booking.cancelled_by else ''
        values['updated_at'] = booking.updated_at or timezone.now()

        refund = booking.refund
        if refund is not None:
            values.update(
                refund_amount=refund.final_refund_amount.amount,
                admin_deduction=refund.admin_deduction.amount,
                cancellation_fee=refund.cancellation_fee.amount,
                refund_percentage=refund.refund_percentage,
                refund_policy_description=refund.policy_description,
            )
        return values

    @staticmethod
    def to_domain(model: BookingModel) -> Booking:
        currency = model.currency

        def money(value) -> Money:
            return Money(value if value is not None else Decimal('0'), currency)

        return Booking(
            id=model.id,
            created_at=model.created_at,
            updated_at=model.updated_at,
            guest_id=model.guest_id,
            host_id=model.host_id,
            listing_id=model.listing_id,
            listing_title=model.listing_title,
            check_in=model.check_in,
            check_out=model.check_out,
            guests_count=model.guests_count,
            total_amount=money(model.total_amount),
            base_price=money(model.base_price),
            service_fee=money(model.service_fee),
            payment_method=PaymentMethod(model.payment_method),
            payment_status=PaymentStatus(model.payment_status),
            cancellation_policy=model.cancellation_policy,
            status=BookingStatus(model.status),
            auto_confirmed=model.auto_confirmed,
            auto_confirm_reason=model.auto_confirm_reason,
            rejection_reason=model.rejection_reason,
            cancellation_reason=model.cancellation_reason,
            cancelled_by=CancelledBy(model.cancelled_by) if model.cancelled_by else None,
            confirmed_at=model.confirmed_at,
            cancelled_at=model.cancelled_at,
            completed_at=model.completed_at,
            check_in_reminder_1_day_sent=model.check_in_reminder_1_day_sent,
            check_in_reminder_1_day_sent_at=model.check_in_reminder_1_day_sent_at,
            check_in_reminder_day_of_sent=model.check_in_reminder_day_of_sent,
            check_in_reminder_day_of_sent_at=model.check_in_reminder_day_of_sent_at,
            review_reminder_sent=model.review_reminder_sent,
            review_reminder_sent_at=model.review_reminder_sent_at,
        )
