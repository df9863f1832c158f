"""
Booking Effect Handlers

Message bus subscribers that perform the I/O a committed transition asked
for. They run after commit, so a failure here never reverts the booking;
expected failures are raised as SideEffectError subclasses and logged by
the bus as warnings.
"""

import logging

from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.db import DatabaseError

from apps.bookings.domain.errors import (
    NotificationDispatchError,
    PayoutUpdateError,
    WalletUpdateError,
)
from apps.bookings.domain.events import CreditWallet, NotifyGuest, NotifyHost, UpdatePayout

logger = logging.getLogger(__name__)


def _recipient(user_id):
    try:
        return get_user_model().objects.get(pk=user_id)
    except ObjectDoesNotExist:
        raise NotificationDispatchError(f"Recipient {user_id} does not exist")


def notify_guest(event: NotifyGuest):
    from apps.notifications.services import dispatch_notification

    dispatch_notification(_recipient(event.guest_id), event.template, event.details)


def notify_host(event: NotifyHost):
    from apps.notifications.services import dispatch_notification

    dispatch_notification(_recipient(event.host_id), event.template, event.details)


def update_payout(event: UpdatePayout):
    from apps.finances.services import PayoutStateError, update_payout_status

    refund_amount = event.refund_amount.amount if event.refund_amount is not None else None
    try:
        update_payout_status(event.booking_id, event.status.value, refund_amount=refund_amount)
    except (PayoutStateError, ObjectDoesNotExist, DatabaseError) as e:
        raise PayoutUpdateError(
            f"Payout of booking {event.booking_id} not moved to {event.status.value}: {e}"
        ) from e


def credit_wallet(event: CreditWallet):
    from apps.bookings.models import Booking as BookingModel
    from apps.finances.models import WalletTransaction
    from apps.finances.services import credit_wallet as credit

    try:
        booking = BookingModel.objects.get(pk=event.booking_id)
        entry = credit(
            get_user_model().objects.get(pk=event.user_id),
            event.amount.amount,
            tx_type=WalletTransaction.Type.REFUND,
            description=event.description,
            booking=booking,
        )
    except (ValueError, ObjectDoesNotExist, DatabaseError) as e:
        raise WalletUpdateError(
            f"Wallet of user {event.user_id} not credited {event.amount} "
            f"for booking {event.booking_id}: {e}"
        ) from e

    logger.info(
        f"Refund {event.amount} credited to wallet of user {event.user_id}, "
        f"balance {entry.balance_before} -> {entry.balance_after}"
    )


EFFECT_HANDLERS = {
    NotifyGuest: [notify_guest],
    NotifyHost: [notify_host],
    UpdatePayout: [update_payout],
    CreditWallet: [credit_wallet],
}
