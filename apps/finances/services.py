"""Payout and wallet services.

Wallet balance changes are read-modify-write operations on a shared row, so
each one runs inside ``transaction.atomic`` with the wallet locked
(``select_for_update``) and writes the new balance together with its audit
transaction.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from decimal import Decimal

from django.db import transaction  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore
from django.utils import timezone  # type: ignore

from .models import Payout, Wallet, WalletTransaction

logger = logging.getLogger(__name__)

PAYOUT_DUE_AFTER_CHECK_IN = timedelta(days=7)

# Allowed payout status changes: target -> accepted current statuses
PAYOUT_TRANSITIONS: dict[str, tuple[str, ...]] = {
    Payout.Status.ON_HOLD: (Payout.Status.PENDING,),
    Payout.Status.REFUNDED: (Payout.Status.PENDING, Payout.Status.ON_HOLD),
    Payout.Status.RELEASED: (Payout.Status.ON_HOLD,),
}


class InsufficientFundsError(Exception):
    """Raised when a wallet cannot cover a debit."""

    def __init__(self, balance: Decimal, required: Decimal):
        self.balance = balance
        self.required = required
        super().__init__(
            f"Insufficient wallet balance. Current: {balance}, Required: {required}"
        )


class PayoutStateError(Exception):
    """Raised when a payout cannot move to the requested status."""


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def _locked_wallet(user) -> Wallet:
    wallet, _ = Wallet.objects.get_or_create(user=user)
    return _lock_queryset_if_possible(Wallet.objects.filter(pk=wallet.pk)).get()


@transaction.atomic
def credit_wallet(
    user,
    amount: Decimal,
    *,
    tx_type: str = WalletTransaction.Type.REFUND,
    description: str = "",
    booking=None,
    payout=None,
) -> WalletTransaction:
    """Add ``amount`` to the user's wallet and record the transaction."""

    if amount <= 0:
        raise ValueError("Credit amount must be positive")

    wallet = _locked_wallet(user)
    balance_before = wallet.balance
    wallet.balance = balance_before + amount
    wallet.save(update_fields=["balance", "updated_at"])

    entry = WalletTransaction.objects.create(
        wallet=wallet,
        type=tx_type,
        amount=amount,
        balance_before=balance_before,
        balance_after=wallet.balance,
        description=description,
        booking=booking,
        payout=payout,
    )
    logger.info(f"Wallet {wallet.pk} credited {amount} ({tx_type}), balance {wallet.balance}")
    return entry


@transaction.atomic
def debit_wallet(
    user,
    amount: Decimal,
    *,
    tx_type: str = WalletTransaction.Type.PAYMENT,
    description: str = "",
    booking=None,
) -> WalletTransaction:
    """Take ``amount`` from the user's wallet, refusing to go below zero."""

    if amount <= 0:
        raise ValueError("Debit amount must be positive")

    wallet = _locked_wallet(user)
    balance_before = wallet.balance
    if balance_before < amount:
        raise InsufficientFundsError(balance_before, amount)

    wallet.balance = balance_before - amount
    wallet.save(update_fields=["balance", "updated_at"])

    entry = WalletTransaction.objects.create(
        wallet=wallet,
        type=tx_type,
        amount=amount,
        balance_before=balance_before,
        balance_after=wallet.balance,
        description=description,
        booking=booking,
    )
    logger.info(f"Wallet {wallet.pk} debited {amount} ({tx_type}), balance {wallet.balance}")
    return entry


def get_wallet_balance(user) -> Decimal:
    wallet = Wallet.objects.filter(user=user).first()
    return wallet.balance if wallet else Decimal("0.00")


def create_payout_for_booking(booking) -> Payout:
    """PENDING payout for a freshly created booking."""

    payout = Payout.objects.create(
        booking=booking,
        host_id=booking.host_id,
        guest_id=booking.guest_id,
        amount=booking.base_price,
        service_fee=booking.service_fee,
        total_amount=booking.total_amount,
        currency=booking.currency,
        payment_method=booking.payment_method,
        due_date=booking.check_in + PAYOUT_DUE_AFTER_CHECK_IN,
    )
    logger.info(f"Payout record created: {payout.amount} pending release to host {booking.host_id}")
    return payout


@transaction.atomic
def update_payout_status(booking_id, status: str, *, refund_amount: Decimal | None = None) -> Payout:
    """
    Move the payout of ``booking_id`` to ``status``.

    A refund for a booking without payout creates a REFUNDED record so the
    refund trail is complete.
    """

    payout = _lock_queryset_if_possible(Payout.objects.filter(booking_id=booking_id)).first()

    if payout is None:
        if status != Payout.Status.REFUNDED:
            raise PayoutStateError(f"No payout exists for booking {booking_id}")
        from apps.bookings.models import Booking

        booking = Booking.objects.get(pk=booking_id)
        payout = Payout.objects.create(
            booking=booking,
            host_id=booking.host_id,
            guest_id=booking.guest_id,
            amount=refund_amount or Decimal("0.00"),
            total_amount=booking.total_amount,
            currency=booking.currency,
            payment_method=booking.payment_method,
            status=Payout.Status.REFUNDED,
            refund_amount=refund_amount,
            refunded_at=timezone.now(),
        )
        logger.info(f"Refund payout record created for booking {booking_id}")
        return payout

    if payout.status not in PAYOUT_TRANSITIONS.get(status, ()):
        raise PayoutStateError(
            f"Payout {payout.pk} cannot move from {payout.status} to {status}"
        )

    payout.status = status
    update_fields = ["status", "updated_at"]
    if status == Payout.Status.REFUNDED:
        payout.refund_amount = refund_amount
        payout.refunded_at = timezone.now()
        update_fields += ["refund_amount", "refunded_at"]
    payout.save(update_fields=update_fields)

    logger.info(f"Payout status updated to {status} for booking {booking_id}")
    return payout


@transaction.atomic
def release_payout(payout_id, released_by) -> Payout:
    """Release an ON_HOLD payout and credit the host's wallet."""

    payout = _lock_queryset_if_possible(Payout.objects.filter(pk=payout_id)).get()
    if payout.status not in PAYOUT_TRANSITIONS[Payout.Status.RELEASED]:
        raise PayoutStateError(
            f"Payout {payout.pk} cannot be released from status {payout.status}"
        )

    payout.status = Payout.Status.RELEASED
    payout.released_at = timezone.now()
    payout.released_by = released_by
    payout.save(update_fields=["status", "released_at", "released_by", "updated_at"])

    if payout.amount > 0:
        credit_wallet(
            payout.host,
            payout.amount,
            tx_type=WalletTransaction.Type.PAYMENT_RECEIVED,
            description=f"Payout released for booking {payout.booking_id}",
            booking=payout.booking,
            payout=payout,
        )

    logger.info(f"Payout {payout.pk} released to host {payout.host_id} by {released_by}")
    return payout
