"""
Booking Domain Errors

Two families:
- Validation errors (InvalidTransitionError, MissingDataError, BookingNotFoundError)
  abort the requested operation before any side effect runs.
- SideEffectError subclasses describe failures of work performed after a
  transition has committed. They are logged, never propagated to the caller.
"""

from __future__ import annotations

from shared.domain.base import SideEffectFailure


class BookingError(Exception):
    """Base class for booking domain errors."""


class InvalidTransitionError(BookingError):
    """The requested status change is not allowed from the current status."""

    def __init__(self, from_status, to_status, booking_id=None):
        self.from_status = getattr(from_status, "value", from_status)
        self.to_status = getattr(to_status, "value", to_status)
        self.booking_id = booking_id
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        if self.from_status == self.to_status:
            return f"Booking {self.booking_id} is already {self.from_status}"
        return (
            f"Booking {self.booking_id} cannot move from "
            f"{self.from_status} to {self.to_status}"
        )

    @property
    def user_message(self) -> str:
        """Short message suitable for API responses."""
        if self.from_status == self.to_status:
            return f"Booking already {self.from_status}"
        return f"Booking is {self.from_status} and cannot be {self.to_status}"


class MissingDataError(BookingError):
    """A field required for a computation is absent or unparseable."""

    def __init__(self, field: str, booking_id=None):
        self.field = field
        self.booking_id = booking_id
        super().__init__(f"Booking {booking_id} is missing required field '{field}'")


class BookingNotFoundError(BookingError):
    def __init__(self, booking_id):
        self.booking_id = booking_id
        super().__init__(f"Booking {booking_id} not found")


class SideEffectError(BookingError, SideEffectFailure):
    """Non-fatal failure of a post-transition side effect."""


class NotificationDispatchError(SideEffectError):
    pass


class PayoutUpdateError(SideEffectError):
    pass


class WalletUpdateError(SideEffectError):
    pass
