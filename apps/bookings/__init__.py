"""Bookings app package.

This app encapsulates the booking lifecycle: the booking state machine,
auto-confirmation of unanswered requests, refund calculation on
cancellation and the reminder sweeps. Status changes are persisted with an
optimistic status precondition and their side effects run after commit.
"""
