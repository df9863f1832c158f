"""
Unit of Work

One database transaction around a booking status change. Effects recorded by
the aggregates touched inside the block are handed to the message bus from a
``transaction.on_commit`` callback, so a rolled back change (failed status
precondition, insufficient wallet balance) never emails anyone or moves money.
"""

from functools import partial
from typing import List
import logging

from django.db import transaction

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class DjangoUnitOfWork:
    """
    Usage:
        with DjangoUnitOfWork() as uow:
            booking = booking_repo.get_by_id(booking_id)
            expected_status = booking.status
            booking.confirm(now)
            booking_repo.save(booking, expected_status=expected_status)
            uow.collect_events(booking)

    `bus` defaults to the process-wide message bus.
    """

    def __init__(self, bus=None):
        self._bus = bus
        self._atomic = None
        self._events: List[DomainEvent] = []

    def __enter__(self):
        self._atomic = transaction.atomic()
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self._schedule_publish()
            elif self._events:
                logger.warning(
                    f"Transaction rolled back ({exc_type.__name__}), "
                    f"dropping {len(self._events)} pending effects"
                )
        finally:
            self._events = []
            self._atomic.__exit__(exc_type, exc_val, exc_tb)

    def collect_events(self, *aggregates):
        """Move pending effects off the aggregates into this unit of work"""
        for aggregate in aggregates:
            effects = aggregate.events
            if not effects:
                continue
            self._events.extend(effects)
            aggregate.clear_events()
            logger.debug(f"Collected {len(effects)} effects from {aggregate}")

    def _schedule_publish(self):
        if self._events:
            transaction.on_commit(partial(self._publish, list(self._events)))

    def _publish(self, events: List[DomainEvent]):
        bus = self._bus
        if bus is None:
            from shared.application.message_bus import message_bus as bus

        logger.info(f"Publishing {len(events)} booking effects after commit")
        try:
            bus.publish_events(events)
        except Exception as e:
            # The status change is already committed
            logger.error(f"Error publishing effects: {e}", exc_info=True)
