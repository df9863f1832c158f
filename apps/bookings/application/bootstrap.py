"""Wire booking commands and effects to the message bus."""

import logging

from shared.application.message_bus import MessageBus, message_bus

from apps.bookings.application.command_handlers import (
    CancelBookingCommand,
    CancelBookingHandler,
    CompleteBookingCommand,
    CompleteBookingHandler,
    ConfirmBookingCommand,
    ConfirmBookingHandler,
    CreateBookingCommand,
    CreateBookingHandler,
    RejectBookingCommand,
    RejectBookingHandler,
)
from apps.bookings.application.effect_handlers import EFFECT_HANDLERS

logger = logging.getLogger(__name__)

COMMAND_HANDLERS = {
    CreateBookingCommand: CreateBookingHandler,
    ConfirmBookingCommand: ConfirmBookingHandler,
    RejectBookingCommand: RejectBookingHandler,
    CancelBookingCommand: CancelBookingHandler,
    CompleteBookingCommand: CompleteBookingHandler,
}


def bootstrap(bus: MessageBus = message_bus) -> MessageBus:
    """Register handlers on `bus`; safe to call more than once"""
    for event_type, handlers in EFFECT_HANDLERS.items():
        for handler in handlers:
            bus.register_event_handler(event_type, handler)

    for command_type, handler_class in COMMAND_HANDLERS.items():
        if not bus.has_command_handler(command_type):
            bus.register_command_handler(command_type, handler_class())

    logger.debug("Booking handlers registered on message bus")
    return bus
