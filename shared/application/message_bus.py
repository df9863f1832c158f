"""
Message Bus

Routes booking commands to their single handler and booking effects to every
handler subscribed to the effect type.

Effects are published after the status change has committed, so a failing
effect handler is logged and counted, never raised: the remaining handlers
(and the remaining effects) still run.
"""

from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Type
import logging

from shared.domain.base import DomainEvent, SideEffectFailure

logger = logging.getLogger(__name__)


def _name(handler: Callable) -> str:
    return getattr(handler, '__name__', type(handler).__name__)


class MessageBus:
    def __init__(self):
        self._effect_handlers: Dict[Type[DomainEvent], List[Callable]] = defaultdict(list)
        self._command_handlers: Dict[Type, Callable] = {}

    # ===== Registration =====

    def register_event_handler(self, event_type: Type[DomainEvent], handler: Callable[[DomainEvent], None]):
        """Subscribe `handler` to `event_type`; subscribing twice is a no-op"""
        handlers = self._effect_handlers[event_type]
        if handler not in handlers:
            handlers.append(handler)
            logger.debug(f"{_name(handler)} subscribed to {event_type.__name__}")

    def register_command_handler(self, command_type: Type, handler: Callable[[Any], Any]):
        if command_type in self._command_handlers:
            raise ValueError(f"{command_type.__name__} already has a handler")
        self._command_handlers[command_type] = handler
        logger.debug(f"{command_type.__name__} handled by {_name(handler)}")

    def has_command_handler(self, command_type: Type) -> bool:
        return command_type in self._command_handlers

    # ===== Dispatch =====

    def handle_command(self, command: Any) -> Any:
        """Run the handler registered for the command's type and return its result"""
        command_name = type(command).__name__
        try:
            handler = self._command_handlers[type(command)]
        except KeyError:
            raise ValueError(f"No handler registered for command {command_name}")

        logger.info(f"Handling command: {command_name}")
        try:
            return handler(command)
        except Exception as e:
            logger.error(f"Command {command_name} failed: {e}")
            raise

    def publish_events(self, events: Iterable[DomainEvent]) -> int:
        """
        Deliver each effect to its subscribers.

        Returns the number of handler calls that failed.
        """
        failures = 0
        for event in events:
            event_name = type(event).__name__
            handlers = self._effect_handlers.get(type(event))
            if not handlers:
                logger.warning(f"No handlers registered for effect {event_name}")
                continue

            logger.info(f"Publishing effect: {event_name} (booking {getattr(event, 'booking_id', '-')})")
            for handler in handlers:
                if not self._deliver(handler, event):
                    failures += 1
        return failures

    @staticmethod
    def _deliver(handler: Callable, event: DomainEvent) -> bool:
        event_name = type(event).__name__
        try:
            handler(event)
        except SideEffectFailure as e:
            logger.warning(f"Side effect {_name(handler)} failed for {event_name}: {e}")
            return False
        except Exception as e:
            logger.error(f"Unexpected error in {_name(handler)} for {event_name}: {e}", exc_info=True)
            return False
        return True


# Process-wide bus, populated by apps.bookings.application.bootstrap
message_bus = MessageBus()
