"""
Event Bus - Change Notifications
The store emits an event after every effective mutation; views and the CLI
listen. Nothing in the store depends on who is listening.
"""

from typing import Callable, Dict, List, Any
import logging

logger = logging.getLogger(__name__)


class EventBus:
    """
    Simple event bus for decoupled change notification.
    The store emits events, other modules register handlers to listen.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Callable]] = {}

    def on(self, event_name: str, handler: Callable):
        """
        Register a handler for an event.

        Args:
            event_name: Name of the event to listen for
            handler: Callable that receives event_data dict
        """
        if event_name not in self._handlers:
            self._handlers[event_name] = []
        self._handlers[event_name].append(handler)
        logger.debug(f"Registered handler for event '{event_name}': {handler.__name__}")

    def emit(self, event_name: str, event_data: Dict[str, Any] = None):
        """
        Emit an event to all registered handlers.

        A failing handler is logged and skipped; the remaining handlers still run.
        """
        if event_data is None:
            event_data = {}

        logger.debug(f"Emitting event '{event_name}' with data: {event_data}")

        for handler in self._handlers.get(event_name, []):
            try:
                handler(event_data)
            except Exception as e:
                logger.error(f"Error in handler {handler.__name__} for event '{event_name}': {e}")

    def clear(self):
        """Clear all handlers (useful for testing)."""
        self._handlers.clear()


# =============================================================================
# STANDARD EVENTS
# =============================================================================

EVENT_CLIENT_CREATED = 'client_created'
EVENT_CLIENT_UPDATED = 'client_updated'
EVENT_CLIENT_DELETED = 'client_deleted'

EVENT_BOOKING_CREATED = 'booking_created'
EVENT_BOOKING_UPDATED = 'booking_updated'
EVENT_BOOKING_DELETED = 'booking_deleted'

EVENT_GALLERY_CREATED = 'gallery_created'
EVENT_GALLERY_UPDATED = 'gallery_updated'
EVENT_GALLERY_DELETED = 'gallery_deleted'

EVENT_PACKAGE_CREATED = 'package_created'
EVENT_PACKAGE_UPDATED = 'package_updated'
EVENT_PACKAGE_DELETED = 'package_deleted'

EVENT_REFERRAL_CREATED = 'referral_created'
EVENT_REFERRAL_UPDATED = 'referral_updated'
EVENT_REFERRAL_DELETED = 'referral_deleted'


def entity_event(entity: str, action: str) -> str:
    """Event name for an entity mutation, e.g. ('booking', 'updated') -> 'booking_updated'."""
    return f"{entity}_{action}"
