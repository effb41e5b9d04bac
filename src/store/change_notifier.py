"""Change notification for syncable datasets.

Syncable datasets compose a ``ChangeNotifier``; every other dataset
holds a ``NullNotifier`` so mutation code never branches on the
capability.
"""

from __future__ import annotations

from typing import Callable

from core.constants import SUPPORTED_EVENTS
from core.errors import TabulaConfigError
from core.logging_config import get_logger
from core.types import ChangeEvent

_LOGGER = get_logger(__name__)

Handler = Callable[[ChangeEvent], None]


class ChangeNotifier:
    """Publish/subscribe registry keyed by event name."""

    enabled = True

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = {}

    def on(self, event_name: str, handler: Handler) -> None:
        """Subscribe a handler to an event name.

        Raises:
            TabulaConfigError: If the event name is not supported.
        """
        _check_event_name(event_name)
        self._handlers.setdefault(event_name, []).append(handler)

    def off(self, event_name: str | None = None, handler: Handler | None = None) -> None:
        """Unsubscribe handlers.

        With no arguments every handler is dropped; with only an event
        name every handler of that event is dropped.
        """
        if event_name is None:
            if handler is None:
                self._handlers.clear()
                return
            for handlers in self._handlers.values():
                _discard(handlers, handler)
            return
        if handler is None:
            self._handlers.pop(event_name, None)
            return
        _discard(self._handlers.get(event_name, []), handler)

    def trigger(self, event_name: str, payload: ChangeEvent) -> None:
        """Deliver a payload to every handler of an event, in subscription order."""
        handlers = tuple(self._handlers.get(event_name, ()))
        _LOGGER.debug(
            "event_triggered",
            event_name=event_name,
            handler_count=len(handlers),
            delta_count=len(payload.deltas),
        )
        for handler in handlers:
            handler(payload)


class NullNotifier:
    """Notifier for datasets that are not syncable; every call is a no-op."""

    enabled = False

    def on(self, event_name: str, handler: Handler) -> None:
        _LOGGER.warning(
            "subscription_ignored",
            event_name=event_name,
            reason="dataset is not syncable",
        )

    def off(self, event_name: str | None = None, handler: Handler | None = None) -> None:
        return None

    def trigger(self, event_name: str, payload: ChangeEvent) -> None:
        return None


def build_notifier(syncable: bool) -> ChangeNotifier | NullNotifier:
    """Return the notifier component matching the dataset's capability."""
    return ChangeNotifier() if syncable else NullNotifier()


def _check_event_name(event_name: str) -> None:
    if event_name not in SUPPORTED_EVENTS:
        raise TabulaConfigError(
            f"Unsupported event '{event_name}'. Subscribe to one of {SUPPORTED_EVENTS}."
        )


def _discard(handlers: list[Handler], handler: Handler) -> None:
    while handler in handlers:
        handlers.remove(handler)
