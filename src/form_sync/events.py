"""
events.py - Lifecycle events delivered by the host, and a small bus.

Handlers are registered per event class and awaited one after another
in registration order, so an emitted event is fully handled before
emit() returns.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Union

from form_sync.model.form import Form, FormVersion
from form_sync.model.record import Record


@dataclass(frozen=True)
class FormSaved:
    form: Form
    account: Any
    old_form: FormVersion | None
    new_form: FormVersion | None


@dataclass(frozen=True)
class RecordSaved:
    record: Record
    account: Any


@dataclass(frozen=True)
class RecordDeleted:
    record: Record


SyncEvent = Union[FormSaved, RecordSaved, RecordDeleted]

Handler = Callable[[Any], Awaitable[None]]


class EventBus:
    """Central registry for event handlers"""

    def __init__(self):
        # Maps event class -> handlers in registration order
        self._handlers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Handler) -> None:
        """Register an async handler for an event class (and its subclasses)."""
        if handler not in self._handlers[event_type]:
            self._handlers[event_type].append(handler)

    def handlers_for(self, event: object) -> list[Handler]:
        handlers: list[Handler] = []
        for cls in type(event).__mro__:
            for handler in self._handlers.get(cls, ()):
                if handler not in handlers:
                    handlers.append(handler)
        return handlers

    async def emit(self, event: SyncEvent) -> int:
        """
        Deliver an event to every matching handler.

        Returns:
            Number of handlers invoked
        """
        handlers = self.handlers_for(event)
        for handler in handlers:
            await handler(event)
        return len(handlers)
