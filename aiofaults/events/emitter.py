"""
Per-component event emitters.

Each pipeline component (manager, dispatcher, fault bus bridge) owns one
EventEmitter. An event reaches the component's own handlers and, once anything
has subscribed to the global bus, the global handlers too. Handler errors are
routed through log_error and never reach the component.
"""

import asyncio
from typing import Callable, Dict, List, Optional, Union

from .types import PipelineEvent
from ..logging import log_error

EventKey = Union[str, int]

WILDCARD = "*"


class HandlerTable:
    """
    Handlers keyed by event type.

    A handler can be registered under the EventType value (int), its lowercase
    name (``"strategy_failed"``) or ``"*"`` for every event.
    """

    def __init__(self):
        self._handlers: Dict[EventKey, List[Callable]] = {}
        self._wildcard: List[Callable] = []

    def on(self, event_type: EventKey):
        """
        Register an event handler (decorator style)

        Usage:
            @manager.events.on("exception_unhandled")
            async def alert(event):
                ...
        """
        def decorator(handler: Callable):
            self.add_handler(event_type, handler)
            return handler
        return decorator

    def add_handler(self, event_type: EventKey, handler: Callable):
        if event_type == WILDCARD:
            self._wildcard.append(handler)
        else:
            self._handlers.setdefault(event_type, []).append(handler)

    def remove_handler(self, event_type: EventKey, handler: Callable):
        """Remove a handler; unknown handlers are ignored"""
        bucket = self._wildcard if event_type == WILDCARD else self._handlers.get(event_type, [])
        if handler in bucket:
            bucket.remove(handler)

    def handlers_for(self, event: PipelineEvent) -> List[Callable]:
        """Handlers interested in an event: by value, by name, then wildcard"""
        return [
            *self._handlers.get(event.event_type.value, ()),
            *self._handlers.get(event.event_type.name.lower(), ()),
            *self._wildcard,
        ]

    def clear(self):
        self._handlers.clear()
        self._wildcard.clear()

    @property
    def handler_count(self) -> int:
        return sum(len(h) for h in self._handlers.values()) + len(self._wildcard)


class EventEmitter(HandlerTable):
    """
    Event emitter for a single pipeline component.

    Args:
        component_name: Name of the component instance, used in error reports
    """

    # Shared across all emitters; flipped by the global bus
    _global_bus_enabled = False
    _global_bus = None

    def __init__(self, component_name: str):
        super().__init__()
        self.component_name = component_name

    def has_listeners(self) -> bool:
        """True when emitting could reach a handler, locally or globally"""
        return self.handler_count > 0 or EventEmitter._global_bus_enabled

    @classmethod
    def _global_handlers(cls, event: PipelineEvent) -> List[Callable]:
        if not cls._global_bus_enabled:
            return []
        if cls._global_bus is None:
            from .bus import global_bus
            cls._global_bus = global_bus
        return cls._global_bus.handlers_for(event)

    async def emit(self, event: PipelineEvent):
        """
        Deliver an event to local and global handlers concurrently.

        Args:
            event: PipelineEvent to emit
        """
        handlers = self.handlers_for(event) + self._global_handlers(event)
        if not handlers:
            return
        if len(handlers) == 1:
            await self._safe_call(handlers[0], event)
            return
        await asyncio.gather(*(self._safe_call(h, event) for h in handlers))

    async def _safe_call(self, handler: Callable, event: PipelineEvent):
        try:
            await handler(event)
        except Exception as e:
            log_error(
                f'aiofaults.events.{self.component_name}',
                e,
                handler=getattr(handler, '__name__', 'unknown'),
                event_type=event.event_type.name.lower(),
            )

    def get_handlers(self, event_type: Optional[EventKey] = None) -> int:
        """
        Number of handlers for one event type ("*" for wildcard), or in total.
        """
        if event_type is None:
            return self.handler_count
        if event_type == WILDCARD:
            return len(self._wildcard)
        return len(self._handlers.get(event_type, []))

    @classmethod
    def is_global_bus_enabled(cls) -> bool:
        return cls._global_bus_enabled
