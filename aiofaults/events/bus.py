"""
Global event bus for monitoring the whole pipeline.

This is an observability channel for the pipeline itself; it has nothing to do
with the external fault bus that faults are published to.
"""

from typing import Callable

from .emitter import EventEmitter, EventKey, HandlerTable
from .types import PipelineEvent
from ..logging import log_error


class GlobalEventBus(HandlerTable):
    """
    Process-wide event handlers.

    Inactive until the first handler is added, so components pay nothing for
    events nobody listens to. ``clear()`` deactivates it again.

    Usage:
        @global_bus.on("publish_failed")
        async def on_publish_failed(event):
            ...
    """

    def __init__(self):
        super().__init__()
        self._active = False

    def _set_active(self, active: bool):
        self._active = active
        EventEmitter._global_bus_enabled = active

    def add_handler(self, event_type: EventKey, handler: Callable):
        if not self._active:
            self._set_active(True)
        super().add_handler(event_type, handler)

    async def emit(self, event: PipelineEvent):
        """Deliver an event to global handlers only, one after another"""
        if not self._active:
            return
        for handler in self.handlers_for(event):
            try:
                await handler(event)
            except Exception as e:
                log_error(
                    'aiofaults.events.global_bus',
                    e,
                    handler=getattr(handler, '__name__', 'unknown'),
                    event_type=event.event_type.name.lower(),
                )

    def clear(self):
        """Remove all handlers and deactivate the bus"""
        super().clear()
        self._set_active(False)

    @property
    def is_active(self) -> bool:
        return self._active


global_bus = GlobalEventBus()
