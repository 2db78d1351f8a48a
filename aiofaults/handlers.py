"""
Post-processing handlers.

Handlers run after dispatch for every fault they accept (notification,
auditing, custom metrics). They run in ascending priority order; a failing
handler is logged and skipped, it never affects the handle() result.
"""

import inspect
from typing import Any, Callable, Optional

from .transformer import UnifiedException


class FaultHandler:
    """
    Base class for post-processing handlers.

    Subclasses override ``handle`` (sync or async) and optionally
    ``should_handle``.

    Example:
        class PagerHandler(FaultHandler):
            name = "pager"
            priority = 10

            def should_handle(self, exception):
                return exception.should_notify()

            async def handle(self, exception):
                await pager.send(exception.code)
    """

    name: str = "handler"
    priority: int = 100

    def __init__(self, name: Optional[str] = None, priority: Optional[int] = None):
        if name is not None:
            self.name = name
        if priority is not None:
            self.priority = priority

    def __repr__(self):
        return f"{self.__class__.__name__}(name='{self.name}', priority={self.priority})"

    def should_handle(self, exception: UnifiedException) -> bool:
        return True

    def handle(self, exception: UnifiedException) -> Any:
        raise NotImplementedError


class CallbackHandler(FaultHandler):
    """
    Handler wrapping a plain callable.

    Args:
        name: Unique handler name
        callback: Sync or async callable receiving the UnifiedException
        priority: Run order, lower first
        predicate: Optional filter; the handler runs only when it returns True
    """

    def __init__(
        self,
        name: str,
        callback: Callable[[UnifiedException], Any],
        priority: int = 100,
        predicate: Optional[Callable[[UnifiedException], bool]] = None,
    ):
        super().__init__(name=name, priority=priority)
        self.callback = callback
        self.predicate = predicate

    def should_handle(self, exception: UnifiedException) -> bool:
        return self.predicate is None or bool(self.predicate(exception))

    async def handle(self, exception: UnifiedException) -> Any:
        return await run_callable(self.callback, exception)


async def run_callable(func: Callable, *args) -> Any:
    """Await a coroutine function, run a sync callable directly"""
    if inspect.iscoroutinefunction(func):
        return await func(*args)
    result = func(*args)
    if inspect.isawaitable(result):
        return await result
    return result


def handler_priority(handler: Any) -> int:
    return getattr(handler, "priority", 100)


def sorted_handlers(handlers) -> list:
    """Handlers in run order; equal priorities keep registration order"""
    return sorted(handlers, key=handler_priority)


async def run_handler(handler: Any, exception: UnifiedException) -> bool:
    """
    Run one handler if it accepts the exception.

    Returns:
        True if the handler ran, False if it declined

    Raises:
        Whatever the handler raises; the caller guards it
    """
    should_handle = getattr(handler, "should_handle", None)
    if should_handle is not None:
        accepted = await run_callable(should_handle, exception)
        if not accepted:
            return False
    await run_callable(handler.handle, exception)
    return True

