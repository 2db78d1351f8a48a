"""
Fault bus bridge.

Converts a UnifiedException into the canonical error/context pair an external
fault-reporting bus understands and publishes it with a timeout. The bus may
expose a synchronous or a coroutine ``publish``.
"""

import asyncio
import inspect
import time
from datetime import datetime
from typing import Any, Optional, Protocol, runtime_checkable

from .events import EventEmitter, ComponentType, EventType, PublishEvent
from .exceptions import (
    ContextSource,
    ExceptionCategory,
    ExceptionContext,
    ExceptionLevel,
    FaultBusPublishError,
    PublishReason,
)
from .logging import get_logger
from .transformer import UnifiedException

logger = get_logger(__name__)


@runtime_checkable
class FaultBus(Protocol):
    """External fault-reporting bus"""

    def publish(self, error: Exception, context: dict[str, Any]) -> Any:
        ...


CANONICAL_NAMES = {
    ExceptionCategory.HTTP: "HttpException",
    ExceptionCategory.APPLICATION: "ApplicationException",
    ExceptionCategory.DOMAIN: "DomainException",
    ExceptionCategory.INFRASTRUCTURE: "InfrastructureException",
    ExceptionCategory.EXTERNAL: "ExternalServiceException",
    ExceptionCategory.CONFIGURATION: "ConfigurationException",
    ExceptionCategory.VALIDATION: "ValidationException",
}

CANONICAL_SOURCES = {
    ContextSource.WEB: "web",
    ContextSource.API: "api",
    ContextSource.CLI: "cli",
}


class CanonicalError(Exception):
    """
    Error object handed to the fault bus.

    Attributes:
        name: Canonical error name derived from the category
        exception_id: Id of the UnifiedException it was built from
        category: Fault category
        level: Fault level
        code: Fault code
        context: Canonical context dictionary
        occurred_at: When the fault was created
        original_error: Original exception, if there was one
    """

    def __init__(
        self,
        message: str,
        *,
        name: str,
        exception_id: str,
        category: ExceptionCategory,
        level: ExceptionLevel,
        code: str,
        context: dict[str, Any],
        occurred_at: datetime,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.name = name
        self.exception_id = exception_id
        self.category = category
        self.level = level
        self.code = code
        self.context = context
        self.occurred_at = occurred_at
        self.original_error = original_error

    def __repr__(self):
        return f"<{self.name}('{self}') code={self.code} id={self.exception_id}>"


def to_canonical_context(context: ExceptionContext) -> dict[str, Any]:
    """Flatten an ExceptionContext; organization/department ids travel in custom_data"""
    custom_data = dict(context.custom_data)
    custom_data.update({
        "organization_id": context.organization_id,
        "department_id": context.department_id,
        "occurred_at": context.occurred_at.isoformat(),
    })
    return {
        "tenant_id": context.tenant_id,
        "user_id": context.user_id,
        "request_id": context.request_id,
        "correlation_id": context.correlation_id,
        "user_agent": context.user_agent,
        "ip_address": context.ip_address,
        "source": CANONICAL_SOURCES.get(context.source, "system"),
        "custom_data": custom_data,
    }


def to_canonical_error(exception: UnifiedException) -> CanonicalError:
    return CanonicalError(
        exception.message,
        name=CANONICAL_NAMES.get(exception.category, "UnifiedException"),
        exception_id=exception.id,
        category=exception.category,
        level=exception.level,
        code=exception.code,
        context=to_canonical_context(exception.context),
        occurred_at=exception.occurred_at,
        original_error=exception.original_error,
    )


class FaultBusBridge:
    """
    Publishes UnifiedExceptions to a fault bus.

    Args:
        bus: Object implementing FaultBus
        timeout: Seconds to wait for ``publish`` to complete
        name: Component name used for events

    Example:
        >>> bridge = FaultBusBridge(bus, timeout=2.0)
        >>> await bridge.publish(unified_exception)
    """

    def __init__(self, bus: FaultBus, timeout: float = 5.0, name: str = "fault-bus"):
        if not callable(getattr(bus, "publish", None)):
            raise ValueError("bus must provide a callable publish(error, context)")
        if timeout <= 0:
            raise ValueError("timeout must be positive")

        self.bus = bus
        self.timeout = timeout
        self.name = name
        self.events = EventEmitter(component_name=name)

    async def _call_bus(self, error: CanonicalError, context: dict[str, Any]) -> None:
        publish = self.bus.publish
        if inspect.iscoroutinefunction(publish) or inspect.iscoroutinefunction(
            getattr(publish, "__call__", None)
        ):
            await publish(error, context)
            return

        result = await asyncio.to_thread(publish, error, context)
        # sync wrappers around async publishers hand back an awaitable
        if inspect.isawaitable(result):
            await result

    async def _emit(self, event_type: EventType, exception: UnifiedException, elapsed: float, error: Optional[str] = None):
        if self.events.has_listeners():
            await self.events.emit(PublishEvent(
                component_type=ComponentType.FAULT_BUS,
                event_type=event_type,
                component_name=self.name,
                exception_id=exception.id,
                error_name=CANONICAL_NAMES.get(exception.category, "UnifiedException"),
                elapsed=elapsed,
                error=error,
            ))

    async def publish(self, exception: UnifiedException) -> None:
        """
        Publish one fault.

        Raises:
            FaultBusPublishError: Conversion failed, the bus raised, or timed out
        """
        try:
            error = to_canonical_error(exception)
            context = error.context
        except Exception as e:
            raise FaultBusPublishError(
                f"Converting exception {exception.id} failed: {e}",
                component_name=self.name,
                component_type="fault_bus",
                reason=PublishReason.CONVERSION_FAILED,
                exception_id=exception.id,
            ) from e

        start = time.perf_counter()
        try:
            await asyncio.wait_for(self._call_bus(error, context), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            elapsed = time.perf_counter() - start
            await self._emit(EventType.PUBLISH_FAILED, exception, elapsed, "timeout")
            raise FaultBusPublishError(
                f"Publishing exception {exception.id} timed out after {self.timeout}s",
                component_name=self.name,
                component_type="fault_bus",
                reason=PublishReason.TIMEOUT,
                exception_id=exception.id,
                timeout=self.timeout,
            ) from e
        except Exception as e:
            elapsed = time.perf_counter() - start
            await self._emit(EventType.PUBLISH_FAILED, exception, elapsed, str(e))
            raise FaultBusPublishError(
                f"Publishing exception {exception.id} failed: {e}",
                component_name=self.name,
                component_type="fault_bus",
                reason=PublishReason.BUS_ERROR,
                exception_id=exception.id,
            ) from e

        elapsed = time.perf_counter() - start
        logger.debug(f"Published exception {exception.id} in {elapsed:.4f}s")
        await self._emit(EventType.FAULT_PUBLISHED, exception, elapsed)
