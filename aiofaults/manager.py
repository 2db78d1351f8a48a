"""
Unified Exception Manager Module

Entry point of the fault pipeline: transform, record, publish, dispatch and
post-process a raw fault in one ``handle`` call that never raises.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .bridge import FaultBus, FaultBusBridge
from .classifier import ExceptionClassifier
from .config import ManagerConfig, StrategyConfig
from .dispatcher import StrategyDispatcher
from .events import EventEmitter, ComponentType, EventType, ExceptionEvent
from .exceptions import (
    ContextReason,
    ExceptionContext,
    ExceptionLevel,
    FaultBusPublishError,
    MissingContextError,
)
from .handlers import run_callable, run_handler, sorted_handlers
from .logging import get_logger, log_error
from .registry import StrategyRegistry
from .strategies import BaseExceptionStrategy, ExecutionResult, default_strategies
from .transformer import ExceptionTransformer, UnifiedException

logger = get_logger(__name__)

LOG_LEVELS = {
    ExceptionLevel.INFO: logging.INFO,
    ExceptionLevel.WARN: logging.WARNING,
    ExceptionLevel.ERROR: logging.ERROR,
    ExceptionLevel.FATAL: logging.CRITICAL,
}


@dataclass
class HandleResult:
    """
    Outcome of UnifiedExceptionManager.handle().

    Attributes:
        success: The pipeline ran to completion
        exception_id: Id of the UnifiedException built for the fault
        error: Why the pipeline failed, when it did
        results: Results of every strategy that ran
        response: Response of the first successful strategy
    """
    success: bool
    exception_id: Optional[str] = None
    error: Optional[str] = None
    results: list[ExecutionResult] = field(default_factory=list)
    response: Optional[dict[str, Any]] = None

    @classmethod
    def failure(cls, error: str, exception_id: Optional[str] = None) -> "HandleResult":
        return cls(success=False, exception_id=exception_id, error=error)

    @property
    def handled(self) -> bool:
        """True when some strategy produced a response"""
        return self.success and any(r.success for r in self.results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "handled": self.handled,
            "exception_id": self.exception_id,
            "error": self.error,
            "results": [r.to_dict() for r in self.results],
            "response": self.response,
        }


@dataclass
class ExceptionStats:
    """Aggregate statistics of the manager"""
    total_exceptions: int = 0
    by_category: dict[str, int] = field(default_factory=dict)
    by_level: dict[str, int] = field(default_factory=dict)
    by_tenant: dict[str, int] = field(default_factory=dict)
    by_user: dict[str, int] = field(default_factory=dict)
    total_processed: int = 0
    successful: int = 0
    failed: int = 0
    average_processing_time: float = 0.0
    published: int = 0
    publish_failed: int = 0
    last_updated_at: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert statistics to dictionary"""
        return {
            "total_exceptions": self.total_exceptions,
            "by_category": dict(self.by_category),
            "by_level": dict(self.by_level),
            "by_tenant": dict(self.by_tenant),
            "by_user": dict(self.by_user),
            "processing": {
                "total_processed": self.total_processed,
                "successful": self.successful,
                "failed": self.failed,
                "average_processing_time": self.average_processing_time,
            },
            "publish": {
                "published": self.published,
                "failed": self.publish_failed,
            },
            "last_updated_at": self.last_updated_at,
        }


def _increment(counter: dict[str, int], key: str) -> None:
    counter[key] = counter.get(key, 0) + 1


class UnifiedExceptionManager:
    """
    Fault pipeline manager.

    ``handle(fault, context)`` transforms the fault into a UnifiedException,
    updates statistics, forwards it to the fault bus (best effort), dispatches
    it through the strategies and runs the post-processing handlers. It never
    raises; failures are reported through HandleResult.

    Args:
        config: ManagerConfig (ignored when config_loader succeeds)
        fault_bus: Optional external bus receiving a canonical copy of each fault
        config_loader: Sync or async callable returning a ManagerConfig or a mapping
        classifier: Custom classifier for the default transformer
        transformer: Custom transformer
        dispatcher: Custom dispatcher (built-in strategies are then its concern)
        strategy_config: Config for the built-in strategies
        name: Component name used for events

    Example:
        >>> manager = UnifiedExceptionManager(fault_bus=bus)
        >>> await manager.initialize()
        >>> result = await manager.handle(TimeoutError("Connection timeout"), ExceptionContext())
        >>> result.response["error_type"]
        'NETWORK_ERROR'
    """

    def __init__(
        self,
        config: Optional[ManagerConfig] = None,
        fault_bus: Optional[FaultBus] = None,
        config_loader: Optional[Callable[[], Any]] = None,
        classifier: Optional[ExceptionClassifier] = None,
        transformer: Optional[ExceptionTransformer] = None,
        dispatcher: Optional[StrategyDispatcher] = None,
        strategy_config: Optional[StrategyConfig] = None,
        name: str = "exception-manager",
    ):
        self.name = name
        self.config = config or ManagerConfig()
        self.fault_bus = fault_bus
        self.transformer = transformer or ExceptionTransformer(classifier)

        self._default_config = self.config
        self._config_loader = config_loader
        self._config_loaded = config_loader is None
        self._strategy_config = strategy_config

        self._owns_dispatcher = dispatcher is None
        self.dispatcher = dispatcher or StrategyDispatcher(
            StrategyRegistry(),
            register_defaults=False,
            name=f"{name}.dispatcher",
        )
        self._defaults_registered = False

        self._bridge: Optional[FaultBusBridge] = None
        self._handlers: dict[str, Any] = {}

        self._stats = ExceptionStats()
        self._stats_lock = asyncio.Lock()
        self._init_lock = asyncio.Lock()
        self._initialized = False
        self._running = False

        self.events = EventEmitter(component_name=name)

    @property
    def registry(self) -> StrategyRegistry:
        return self.dispatcher.registry

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def _load_config(self) -> None:
        try:
            loaded = await run_callable(self._config_loader)
            if not isinstance(loaded, ManagerConfig):
                loaded = ManagerConfig.from_mapping(loaded)
        except Exception as e:
            logger.warning(f"Loading configuration failed ({type(e).__name__}: {e}), using defaults")
            self.config = self._default_config
            self._config_loaded = False
            return
        self.config = loaded
        self._config_loaded = True

    async def initialize(self) -> None:
        """
        Load configuration, register the built-in strategies and connect the
        fault bus. Safe to call more than once.
        """
        async with self._init_lock:
            if self._initialized:
                return

            if self._config_loader is not None:
                await self._load_config()

            if self._owns_dispatcher and not self._defaults_registered:
                if self.config.register_default_strategies:
                    for strategy in default_strategies(self._strategy_config):
                        if strategy.name not in self.registry:
                            self.dispatcher.register(strategy)
                self._defaults_registered = True

            self._bridge = None
            if self.fault_bus is not None and self.config.enable_fault_bus:
                try:
                    self._bridge = FaultBusBridge(
                        self.fault_bus,
                        timeout=self.config.publish_timeout,
                        name=f"{self.name}.fault-bus",
                    )
                except ValueError as e:
                    # an unusable bus only disables publishing
                    log_error("aiofaults.manager", e, manager=self.name, stage="fault_bus")

            self._initialized = True
            self._running = True
            logger.info(
                f"Exception manager '{self.name}' initialized with "
                f"{len(self.registry)} strategies"
            )

    async def destroy(self) -> None:
        """Remove handlers and stop the manager. Safe to call more than once."""
        async with self._init_lock:
            if not self._initialized:
                return
            self._handlers.clear()
            self._bridge = None
            self._initialized = False
            self._running = False
            logger.info(f"Exception manager '{self.name}' stopped")

    async def handle(self, fault: Any, context: Optional[ExceptionContext]) -> HandleResult:
        """
        Run a fault through the pipeline.

        Args:
            fault: Raw fault of any shape, including None
            context: Request context (required)

        Returns:
            HandleResult; ``success`` is False only when the pipeline itself failed
        """
        start = time.perf_counter()

        try:
            await self.initialize()
        except Exception as e:
            log_error("aiofaults.manager", e, manager=self.name, stage="initialize")
            return HandleResult.failure(f"Initialization failed: {e}")

        if not isinstance(context, ExceptionContext):
            error = MissingContextError(
                "An ExceptionContext is required to handle a fault"
                if context is None else
                f"Expected ExceptionContext, got {type(context).__name__}",
                component_name=self.name,
                component_type="manager",
                reason=ContextReason.MISSING if context is None else ContextReason.INVALID,
            )
            logger.warning(str(error))
            await self._record_processing(False, time.perf_counter() - start)
            return HandleResult.failure(str(error))

        exception: Optional[UnifiedException] = None
        try:
            exception = self.transformer.transform(fault, context)
            self._log_exception(exception)
            await self._record_exception(exception)
            await self._publish(exception)

            results = await self.dispatcher.dispatch(exception)
            await self._run_handlers(exception)

            response = next((r.response for r in results if r.success), None)
            duration = time.perf_counter() - start
            await self._record_processing(True, duration)

            if self.events.has_listeners():
                await self.events.emit(ExceptionEvent(
                    component_type=ComponentType.MANAGER,
                    event_type=EventType.EXCEPTION_HANDLED if response is not None else EventType.EXCEPTION_UNHANDLED,
                    component_name=self.name,
                    exception_id=exception.id,
                    category=exception.category,
                    level=exception.level,
                    code=exception.code,
                    duration=duration,
                ))

            return HandleResult(
                success=True,
                exception_id=exception.id,
                results=results,
                response=response,
            )
        except Exception as e:
            return await self._handle_failure(e, exception, time.perf_counter() - start)

    async def _handle_failure(
        self,
        error: Exception,
        exception: Optional[UnifiedException],
        duration: float,
    ) -> HandleResult:
        exception_id = exception.id if exception is not None else None
        log_error("aiofaults.manager", error, manager=self.name, exception_id=exception_id)
        await self._record_processing(False, duration)

        if self.events.has_listeners():
            await self.events.emit(ExceptionEvent(
                component_type=ComponentType.MANAGER,
                event_type=EventType.HANDLE_FAILED,
                component_name=self.name,
                exception_id=exception_id,
                category=exception.category if exception is not None else None,
                level=exception.level if exception is not None else None,
                code=exception.code if exception is not None else None,
                duration=duration,
                error=str(error),
            ))

        return HandleResult.failure(
            f"Exception handling failed: {type(error).__name__}: {error}",
            exception_id=exception_id,
        )

    def _log_exception(self, exception: UnifiedException) -> None:
        if not exception.should_log():
            return
        logger.log(
            LOG_LEVELS.get(exception.level, logging.ERROR),
            f"[{exception.code}] {exception.category.value} exception {exception.id}: {exception.message}",
        )

    async def _record_exception(self, exception: UnifiedException) -> None:
        if not self.config.enable_metrics:
            return
        async with self._stats_lock:
            stats = self._stats
            stats.total_exceptions += 1
            _increment(stats.by_category, exception.category.value)
            _increment(stats.by_level, exception.level.value)
            if self.config.track_tenants:
                if exception.context.tenant_id:
                    _increment(stats.by_tenant, exception.context.tenant_id)
                if exception.context.user_id:
                    _increment(stats.by_user, exception.context.user_id)
            stats.last_updated_at = time.time()

    async def _record_processing(self, success: bool, processing_time: float) -> None:
        if not self.config.enable_metrics:
            return
        async with self._stats_lock:
            stats = self._stats
            stats.total_processed += 1
            if success:
                stats.successful += 1
            else:
                stats.failed += 1
            stats.average_processing_time = (
                stats.average_processing_time * (stats.total_processed - 1) + processing_time
            ) / stats.total_processed
            stats.last_updated_at = time.time()

    async def _record_publish(self, success: bool) -> None:
        if not self.config.enable_metrics:
            return
        async with self._stats_lock:
            if success:
                self._stats.published += 1
            else:
                self._stats.publish_failed += 1

    async def _publish(self, exception: UnifiedException) -> None:
        if self._bridge is None:
            return
        try:
            await self._bridge.publish(exception)
        except FaultBusPublishError as e:
            log_error(
                "aiofaults.manager",
                e,
                exception_id=exception.id,
                reason=e.reason.name if e.reason is not None else None,
            )
            await self._record_publish(False)
            return
        await self._record_publish(True)

    async def _run_handlers(self, exception: UnifiedException) -> None:
        for handler in sorted_handlers(list(self._handlers.values())):
            try:
                await run_handler(handler, exception)
            except Exception as e:
                log_error(
                    "aiofaults.manager",
                    e,
                    handler=handler.name,
                    exception_id=exception.id,
                )
                if self.events.has_listeners():
                    await self.events.emit(ExceptionEvent(
                        component_type=ComponentType.MANAGER,
                        event_type=EventType.HANDLER_FAILED,
                        component_name=self.name,
                        exception_id=exception.id,
                        category=exception.category,
                        level=exception.level,
                        code=exception.code,
                        error=str(e),
                        metadata={"handler": handler.name},
                    ))

    def register_handler(self, handler: Any) -> None:
        """
        Register a post-processing handler.

        Args:
            handler: Object with ``name``, ``handle(exception)`` and optionally
                ``priority`` and ``should_handle(exception)``

        Raises:
            ValueError: Invalid handler or duplicate name
        """
        name = getattr(handler, "name", None)
        if not name or not callable(getattr(handler, "handle", None)):
            raise ValueError("handler must have a name and a callable handle()")
        if name in self._handlers:
            raise ValueError(f"Handler '{name}' is already registered")
        self._handlers[name] = handler

    def unregister_handler(self, name: str) -> bool:
        return self._handlers.pop(name, None) is not None

    def get_handlers(self) -> list:
        return sorted_handlers(list(self._handlers.values()))

    def register_strategy(self, strategy: BaseExceptionStrategy) -> None:
        """
        Raises:
            StrategyRegistrationError: A strategy with the same name exists
        """
        self.dispatcher.register(strategy)

    def unregister_strategy(self, name: str) -> bool:
        return self.dispatcher.unregister(name)

    def enable_strategy(self, name: str) -> bool:
        return self.dispatcher.enable(name)

    def disable_strategy(self, name: str) -> bool:
        return self.dispatcher.disable(name)

    def get_stats(self) -> dict[str, Any]:
        """Manager, dispatcher and per-strategy statistics"""
        stats = self._stats.to_dict()
        stats["dispatcher"] = self.dispatcher.get_execution_stats().to_dict()
        stats["strategies"] = self.dispatcher.get_strategy_stats()
        return stats

    def reset_stats(self) -> None:
        self._stats = ExceptionStats()
        self.dispatcher.reset_stats()

    def get_health(self) -> dict[str, Any]:
        strategies_loaded = len(self.registry)
        return {
            "is_healthy": self._running and strategies_loaded > 0,
            "details": {
                "manager_status": "running" if self._running else "stopped",
                "fault_bus_connected": self._bridge is not None,
                "config_loaded": self._config_loaded,
                "strategies_loaded": strategies_loaded,
                "handlers_loaded": len(self._handlers),
            },
            "checked_at": time.time(),
        }
