"""
Strategy Dispatcher Module

Runs a UnifiedException through the registered strategies in ascending
priority order until one of them handles it.
"""

import asyncio
import time
from dataclasses import dataclass, replace
from typing import Any, Optional

from .config import StrategyConfig
from .events import EventEmitter, ComponentType, EventType, StrategyEvent
from .exceptions import DispatchError, DispatchReason
from .logging import get_logger
from .registry import StrategyRegistry
from .strategies import BaseExceptionStrategy, ExecutionResult, default_strategies
from .transformer import UnifiedException

logger = get_logger(__name__)


@dataclass
class ExecutionStats:
    """Statistics for dispatch runs"""
    total_executions: int = 0
    successful_executions: int = 0
    failed_executions: int = 0
    average_execution_time: float = 0.0
    last_execution_at: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert statistics to dictionary"""
        return {
            "total_executions": self.total_executions,
            "successful_executions": self.successful_executions,
            "failed_executions": self.failed_executions,
            "average_execution_time": self.average_execution_time,
            "last_execution_at": self.last_execution_at,
        }


class StrategyDispatcher:
    """
    Priority-ordered strategy dispatcher.

    Candidates are the enabled strategies whose ``can_handle`` accepts the
    exception, stable-sorted by priority (registration order breaks ties).
    They run one after another; every result is kept and the run stops after
    the first success. An empty result list means nothing could handle the
    exception.

    Args:
        registry: Registry to dispatch from (a new one when omitted)
        register_defaults: Register the four built-in strategies
        strategy_config: Config passed to the built-in strategies
        name: Component name used for events

    Example:
        >>> dispatcher = StrategyDispatcher()
        >>> results = await dispatcher.dispatch(unified_exception)
        >>> results[-1].success
        True
    """

    def __init__(
        self,
        registry: Optional[StrategyRegistry] = None,
        register_defaults: bool = True,
        strategy_config: Optional[StrategyConfig] = None,
        name: str = "dispatcher",
    ):
        self.registry = registry if registry is not None else StrategyRegistry()
        self.name = name

        self._stats = ExecutionStats()
        self._lock = asyncio.Lock()
        self._pending_events: set = set()

        self.events = EventEmitter(component_name=name)

        if register_defaults:
            for strategy in default_strategies(strategy_config):
                if strategy.name not in self.registry:
                    self.registry.add(strategy)

    def _strategy_event(self, event_type: EventType, strategy: BaseExceptionStrategy, **kwargs) -> StrategyEvent:
        return StrategyEvent(
            component_type=ComponentType.DISPATCHER,
            event_type=event_type,
            component_name=self.name,
            strategy_name=strategy.name,
            priority=strategy.priority,
            **kwargs,
        )

    def _emit_soon(self, event: StrategyEvent) -> None:
        """Schedule an event from synchronous code; dropped outside an event loop"""
        if not self.events.has_listeners():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self.events.emit(event))
        self._pending_events.add(task)
        task.add_done_callback(self._pending_events.discard)

    def register(self, strategy: BaseExceptionStrategy) -> None:
        """
        Register a strategy.

        Raises:
            StrategyRegistrationError: A strategy with the same name exists
        """
        self.registry.add(strategy)
        logger.debug(f"Registered strategy '{strategy.name}' (priority {strategy.priority})")
        self._emit_soon(self._strategy_event(EventType.STRATEGY_REGISTERED, strategy))

    def unregister(self, name: str) -> bool:
        strategy = self.registry.remove(name)
        if strategy is None:
            return False
        logger.debug(f"Unregistered strategy '{name}'")
        self._emit_soon(self._strategy_event(EventType.STRATEGY_UNREGISTERED, strategy))
        return True

    def enable(self, name: str) -> bool:
        strategy = self.registry.get(name)
        if strategy is None:
            return False
        strategy.enable()
        self._emit_soon(self._strategy_event(EventType.STRATEGY_ENABLED, strategy))
        return True

    def disable(self, name: str) -> bool:
        strategy = self.registry.get(name)
        if strategy is None:
            return False
        strategy.disable()
        self._emit_soon(self._strategy_event(EventType.STRATEGY_DISABLED, strategy))
        return True

    def get_strategy(self, name: str) -> Optional[BaseExceptionStrategy]:
        return self.registry.get(name)

    def get_strategies(self) -> list[BaseExceptionStrategy]:
        """All registered strategies in dispatch order, enabled or not"""
        return sorted(self.registry.snapshot(), key=lambda s: s.priority)

    def select(self, exception: UnifiedException) -> list[BaseExceptionStrategy]:
        """
        Candidate strategies for an exception, in dispatch order.

        Raises:
            DispatchError: Candidate selection failed
        """
        try:
            candidates = [
                strategy for strategy in self.registry.snapshot()
                if strategy.enabled and strategy.can_handle(exception)
            ]
        except Exception as e:
            raise DispatchError(
                f"Selecting strategies failed: {e}",
                component_name=self.name,
                component_type="dispatcher",
                reason=DispatchReason.REGISTRY_ERROR,
                exception_id=exception.id,
            ) from e

        # sort() is stable, so registration order breaks ties
        candidates.sort(key=lambda s: s.priority)
        return candidates

    async def dispatch(self, exception: UnifiedException) -> list[ExecutionResult]:
        """
        Run candidate strategies until one succeeds.

        Args:
            exception: Fault to dispatch

        Returns:
            Results of every strategy that ran, in order

        Raises:
            DispatchError: Candidate selection failed
        """
        start = time.perf_counter()
        candidates = self.select(exception)

        results: list[ExecutionResult] = []
        for strategy in candidates:
            try:
                result = await strategy.handle(exception)
            except Exception as e:
                logger.warning(f"Strategy '{strategy.name}' raised {type(e).__name__}: {e}")
                result = ExecutionResult(
                    success=False,
                    action="strategy_failed",
                    reason=str(e),
                    metadata={"error_type": type(e).__name__},
                    strategy=strategy.name,
                )

            results.append(result)

            if self.events.has_listeners():
                await self.events.emit(self._strategy_event(
                    EventType.STRATEGY_SUCCEEDED if result.success else EventType.STRATEGY_FAILED,
                    strategy,
                    exception_id=exception.id,
                    action=result.action,
                    reason=result.reason,
                ))

            if result.success:
                break

        if not candidates:
            logger.debug(f"No strategy can handle exception {exception.id} ({exception.category.value})")

        await self._update_stats(any(r.success for r in results), time.perf_counter() - start)
        return results

    async def _update_stats(self, success: bool, execution_time: float) -> None:
        async with self._lock:
            stats = self._stats
            stats.total_executions += 1
            if success:
                stats.successful_executions += 1
            else:
                stats.failed_executions += 1
            stats.average_execution_time = (
                stats.average_execution_time * (stats.total_executions - 1) + execution_time
            ) / stats.total_executions
            stats.last_execution_at = time.time()

    def get_execution_stats(self) -> ExecutionStats:
        """Snapshot of the dispatch statistics"""
        return replace(self._stats)

    def get_strategy_stats(self, name: Optional[str] = None) -> dict[str, Any]:
        """
        Per-strategy statistics.

        Args:
            name: Single strategy to report, or None for all of them

        Returns:
            Mapping of strategy name to its statistics dictionary
        """
        strategies = self.registry.snapshot()
        if name is not None:
            strategies = [s for s in strategies if s.name == name]
        return {s.name: s.get_stats().to_dict() for s in strategies}

    def reset_stats(self) -> None:
        """Reset dispatch statistics and the statistics of every strategy"""
        self._stats = ExecutionStats()
        for strategy in self.registry.snapshot():
            strategy.reset_stats()
