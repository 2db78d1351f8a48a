"""
Base exception handling strategy.

Defines the result and statistics types shared by every strategy and the
guarded ``handle`` flow: a strategy never raises, it reports failure through
its ExecutionResult.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from ..config import StrategyConfig
from ..exceptions import ExceptionCategory
from ..logging import get_logger
from ..transformer import UnifiedException

logger = get_logger(__name__)

SENSITIVE_FIELDS = (
    "password",
    "token",
    "secret",
    "key",
    "credential",
    "auth",
    "sql",
    "query",
    "certificate",
    "privateKey",
    "private_key",
    "statement",
    "proxyAuth",
)

# Context identifiers echoed by every strategy response
CONTEXT_FIELDS = ("tenant_id", "user_id", "organization_id", "department_id", "request_id")


@dataclass(frozen=True)
class ExecutionResult:
    """
    Outcome of one strategy run.

    Attributes:
        success: Whether the strategy produced a response
        action: Tag describing what happened (handled, cannot_handle, strategy_disabled, strategy_failed)
        response: Response built by the strategy, if any
        reason: Failure reason, if any
        metadata: Extra diagnostic values
        timestamp: Creation time (time.time())
        strategy: Name of the strategy that produced the result
    """
    success: bool
    action: str
    response: Optional[dict[str, Any]] = None
    reason: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
    strategy: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "action": self.action,
            "response": self.response,
            "reason": self.reason,
            "metadata": self.metadata,
            "timestamp": self.timestamp,
            "strategy": self.strategy,
        }


@dataclass
class StrategyStats:
    """Statistics for a single strategy"""
    total_handled: int = 0
    success_count: int = 0
    failure_count: int = 0
    average_processing_time: float = 0.0
    last_processed_at: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert statistics to dictionary"""
        return {
            "total_handled": self.total_handled,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "average_processing_time": self.average_processing_time,
            "last_processed_at": self.last_processed_at,
            "success_rate": (
                self.success_count / self.total_handled
                if self.total_handled > 0 else 0.0
            ),
        }


def _redact(mapping: Mapping[str, Any], sensitive: frozenset, marker: str) -> dict[str, Any]:
    return {
        k: marker if str(k).lower() in sensitive else v
        for k, v in mapping.items()
    }


def sanitize(
    details: Any,
    sensitive_fields: Optional[frozenset] = None,
    marker: str = "[REDACTED]",
) -> Any:
    """
    Redact sensitive values from fault details.

    Key names are compared case-insensitively against the denylist. The top
    level and one nested level are redacted; lists are sanitized item by item.
    Anything that is not a mapping or list is returned unchanged.

    Args:
        details: Details attached to a fault
        sensitive_fields: Lower-cased denylist, defaults to SENSITIVE_FIELDS
        marker: Replacement value
    """
    if sensitive_fields is None:
        sensitive_fields = frozenset(name.lower() for name in SENSITIVE_FIELDS)

    if isinstance(details, (list, tuple)):
        return [sanitize(item, sensitive_fields, marker) for item in details]

    if not isinstance(details, Mapping):
        return details

    sanitized = _redact(details, sensitive_fields, marker)
    for k, v in sanitized.items():
        if isinstance(v, Mapping):
            sanitized[k] = _redact(v, sensitive_fields, marker)
        elif isinstance(v, (list, tuple)):
            sanitized[k] = [
                _redact(item, sensitive_fields, marker) if isinstance(item, Mapping) else item
                for item in v
            ]
    return sanitized


class BaseExceptionStrategy(ABC):
    """
    Base class for category strategies.

    A strategy handles UnifiedExceptions of exactly one category. Subclasses
    implement ``build_response``; everything else (enable state, guards,
    statistics) lives here.

    Args:
        name: Unique strategy name
        category: Category this strategy handles
        priority: Dispatch priority, lower runs first
        config: StrategyConfig (defaults apply when omitted)
    """

    error_type = "UNKNOWN_ERROR"

    def __init__(
        self,
        name: str,
        category: ExceptionCategory,
        priority: int = 100,
        config: Optional[StrategyConfig] = None,
    ):
        if not name:
            raise ValueError("name must be a non-empty string")

        self.name = name
        self.category = category
        self.priority = priority
        self.config = config or StrategyConfig()

        self._enabled = self.config.enabled
        self._stats = StrategyStats()
        self._lock = asyncio.Lock()
        self._sensitive_fields = frozenset(
            f.lower() for f in SENSITIVE_FIELDS + (self.config.sensitive_fields or ())
        )

    def __repr__(self):
        return (
            f"{self.__class__.__name__}(name='{self.name}', "
            f"priority={self.priority}, enabled={self._enabled})"
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    def can_handle(self, exception: UnifiedException) -> bool:
        return exception.category == self.category

    @abstractmethod
    def build_response(self, exception: UnifiedException) -> dict[str, Any]:
        """Build the user-facing response for a fault this strategy handles"""

    async def handle(self, exception: UnifiedException) -> ExecutionResult:
        """
        Handle a fault.

        Never raises. A disabled strategy does not touch its statistics; a
        response builder failure is counted and reported as ``strategy_failed``.
        """
        if not self._enabled:
            return ExecutionResult(
                success=False,
                action="strategy_disabled",
                reason=f"Strategy '{self.name}' is disabled",
                strategy=self.name,
            )

        if not self.can_handle(exception):
            return ExecutionResult(
                success=False,
                action="cannot_handle",
                reason="Strategy cannot handle this exception",
                strategy=self.name,
            )

        start = time.perf_counter()
        try:
            response = self.build_response(exception)
        except Exception as e:
            await self.update_stats(False, time.perf_counter() - start)
            logger.warning(f"Strategy '{self.name}' failed to build a response: {e}")
            return ExecutionResult(
                success=False,
                action="strategy_failed",
                reason=f"Strategy '{self.name}' failed: {e}",
                metadata={"error": str(e), "error_type": type(e).__name__},
                strategy=self.name,
            )

        await self.update_stats(True, time.perf_counter() - start)
        return ExecutionResult(
            success=True,
            action="handled",
            response=response,
            strategy=self.name,
        )

    async def update_stats(self, success: bool, processing_time: float) -> None:
        """Record one handled fault (processing_time in seconds)"""
        async with self._lock:
            stats = self._stats
            stats.total_handled += 1
            if success:
                stats.success_count += 1
            else:
                stats.failure_count += 1
            stats.average_processing_time = (
                stats.average_processing_time * (stats.total_handled - 1) + processing_time
            ) / stats.total_handled
            stats.last_processed_at = time.time()

    def get_stats(self) -> StrategyStats:
        """Snapshot of the strategy statistics"""
        return replace(self._stats)

    def reset_stats(self) -> None:
        self._stats = StrategyStats()

    def sanitize(self, details: Any) -> Any:
        return sanitize(details, self._sensitive_fields, self.config.redaction_marker)

    def context_fields(self, exception: UnifiedException) -> dict[str, Any]:
        """Context echo; variants extend it with values read from custom data"""
        context = exception.context
        return {name: getattr(context, name) for name in CONTEXT_FIELDS}

    def user_message(self, exception: UnifiedException) -> str:
        return exception.user_message()

    def base_response(self, exception: UnifiedException) -> dict[str, Any]:
        """Fields shared by every strategy response"""
        response = {
            "error_type": self.error_type,
            "code": exception.code,
            "message": self.user_message(exception),
            "severity": exception.level.value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "context": self.context_fields(exception),
        }

        if exception.details is not None:
            response["details"] = self.sanitize(exception.details)
        if exception.trace_id:
            response["trace_id"] = exception.trace_id
        if exception.retryable:
            response["retryable"] = True
            if exception.retry_after:
                response["retry_after"] = exception.retry_after
        if self.config.include_recovery_advice and exception.recovery_advice():
            response["recovery_advice"] = exception.recovery_advice()

        return response
