"""
Category strategies for UnifiedException handling.
"""

from .base import (
    BaseExceptionStrategy,
    ExecutionResult,
    StrategyStats,
    SENSITIVE_FIELDS,
    sanitize,
)
from .http import HttpExceptionStrategy
from .application import ApplicationExceptionStrategy
from .storage import StorageExceptionStrategy
from .network import NetworkExceptionStrategy, redact_url


def default_strategies(config=None) -> list:
    """Fresh instances of the four built-in strategies, in priority order"""
    return [
        HttpExceptionStrategy(config),
        ApplicationExceptionStrategy(config),
        StorageExceptionStrategy(config),
        NetworkExceptionStrategy(config),
    ]


__all__ = [
    "BaseExceptionStrategy",
    "ExecutionResult",
    "StrategyStats",
    "SENSITIVE_FIELDS",
    "sanitize",
    "redact_url",
    "HttpExceptionStrategy",
    "ApplicationExceptionStrategy",
    "StorageExceptionStrategy",
    "NetworkExceptionStrategy",
    "default_strategies",
]
