"""
aiofaults - Async Fault Processing Pipeline for Python

Turns any raised fault into a classified, immutable UnifiedException, dispatches
it through priority-ordered category strategies that build sanitized responses,
and forwards a canonical copy to an external fault bus.

Core Features (No Dependencies):
- Classification - Category, level, code and user guidance for any fault shape
- Transformation - Immutable UnifiedException with RFC 7807 error responses
- Strategies - HTTP, application, storage and network response builders
- Dispatcher - Priority-ordered strategy execution with statistics
- Fault Bus Bridge - Best-effort publishing with timeout
- Manager - One never-raising handle() call for the whole pipeline
- Event System - Local and global event handlers for observability
- Flexible Logging - Silent by default, supports any logging framework

Usage:
    from aiofaults import UnifiedExceptionManager, ExceptionContext

    manager = UnifiedExceptionManager(fault_bus=bus)
    result = await manager.handle(error, ExceptionContext(tenant_id="acme"))

    # Event system
    from aiofaults import global_bus, EventType

    # Logging configuration
    from aiofaults import configure_logging, set_error_handler
"""

# Configuration classes
from .config import (
    ManagerConfig,
    StrategyConfig,
)

# Exception System
from .exceptions import (
    # Base classes
    FaultsError,
    ExceptionContext,
    ExceptionCategory,
    ExceptionLevel,
    ContextSource,
    # Reason enums
    RegistrationReason,
    ContextReason,
    PublishReason,
    DispatchReason,
    # Exception types
    StrategyRegistrationError,
    MissingContextError,
    FaultBusPublishError,
    DispatchError,
    # Structured faults
    ApplicationErrorType,
    ApplicationException,
    HttpFault,
)

from .context import context_from_headers

from .classifier import (
    Classification,
    ExceptionClassifier,
    FaultView,
)

from .transformer import (
    ExceptionTransformer,
    UnifiedException,
)

from .strategies import (
    BaseExceptionStrategy,
    ExecutionResult,
    StrategyStats,
    HttpExceptionStrategy,
    ApplicationExceptionStrategy,
    StorageExceptionStrategy,
    NetworkExceptionStrategy,
    sanitize,
)

from .registry import StrategyRegistry

from .dispatcher import (
    StrategyDispatcher,
    ExecutionStats,
)

from .bridge import (
    FaultBus,
    FaultBusBridge,
    CanonicalError,
)

from .handlers import (
    FaultHandler,
    CallbackHandler,
)

from .manager import (
    UnifiedExceptionManager,
    HandleResult,
    ExceptionStats,
)

# Event System
from .events import (
    EventEmitter,
    global_bus,
    ComponentType,
    EventType,
    PipelineEvent,
    ExceptionEvent,
    StrategyEvent,
    PublishEvent,
)

# Logging Configuration
from .logging import (
    configure_logging,
    set_error_handler,
    disable_logging,
    is_logging_enabled,
)

__all__ = [
    # Configuration Classes
    "ManagerConfig",
    "StrategyConfig",

    # Exception System
    "FaultsError",
    "ExceptionContext",
    "ExceptionCategory",
    "ExceptionLevel",
    "ContextSource",
    "RegistrationReason",
    "ContextReason",
    "PublishReason",
    "DispatchReason",
    "StrategyRegistrationError",
    "MissingContextError",
    "FaultBusPublishError",
    "DispatchError",
    "ApplicationErrorType",
    "ApplicationException",
    "HttpFault",
    "context_from_headers",

    # Pipeline
    "Classification",
    "ExceptionClassifier",
    "FaultView",
    "ExceptionTransformer",
    "UnifiedException",
    "BaseExceptionStrategy",
    "ExecutionResult",
    "StrategyStats",
    "HttpExceptionStrategy",
    "ApplicationExceptionStrategy",
    "StorageExceptionStrategy",
    "NetworkExceptionStrategy",
    "sanitize",
    "StrategyRegistry",
    "StrategyDispatcher",
    "ExecutionStats",
    "FaultBus",
    "FaultBusBridge",
    "CanonicalError",
    "FaultHandler",
    "CallbackHandler",
    "UnifiedExceptionManager",
    "HandleResult",
    "ExceptionStats",

    # Event System
    "EventEmitter",
    "global_bus",
    "ComponentType",
    "EventType",
    "PipelineEvent",
    "ExceptionEvent",
    "StrategyEvent",
    "PublishEvent",

    # Logging
    "configure_logging",
    "set_error_handler",
    "disable_logging",
    "is_logging_enabled",
]

__version__ = "0.1.0"
__license__ = "MIT"
