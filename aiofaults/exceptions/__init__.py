"""
Exception system for aiofaults.

Provides:
- Fault taxonomy (categories, levels, context sources)
- The immutable request context attached to every fault
- Structured fault types callers can raise
- Error types and reason enums for the pipeline's own failures
"""

from .base import (
    FaultsError,
    ExceptionContext,
    ExceptionCategory,
    ExceptionLevel,
    ContextSource,
)
from .reasons import (
    RegistrationReason,
    ContextReason,
    PublishReason,
    DispatchReason,
)
from .errors import (
    StrategyRegistrationError,
    MissingContextError,
    FaultBusPublishError,
    DispatchError,
)
from .application import (
    ApplicationErrorType,
    ApplicationException,
    HttpFault,
)

__all__ = [
    # Base classes
    "FaultsError",
    "ExceptionContext",
    "ExceptionCategory",
    "ExceptionLevel",
    "ContextSource",

    # Reason enums
    "RegistrationReason",
    "ContextReason",
    "PublishReason",
    "DispatchReason",

    # Exception types
    "StrategyRegistrationError",
    "MissingContextError",
    "FaultBusPublishError",
    "DispatchError",

    # Structured faults
    "ApplicationErrorType",
    "ApplicationException",
    "HttpFault",
]
