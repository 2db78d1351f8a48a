"""
Specific exception types raised by pipeline components.

All inherit from FaultsError to provide rich context.
"""

from .base import FaultsError


class StrategyRegistrationError(FaultsError):
    """
    Raised when a strategy cannot be registered.

    Strategy names are unique within a registry; registering a second strategy
    under an existing name is rejected and leaves the first one untouched.
    """
    pass


class MissingContextError(FaultsError):
    """
    Raised (and reported through HandleResult) when handle() is called
    without a usable ExceptionContext.

    A missing context is a caller contract violation, not a fault to classify.
    """
    pass


class FaultBusPublishError(FaultsError):
    """Raised by the bus bridge when the external fault bus rejects a publish"""
    pass


class DispatchError(FaultsError):
    """Raised when the dispatcher cannot run a dispatch at all"""
    pass
