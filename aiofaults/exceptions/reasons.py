"""
Reason codes for errors raised by pipeline components.

Each error type has its own IntEnum defining why it was raised.
"""

from enum import IntEnum


class RegistrationReason(IntEnum):
    """Reasons why strategy registration fails"""
    DUPLICATE_NAME = 0         # A strategy with this name is already registered (most common)
    INVALID_STRATEGY = 1       # Object does not implement the strategy contract


class ContextReason(IntEnum):
    """Reasons why a request context is rejected"""
    MISSING = 0                # No context supplied (most common)
    INVALID = 1                # Value is not an ExceptionContext


class PublishReason(IntEnum):
    """Reasons why publishing to the fault bus fails"""
    BUS_ERROR = 0              # Bus raised while publishing (most common)
    TIMEOUT = 1                # Publish exceeded publish_timeout
    CONVERSION_FAILED = 2      # Canonical error/context could not be built


class DispatchReason(IntEnum):
    """Reasons why a dispatch run fails as a whole"""
    REGISTRY_ERROR = 0         # Candidate selection failed (most common)
    STRATEGY_ERROR = 1         # A strategy raised outside its own guard
