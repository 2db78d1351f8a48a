"""
Structured fault types callers can raise.

The classifier recognizes these by shape, not by class: any object exposing
``error_type``, ``severity`` and ``error_code`` is treated as a structured
application fault, and any object exposing a numeric ``status`` plus a
``response`` body as an HTTP fault. The classes below are convenient carriers
of those shapes.
"""

from enum import Enum
from typing import Any, Optional


class ApplicationErrorType(str, Enum):
    """Kinds of structured application faults"""
    VALIDATION = "VALIDATION"
    AUTHORIZATION = "AUTHORIZATION"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    CONCURRENCY = "CONCURRENCY"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE"
    BUSINESS_LOGIC = "BUSINESS_LOGIC"
    INFRASTRUCTURE = "INFRASTRUCTURE"
    CONFIGURATION = "CONFIGURATION"


SEVERITIES = ("LOW", "MEDIUM", "HIGH", "CRITICAL")


class ApplicationException(Exception):
    """
    Structured application fault with a typed kind, a severity and a stable code.

    Attributes:
        error_type: ApplicationErrorType of the fault
        error_code: Stable machine-readable code (e.g. "USER_NOT_FOUND")
        severity: One of LOW, MEDIUM, HIGH, CRITICAL
        context: Business context attached by the raiser
        recovery_strategy: Optional hint for clients (e.g. "retry", "refresh")
        user_message: Message safe to show to end users
        retryable: Whether the operation may be retried
        retry_after: Seconds to wait before retrying
        details: Additional structured details

    Example:
        raise ApplicationException(
            "User 42 not found",
            error_type=ApplicationErrorType.RESOURCE_NOT_FOUND,
            error_code="USER_NOT_FOUND",
            severity="MEDIUM",
        )
    """

    def __init__(
        self,
        message: str,
        *,
        error_type: ApplicationErrorType = ApplicationErrorType.BUSINESS_LOGIC,
        error_code: str = "APPLICATION_ERROR",
        severity: str = "MEDIUM",
        context: Optional[dict[str, Any]] = None,
        recovery_strategy: Optional[str] = None,
        user_message: Optional[str] = None,
        retryable: bool = False,
        retry_after: Optional[float] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        severity = severity.upper()
        if severity not in SEVERITIES:
            raise ValueError(f"severity must be one of {', '.join(SEVERITIES)}")
        self.error_type = ApplicationErrorType(error_type)
        self.error_code = error_code
        self.severity = severity
        self.context = context or {}
        self.recovery_strategy = recovery_strategy
        self.user_message = user_message
        self.retryable = retryable
        self.retry_after = retry_after
        self.details = details

    def get_user_friendly_message(self) -> str:
        """Message safe to expose to end users"""
        return self.user_message or str(self) or "The operation failed, please try again later"

    def __repr__(self):
        return (
            f"ApplicationException(error_code={self.error_code!r}, "
            f"error_type={self.error_type.value}, severity={self.severity})"
        )


class HttpFault(Exception):
    """
    HTTP-shaped fault: a status code plus the response body that went with it.

    Example:
        raise HttpFault(404, {"detail": "no such order"})
    """

    def __init__(self, status: int, response: Any = None, message: Optional[str] = None):
        super().__init__(message or f"HTTP {status}")
        self.status = int(status)
        self.response = response if response is not None else {}
