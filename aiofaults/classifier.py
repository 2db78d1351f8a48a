"""
Fault Classification Module

Assigns a category, level, code and user-facing guidance to a raw fault of
unknown shape. The fault is inspected structurally through FaultView and run
through a fixed-order battery of recognizers; the first match wins.
"""

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from .exceptions import ExceptionCategory, ExceptionContext, ExceptionLevel
from .logging import get_logger

logger = get_logger(__name__)

_MISSING = object()


class FaultView:
    """
    Read-only, structural view over a raw fault.

    A name is looked up as a mapping key for mappings and as an attribute
    otherwise. Strings and bytes expose no fields.
    """

    __slots__ = ("fault",)

    def __init__(self, fault: Any):
        self.fault = fault

    def get(self, name: str, default: Any = None) -> Any:
        fault = self.fault
        if fault is None or isinstance(fault, (str, bytes)):
            return default
        if isinstance(fault, Mapping):
            return fault.get(name, default)
        value = getattr(fault, name, _MISSING)
        return default if value is _MISSING else value

    def has(self, name: str) -> bool:
        return self.get(name, _MISSING) is not _MISSING

    @property
    def is_exception(self) -> bool:
        return isinstance(self.fault, BaseException)

    @property
    def message(self) -> str:
        """Message the recognizers match keywords against"""
        if isinstance(self.fault, BaseException):
            return str(self.fault)
        if isinstance(self.fault, str):
            return self.fault
        if self.has("message"):
            return str(self.get("message"))
        return "Unknown error"

    def http_status(self) -> Optional[int]:
        """Numeric HTTP status, if the fault carries one"""
        for name in ("status", "status_code"):
            value = self.get(name)
            if isinstance(value, int) and not isinstance(value, bool):
                return value
        return None

    def http_response(self) -> Any:
        for name in ("response", "detail"):
            if self.has(name):
                return self.get(name)
        return _MISSING


@dataclass(frozen=True)
class Classification:
    """
    Result of classifying one fault.

    Attributes:
        category: Functional area of the fault
        level: Severity level
        code: Stable machine-readable code
        user_message: Message safe to show to end users
        recovery_advice: What the user can do about it
        should_notify: Whether operators should be alerted
        should_log: Whether the fault should be logged
        confidence: How sure the recognizer is, in [0, 1]. Informational only.
    """
    category: ExceptionCategory
    level: ExceptionLevel
    code: str
    user_message: str
    recovery_advice: str
    should_notify: bool
    should_log: bool
    confidence: float

    @classmethod
    def unknown(cls) -> "Classification":
        """Low-confidence classification used when a fault cannot be inspected"""
        return cls(
            category=ExceptionCategory.APPLICATION,
            level=ExceptionLevel.ERROR,
            code="UNKNOWN_ERROR",
            user_message="An unknown error occurred",
            recovery_advice="Please contact the system administrator",
            should_notify=True,
            should_log=True,
            confidence=0.1,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "level": self.level.value,
            "code": self.code,
            "user_message": self.user_message,
            "recovery_advice": self.recovery_advice,
            "should_notify": self.should_notify,
            "should_log": self.should_log,
            "confidence": self.confidence,
        }


# Structured application fault kind -> category
ERROR_TYPE_CATEGORIES = {
    "VALIDATION": ExceptionCategory.VALIDATION,
    "AUTHORIZATION": ExceptionCategory.APPLICATION,
    "RESOURCE_NOT_FOUND": ExceptionCategory.APPLICATION,
    "CONCURRENCY": ExceptionCategory.APPLICATION,
    "EXTERNAL_SERVICE": ExceptionCategory.EXTERNAL,
    "BUSINESS_LOGIC": ExceptionCategory.APPLICATION,
    "INFRASTRUCTURE": ExceptionCategory.INFRASTRUCTURE,
    "CONFIGURATION": ExceptionCategory.CONFIGURATION,
}

# Structured application fault severity -> level
SEVERITY_LEVELS = {
    "LOW": ExceptionLevel.INFO,
    "MEDIUM": ExceptionLevel.WARN,
    "HIGH": ExceptionLevel.ERROR,
    "CRITICAL": ExceptionLevel.FATAL,
}

HTTP_STATUS_MESSAGES = {
    400: "The request parameters are invalid",
    401: "Authentication is required",
    403: "Access denied",
    404: "The requested resource does not exist",
    409: "The resource is in conflict with another change",
    422: "The submitted data failed validation",
    429: "Too many requests",
    500: "Internal server error",
    502: "Bad gateway",
    503: "Service unavailable",
    504: "Gateway timeout",
}

VALIDATION_KEYWORDS = ("validation", "invalid", "required")
STORAGE_KEYWORDS = ("database", "query", "constraint", "duplicate", "foreign key")
NETWORK_KEYWORDS = ("network", "timeout", "ECONNREFUSED", "ENOTFOUND")


def _enum_text(value: Any) -> str:
    return str(getattr(value, "value", value)).upper()


def _notify_for(level: ExceptionLevel) -> bool:
    return level in (ExceptionLevel.ERROR, ExceptionLevel.FATAL)


def level_for_http_status(status: int) -> ExceptionLevel:
    if status >= 500:
        return ExceptionLevel.ERROR
    if status >= 400:
        return ExceptionLevel.WARN
    return ExceptionLevel.INFO


def level_from_message(message: str) -> ExceptionLevel:
    lowered = message.lower()
    if "fatal" in lowered or "critical" in lowered:
        return ExceptionLevel.FATAL
    if "error" in lowered or "failed" in lowered:
        return ExceptionLevel.ERROR
    if "warning" in lowered:
        return ExceptionLevel.WARN
    return ExceptionLevel.INFO


def is_application_fault(view: FaultView) -> bool:
    return view.has("error_type") and view.has("severity") and view.has("error_code")


def is_http_fault(view: FaultView) -> bool:
    return view.http_status() is not None and view.http_response() is not _MISSING


def _contains_any(message: str, keywords) -> bool:
    return any(keyword in message for keyword in keywords)


def _classify_application(view: FaultView) -> Classification:
    severity = _enum_text(view.get("severity"))
    level = SEVERITY_LEVELS.get(severity, ExceptionLevel.ERROR)

    friendly = view.get("get_user_friendly_message")
    user_message = friendly() if callable(friendly) else view.message

    return Classification(
        category=ERROR_TYPE_CATEGORIES.get(_enum_text(view.get("error_type")), ExceptionCategory.APPLICATION),
        level=level,
        code=str(view.get("error_code")),
        user_message=user_message or "The operation failed, please try again later",
        recovery_advice="Check the input data or try again later",
        should_notify=severity in ("HIGH", "CRITICAL"),
        should_log=True,
        confidence=1.0,
    )


def _classify_http(view: FaultView) -> Classification:
    status = view.http_status()
    level = level_for_http_status(status)

    if status >= 500:
        advice = "A server error occurred, please try again later or contact the system administrator"
    elif status >= 400:
        advice = "Check the request parameters or contact the system administrator"
    else:
        advice = "Please try again later"

    return Classification(
        category=ExceptionCategory.HTTP,
        level=level,
        code=f"HTTP_{status}",
        user_message=HTTP_STATUS_MESSAGES.get(status, "The request could not be processed"),
        recovery_advice=advice,
        should_notify=_notify_for(level),
        should_log=True,
        confidence=0.9,
    )


def _classify_validation(view: FaultView) -> Classification:
    return Classification(
        category=ExceptionCategory.VALIDATION,
        level=ExceptionLevel.WARN,
        code="VALIDATION_ERROR",
        user_message="The input data failed validation, please check it",
        recovery_advice="Check the format and content of the input data",
        should_notify=False,
        should_log=True,
        confidence=0.8,
    )


def _classify_storage(view: FaultView) -> Classification:
    return Classification(
        category=ExceptionCategory.INFRASTRUCTURE,
        level=ExceptionLevel.ERROR,
        code="DATABASE_ERROR",
        user_message="A database operation failed, please try again later",
        recovery_advice="Check the database connection or contact the system administrator",
        should_notify=True,
        should_log=True,
        confidence=0.8,
    )


def _classify_network(view: FaultView) -> Classification:
    return Classification(
        category=ExceptionCategory.EXTERNAL,
        level=ExceptionLevel.ERROR,
        code="NETWORK_ERROR",
        user_message="A network connection problem occurred, please check the network",
        recovery_advice="Check the network connection or try again later",
        should_notify=True,
        should_log=True,
        confidence=0.7,
    )


def _classify_generic(view: FaultView) -> Classification:
    level = level_from_message(view.message)
    return Classification(
        category=ExceptionCategory.APPLICATION,
        level=level,
        code="GENERIC_ERROR",
        user_message="An unexpected error occurred, please try again later",
        recovery_advice="Contact the system administrator or try again later",
        should_notify=_notify_for(level),
        should_log=True,
        confidence=0.5,
    )


Recognizer = tuple[str, Callable[[FaultView], bool], Callable[[FaultView], Classification]]

# Order matters: a message matching several keyword batteries takes the first one.
DEFAULT_RECOGNIZERS: tuple[Recognizer, ...] = (
    ("application", is_application_fault, _classify_application),
    ("http", is_http_fault, _classify_http),
    ("validation", lambda view: _contains_any(view.message, VALIDATION_KEYWORDS), _classify_validation),
    ("storage", lambda view: _contains_any(view.message, STORAGE_KEYWORDS), _classify_storage),
    ("network", lambda view: _contains_any(view.message, NETWORK_KEYWORDS), _classify_network),
    ("generic", lambda view: True, _classify_generic),
)


class ExceptionClassifier:
    """
    Classifies raw faults.

    Never raises: a fault that cannot be inspected (including ``None``)
    yields ``Classification.unknown()``.

    Example:
        >>> classifier = ExceptionClassifier()
        >>> classifier.classify(TimeoutError("Connection timeout")).code
        'NETWORK_ERROR'
    """

    def __init__(self, recognizers: Optional[tuple[Recognizer, ...]] = None):
        self._recognizers = tuple(recognizers or DEFAULT_RECOGNIZERS)

    @property
    def recognizer_names(self) -> list[str]:
        return [name for name, _, _ in self._recognizers]

    def classify(self, fault: Any, context: Optional[ExceptionContext] = None) -> Classification:
        """
        Classify a fault.

        Args:
            fault: Raw fault of any shape
            context: Request context (not used by the built-in recognizers)

        Returns:
            Classification of the fault
        """
        if fault is None:
            return Classification.unknown()

        try:
            view = FaultView(fault)
            for name, matches, build in self._recognizers:
                if matches(view):
                    return build(view)
        except Exception as e:
            logger.debug(f"Classification failed with {type(e).__name__}: {e}")

        return Classification.unknown()
