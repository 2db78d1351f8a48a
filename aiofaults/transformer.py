"""
Fault Transformation Module

Turns a raw fault plus its request context into the canonical, immutable
UnifiedException every downstream component works with.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from .classifier import (
    Classification,
    ExceptionClassifier,
    FaultView,
    is_application_fault,
    is_http_fault,
    _enum_text,
)
from .exceptions import ExceptionCategory, ExceptionContext, ExceptionLevel
from .logging import get_logger

logger = get_logger(__name__)

C = ExceptionCategory
L = ExceptionLevel

ERROR_TITLES = {
    C.HTTP: {
        L.INFO: "Information",
        L.WARN: "Client Error",
        L.ERROR: "Server Error",
        L.FATAL: "Critical Error",
    },
    C.APPLICATION: {
        L.INFO: "Application Information",
        L.WARN: "Application Warning",
        L.ERROR: "Application Error",
        L.FATAL: "Application Critical Error",
    },
    C.VALIDATION: {
        L.INFO: "Validation Information",
        L.WARN: "Validation Warning",
        L.ERROR: "Validation Error",
        L.FATAL: "Validation Critical Error",
    },
    C.INFRASTRUCTURE: {
        L.INFO: "Infrastructure Information",
        L.WARN: "Infrastructure Warning",
        L.ERROR: "Infrastructure Error",
        L.FATAL: "Infrastructure Critical Error",
    },
    C.EXTERNAL: {
        L.INFO: "External Service Information",
        L.WARN: "External Service Warning",
        L.ERROR: "External Service Error",
        L.FATAL: "External Service Critical Error",
    },
}

ERROR_STATUSES = {
    C.HTTP: {L.INFO: 200, L.WARN: 400, L.ERROR: 500, L.FATAL: 503},
    C.APPLICATION: {L.INFO: 200, L.WARN: 400, L.ERROR: 500, L.FATAL: 503},
    C.VALIDATION: {L.INFO: 422, L.WARN: 422, L.ERROR: 422, L.FATAL: 422},
    C.INFRASTRUCTURE: {L.INFO: 503, L.WARN: 503, L.ERROR: 503, L.FATAL: 503},
    C.EXTERNAL: {L.INFO: 503, L.WARN: 503, L.ERROR: 503, L.FATAL: 503},
}

VALIDATION_SHAPE_KEYWORDS = ("validation", "invalid")

UNKNOWN_MESSAGE = "Unknown error occurred"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def extract_message(fault: Any) -> str:
    """
    Best-effort message of a raw fault.

    Order: the exception text, a ``message`` field, the value itself for plain
    strings, a stringified ``error`` field, then a fixed placeholder.
    """
    if isinstance(fault, BaseException):
        return str(fault) or type(fault).__name__
    view = FaultView(fault)
    message = view.get("message")
    if message is not None:
        return str(message)
    if isinstance(fault, str):
        return fault
    error = view.get("error")
    if error is not None:
        return str(error)
    return UNKNOWN_MESSAGE


def extract_original_error(fault: Any) -> Optional[BaseException]:
    """The fault itself if it is an exception, or a nested ``error`` exception"""
    if isinstance(fault, BaseException):
        return fault
    error = FaultView(fault).get("error")
    if isinstance(error, BaseException):
        return error
    return None


@dataclass(frozen=True)
class UnifiedException:
    """
    Canonical, immutable record of one fault.

    Created exactly once per fault by ExceptionTransformer. The behaviours
    (``to_error_response``, ``user_message``, ``recovery_advice``, ...) are pure
    functions of the fields.

    Attributes:
        id: Stable identity of this fault occurrence
        category: Functional area
        level: Severity level
        message: Raw fault message (internal, never shown to users)
        code: Stable machine-readable code
        context: Request context the exception was built from
        occurred_at: Creation timestamp (UTC)
        original_error: The original exception, when there was one
        status_code: HTTP status carried by the fault, if any
        details: Structured details carried by the fault, if any
        trace_id: Trace identifier, if any
        retryable: Whether the failed operation may be retried
        retry_after: Seconds to wait before retrying
        classification: Classification computed for the fault
    """
    id: str
    category: ExceptionCategory
    level: ExceptionLevel
    message: str
    code: str
    context: ExceptionContext
    occurred_at: datetime
    classification: Classification = field(repr=False, compare=False)
    original_error: Optional[BaseException] = field(default=None, repr=False, compare=False)
    status_code: Optional[int] = None
    details: Any = field(default=None, repr=False, compare=False)
    trace_id: Optional[str] = None
    retryable: bool = False
    retry_after: Optional[float] = None
    response_extras: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)

    def __hash__(self):
        return hash(self.id)

    @classmethod
    def degraded(cls, fault: Any, context: Optional[ExceptionContext] = None) -> "UnifiedException":
        """Fallback record used when a fault could not be transformed"""
        try:
            message = extract_message(fault)
        except Exception:
            message = UNKNOWN_MESSAGE
        try:
            original_error = extract_original_error(fault)
        except Exception:
            original_error = None

        context = (context or ExceptionContext()).with_custom_data(transform_error=True)
        return cls(
            id=str(uuid.uuid4()),
            category=ExceptionCategory.APPLICATION,
            level=ExceptionLevel.ERROR,
            message=message,
            code="TRANSFORM_ERROR",
            context=context,
            occurred_at=_utcnow(),
            classification=Classification(
                category=ExceptionCategory.APPLICATION,
                level=ExceptionLevel.ERROR,
                code="TRANSFORM_ERROR",
                user_message="An unexpected error occurred, please try again later",
                recovery_advice="Contact the system administrator or try again later",
                should_notify=True,
                should_log=True,
                confidence=0.0,
            ),
            original_error=original_error,
            response_extras={
                "title": "Internal Server Error",
                "status": 500,
                "detail": "An internal server error occurred",
            },
        )

    @property
    def confidence(self) -> float:
        return self.classification.confidence

    def user_message(self) -> str:
        return self.classification.user_message

    def recovery_advice(self) -> str:
        return self.classification.recovery_advice

    def should_notify(self) -> bool:
        return self.classification.should_notify

    def should_log(self) -> bool:
        return self.classification.should_log

    def to_error_response(self, request_id: Optional[str] = None) -> dict[str, Any]:
        """
        Build an RFC 7807 style error body.

        Args:
            request_id: Value for ``instance``; defaults to the context's request id
        """
        response = {
            "type": "about:blank",
            "title": ERROR_TITLES.get(self.category, {}).get(self.level, "Error"),
            "status": ERROR_STATUSES.get(self.category, {}).get(self.level, 500),
            "detail": self.user_message(),
            "instance": request_id if request_id is not None else self.context.request_id,
            "timestamp": self.occurred_at.isoformat(),
            "code": self.code,
        }
        response.update(self.response_extras)
        return response

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/debugging"""
        return {
            "id": self.id,
            "category": self.category.value,
            "level": self.level.value,
            "message": self.message,
            "code": self.code,
            "context": self.context.to_dict(),
            "occurred_at": self.occurred_at.isoformat(),
            "original_error": repr(self.original_error) if self.original_error else None,
            "status_code": self.status_code,
            "trace_id": self.trace_id,
            "retryable": self.retryable,
            "retry_after": self.retry_after,
            "confidence": self.confidence,
        }


class ExceptionTransformer:
    """
    Builds UnifiedException records.

    Never raises: an internal failure produces ``UnifiedException.degraded``.

    Example:
        >>> transformer = ExceptionTransformer()
        >>> exc = transformer.transform(ValueError("invalid email"), ExceptionContext())
        >>> exc.category, exc.code
        (<ExceptionCategory.VALIDATION: 'validation'>, 'VALIDATION_ERROR')
    """

    def __init__(self, classifier: Optional[ExceptionClassifier] = None):
        self.classifier = classifier or ExceptionClassifier()

    def transform(self, fault: Any, context: Optional[ExceptionContext] = None) -> UnifiedException:
        """
        Transform a raw fault.

        Args:
            fault: Raw fault of any shape
            context: Request context; a fresh default context is used when absent

        Returns:
            UnifiedException for the fault
        """
        if context is None:
            context = ExceptionContext()

        try:
            classification = self.classifier.classify(fault, context)
            return self._build(fault, context, classification)
        except Exception as e:
            logger.error(f"Transforming fault failed with {type(e).__name__}: {e}, using degraded record")
            return UnifiedException.degraded(fault, context)

    def _build(
        self,
        fault: Any,
        context: ExceptionContext,
        classification: Classification,
    ) -> UnifiedException:
        view = FaultView(fault)
        message = extract_message(fault)

        details = view.get("details")
        if details is None and isinstance(view.get("errors"), (list, tuple)):
            details = list(view.get("errors"))

        retry_after = view.get("retry_after")
        if isinstance(retry_after, bool) or not isinstance(retry_after, (int, float)):
            retry_after = None

        return UnifiedException(
            id=str(uuid.uuid4()),
            category=classification.category,
            level=classification.level,
            message=message,
            code=classification.code,
            context=context,
            occurred_at=_utcnow(),
            classification=classification,
            original_error=extract_original_error(fault),
            status_code=view.http_status(),
            details=details,
            trace_id=view.get("trace_id") or context.custom_data.get("trace_id"),
            retryable=bool(view.get("retryable", False)),
            retry_after=retry_after,
            response_extras=self._response_extras(view, message),
        )

    def _response_extras(self, view: FaultView, message: str) -> dict[str, Any]:
        if is_application_fault(view):
            return {
                "error_code": str(view.get("error_code")),
                "error_type": _enum_text(view.get("error_type")),
                "severity": _enum_text(view.get("severity")),
                "context": dict(view.get("context") or {}),
                "recovery_strategy": view.get("recovery_strategy"),
            }

        if is_http_fault(view):
            return {
                "status": view.http_status(),
                "response": view.http_response(),
            }

        if any(keyword in message for keyword in VALIDATION_SHAPE_KEYWORDS):
            errors = view.get("errors")
            return {"validation_errors": list(errors) if isinstance(errors, (list, tuple)) else []}

        return {}
