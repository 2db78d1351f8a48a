"""
HTTP exception strategy: RFC 7807 problem details for HTTP-origin faults.
"""

from typing import Any, Optional

from ..config import StrategyConfig
from ..exceptions import ExceptionCategory
from ..transformer import UnifiedException
from .base import BaseExceptionStrategy

PROBLEM_TYPE_BASE = "https://aiofaults.dev/problems"

PROBLEM_TITLES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    422: "Unprocessable Entity",
    429: "Too Many Requests",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
}


def problem_type(status: int) -> str:
    if 400 <= status < 500:
        return f"{PROBLEM_TYPE_BASE}/client-error"
    if status >= 500:
        return f"{PROBLEM_TYPE_BASE}/server-error"
    return f"{PROBLEM_TYPE_BASE}/unknown-error"


class HttpExceptionStrategy(BaseExceptionStrategy):
    """
    Handles HTTP category faults.

    The response carries the RFC 7807 members (type, title, status, detail,
    instance) next to the common strategy fields. A list of details is also
    exposed as ``validation_errors``.
    """

    error_type = "HTTP_ERROR"

    def __init__(self, config: Optional[StrategyConfig] = None):
        super().__init__(
            name="http-exception-strategy",
            category=ExceptionCategory.HTTP,
            priority=10,
            config=config,
        )

    def build_response(self, exception: UnifiedException) -> dict[str, Any]:
        status = exception.status_code or 500
        response = {
            "type": problem_type(status),
            "title": PROBLEM_TITLES.get(status, "Unknown Error"),
            "status": status,
            "detail": self.user_message(exception),
            "instance": exception.context.request_id or "unknown",
        }
        response.update(self.base_response(exception))

        if isinstance(response.get("details"), list):
            response["validation_errors"] = response["details"]

        return response
