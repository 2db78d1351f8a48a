"""
Application exception strategy.
"""

from typing import Any, Optional

from ..config import StrategyConfig
from ..exceptions import ExceptionCategory
from ..transformer import UnifiedException
from .base import BaseExceptionStrategy

APPLICATION_MESSAGES = {
    "USER_NOT_FOUND": "The user does not exist or has been deleted",
    "PERMISSION_DENIED": "You do not have permission to perform this operation",
    "RESOURCE_NOT_FOUND": "The requested resource does not exist",
    "VALIDATION_FAILED": "The input data failed validation",
    "CONCURRENCY_CONFLICT": "The data was modified by another user, please refresh and try again",
    "EXTERNAL_SERVICE_ERROR": "An external service is temporarily unavailable, please try again later",
    "BUSINESS_RULE_VIOLATION": "The operation violates a business rule",
    "QUOTA_EXCEEDED": "The usage quota has been reached",
    "ACCOUNT_LOCKED": "The account is locked, please contact the administrator",
    "INVALID_OPERATION": "The requested operation is not valid",
}

DEFAULT_MESSAGE = "An unknown error occurred"


class ApplicationExceptionStrategy(BaseExceptionStrategy):
    """Handles APPLICATION category faults"""

    error_type = "APPLICATION_ERROR"

    def __init__(self, config: Optional[StrategyConfig] = None):
        super().__init__(
            name="application-exception-strategy",
            category=ExceptionCategory.APPLICATION,
            priority=20,
            config=config,
        )

    def user_message(self, exception: UnifiedException) -> str:
        return (
            APPLICATION_MESSAGES.get(exception.code)
            or exception.user_message()
            or DEFAULT_MESSAGE
        )

    def build_response(self, exception: UnifiedException) -> dict[str, Any]:
        return self.base_response(exception)
