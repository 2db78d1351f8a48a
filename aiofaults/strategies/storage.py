"""
Storage exception strategy.

Handles INFRASTRUCTURE faults such as failed queries, constraint violations and
lost database connections. Statements and query text never reach the response.
"""

from typing import Any, Optional

from ..config import StrategyConfig
from ..exceptions import ExceptionCategory
from ..transformer import UnifiedException
from .base import BaseExceptionStrategy

STORAGE_MESSAGES = {
    "DB_CONNECTION_FAILED": "The database connection failed, please try again later",
    "DB_CONNECTION_TIMEOUT": "The database connection timed out, please try again later",
    "DB_QUERY_TIMEOUT": "The query timed out, please try again later",
    "DB_TRANSACTION_FAILED": "The transaction failed, please try again later",
    "DB_CONSTRAINT_VIOLATION": "A data constraint was violated, please check the input data",
    "DB_DUPLICATE_KEY": "The data already exists, please check the input data",
    "DB_FOREIGN_KEY_VIOLATION": "A foreign key constraint was violated, please check the related data",
    "DB_NOT_NULL_VIOLATION": "A required field is empty, please check the input data",
    "DB_UNIQUE_VIOLATION": "A uniqueness constraint was violated, please check the input data",
    "DB_DEADLOCK": "A database deadlock occurred, please try again later",
    "DB_LOCK_TIMEOUT": "A database lock timed out, please try again later",
    "DB_MIGRATION_FAILED": "The database migration failed, please contact the administrator",
    "DB_BACKUP_FAILED": "The database backup failed, please contact the administrator",
    "DB_RESTORE_FAILED": "The database restore failed, please contact the administrator",
}

DEFAULT_MESSAGE = "The database operation failed, please try again later"

STORAGE_CONTEXT_FIELDS = ("database", "table", "operation")


class StorageExceptionStrategy(BaseExceptionStrategy):
    """Handles INFRASTRUCTURE category faults"""

    error_type = "DATABASE_ERROR"

    def __init__(self, config: Optional[StrategyConfig] = None):
        super().__init__(
            name="storage-exception-strategy",
            category=ExceptionCategory.INFRASTRUCTURE,
            priority=30,
            config=config,
        )

    def user_message(self, exception: UnifiedException) -> str:
        return STORAGE_MESSAGES.get(exception.code, DEFAULT_MESSAGE)

    def context_fields(self, exception: UnifiedException) -> dict[str, Any]:
        fields = super().context_fields(exception)
        custom = exception.context.custom_data
        fields.update({name: custom.get(name) for name in STORAGE_CONTEXT_FIELDS})
        return fields

    def build_response(self, exception: UnifiedException) -> dict[str, Any]:
        return self.base_response(exception)
