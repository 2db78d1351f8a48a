"""
Base exception classes, fault taxonomy and the request context for aiofaults.
"""

import uuid
from enum import Enum, IntEnum
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping, Optional


class ExceptionCategory(str, Enum):
    """Functional area a fault belongs to"""
    HTTP = "http"
    APPLICATION = "application"
    DOMAIN = "domain"
    INFRASTRUCTURE = "infrastructure"
    EXTERNAL = "external"
    CONFIGURATION = "configuration"
    VALIDATION = "validation"


class ExceptionLevel(str, Enum):
    """Fault severity level"""
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


class ContextSource(str, Enum):
    """Where the faulting request entered the process"""
    WEB = "WEB"
    API = "API"
    CLI = "CLI"
    SYSTEM = "SYSTEM"


class FaultsError(Exception):
    """
    Base exception for all errors raised by aiofaults itself.

    Faults flowing *through* the pipeline are never wrapped in this type; it is
    only used when a pipeline component needs to report its own failure.

    Attributes:
        message: Error message
        component_name: Name of the component instance (strategy name, manager name)
        component_type: Type of component (dispatcher, fault_bus, manager, ...)
        reason: Reason code (IntEnum specific to the error)
        metadata: Additional context information
    """

    def __init__(
        self,
        message: str,
        component_name: Optional[str] = None,
        component_type: Optional[str] = None,
        reason: Optional[IntEnum] = None,
        **metadata
    ):
        super().__init__(message)
        self.component_name = component_name
        self.component_type = component_type
        self.reason = reason
        self.metadata = metadata

    def __repr__(self):
        parts = [f"{self.__class__.__name__}('{str(self)}')"]
        if self.component_name:
            parts.append(f"component_name='{self.component_name}'")
        if self.reason is not None:
            parts.append(f"reason={self.reason.name if hasattr(self.reason, 'name') else self.reason}")
        return f"<{', '.join(parts)}>"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ExceptionContext:
    """
    Ambient request context attached to a fault.

    Immutable once built. ``custom_data`` is exposed as a read-only mapping.

    Attributes:
        id: Context identity, generated once
        tenant_id: Tenant identifier
        user_id: User identifier
        organization_id: Organization identifier
        department_id: Department identifier
        request_id: Request identifier
        correlation_id: Correlation identifier
        user_agent: Client user agent
        ip_address: Client IP address
        source: Entry point of the request (web/api/cli/system)
        occurred_at: Creation timestamp (UTC)
        custom_data: Open bag of caller-supplied values
    """
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    tenant_id: Optional[str] = None
    user_id: Optional[str] = None
    organization_id: Optional[str] = None
    department_id: Optional[str] = None
    request_id: Optional[str] = None
    correlation_id: Optional[str] = None
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    source: ContextSource = ContextSource.SYSTEM
    occurred_at: datetime = field(default_factory=_utcnow)
    custom_data: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.source, ContextSource):
            object.__setattr__(self, "source", ContextSource(str(self.source).upper()))
        object.__setattr__(self, "custom_data", MappingProxyType(dict(self.custom_data or {})))

    def __hash__(self):
        # custom_data is a mappingproxy, so hash on identity only
        return hash(self.id)

    def with_custom_data(self, **extra: Any) -> "ExceptionContext":
        """Return a copy whose custom data is extended with ``extra``"""
        merged = dict(self.custom_data)
        merged.update(extra)
        return replace(self, custom_data=merged)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to dictionary for logging/debugging"""
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "user_id": self.user_id,
            "organization_id": self.organization_id,
            "department_id": self.department_id,
            "request_id": self.request_id,
            "correlation_id": self.correlation_id,
            "user_agent": self.user_agent,
            "ip_address": self.ip_address,
            "source": self.source.value,
            "occurred_at": self.occurred_at.isoformat(),
            "custom_data": dict(self.custom_data),
        }
