"""
Event types and classes for fault pipeline components
"""

from enum import IntEnum
from dataclasses import dataclass, field
from typing import Optional, Any, Dict
import time


class ComponentType(IntEnum):
    """Pipeline component types"""
    MANAGER = 0
    DISPATCHER = 1
    STRATEGY = 2
    FAULT_BUS = 3


class EventType(IntEnum):
    """Event types emitted by pipeline components"""
    # Manager events (1-10)
    EXCEPTION_HANDLED = 1
    EXCEPTION_UNHANDLED = 2
    HANDLE_FAILED = 3
    HANDLER_FAILED = 4

    # Dispatcher events (11-20)
    STRATEGY_SUCCEEDED = 11
    STRATEGY_FAILED = 12
    STRATEGY_REGISTERED = 13
    STRATEGY_UNREGISTERED = 14
    STRATEGY_ENABLED = 15
    STRATEGY_DISABLED = 16

    # Fault bus events (21-30)
    FAULT_PUBLISHED = 21
    PUBLISH_FAILED = 22


@dataclass
class PipelineEvent:
    """Base event for all pipeline components"""
    component_type: ComponentType
    event_type: EventType
    component_name: str
    timestamp: float = field(default_factory=time.time)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert event to dictionary"""
        return {
            "component_type": self.component_type.name.lower(),
            "event_type": self.event_type.name.lower(),
            "component_name": self.component_name,
            "timestamp": self.timestamp,
            "metadata": self.metadata,
        }


@dataclass
class ExceptionEvent(PipelineEvent):
    """Manager event about one processed fault"""
    exception_id: Optional[str] = None
    category: Optional[Any] = None  # ExceptionCategory enum
    level: Optional[Any] = None  # ExceptionLevel enum
    code: Optional[str] = None
    duration: float = 0.0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        base = super().to_dict()
        base.update({
            "exception_id": self.exception_id,
            "category": self.category.value if hasattr(self.category, 'value') else self.category,
            "level": self.level.value if hasattr(self.level, 'value') else self.level,
            "code": self.code,
            "duration": self.duration,
            "error": self.error,
        })
        return base


@dataclass
class StrategyEvent(PipelineEvent):
    """Dispatcher event about one strategy"""
    strategy_name: Optional[str] = None
    priority: Optional[int] = None
    exception_id: Optional[str] = None
    action: Optional[str] = None
    reason: Optional[str] = None

    def to_dict(self) -> dict:
        base = super().to_dict()
        base.update({
            "strategy_name": self.strategy_name,
            "priority": self.priority,
            "exception_id": self.exception_id,
            "action": self.action,
            "reason": self.reason,
        })
        return base


@dataclass
class PublishEvent(PipelineEvent):
    """Fault bus publish outcome"""
    exception_id: Optional[str] = None
    error_name: Optional[str] = None
    elapsed: float = 0.0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        base = super().to_dict()
        base.update({
            "exception_id": self.exception_id,
            "error_name": self.error_name,
            "elapsed": self.elapsed,
            "error": self.error,
        })
        return base
