"""
Event System for Fault Pipeline Components

Provides event emission and monitoring capabilities for the manager,
dispatcher and fault bus bridge.
"""

from .types import (
    ComponentType,
    EventType,
    PipelineEvent,
    ExceptionEvent,
    StrategyEvent,
    PublishEvent,
)
from .emitter import EventEmitter
from .bus import global_bus

__all__ = [
    # Types
    "ComponentType",
    "EventType",
    "PipelineEvent",
    "ExceptionEvent",
    "StrategyEvent",
    "PublishEvent",
    # Core
    "EventEmitter",
    "global_bus",
]
