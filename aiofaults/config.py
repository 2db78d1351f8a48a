"""
Configuration Classes for the Fault Pipeline

Provides clean, reusable configuration objects for the manager and strategies.
"""

from dataclasses import dataclass, fields
from typing import Optional, Tuple, Mapping, Any


@dataclass
class ManagerConfig:
    """
    Configuration for UnifiedExceptionManager.

    Args:
        enable_fault_bus: Forward a canonical copy of each fault to the fault bus
        publish_timeout: Seconds to wait for the fault bus before giving up
        enable_metrics: Maintain aggregate statistics on every handle() call
        track_tenants: Count faults per tenant and per user in statistics
        register_default_strategies: Register the four built-in strategies

    Example:
        >>> config = ManagerConfig(publish_timeout=2.0)
        >>> manager = UnifiedExceptionManager(config=config, fault_bus=bus)
    """
    enable_fault_bus: bool = True
    publish_timeout: float = 5.0
    enable_metrics: bool = True
    track_tenants: bool = True
    register_default_strategies: bool = True

    def __post_init__(self):
        """Validate configuration"""
        if self.publish_timeout <= 0:
            raise ValueError("publish_timeout must be positive")

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]]) -> "ManagerConfig":
        """
        Build a config from a loaded module configuration.

        Unknown keys are ignored so the same mapping can carry settings for
        other subsystems.

        Example:
            >>> ManagerConfig.from_mapping({"publish_timeout": 1.5, "http": {...}})
            ManagerConfig(enable_fault_bus=True, publish_timeout=1.5, ...)
        """
        if mapping is None:
            return cls()
        if not isinstance(mapping, Mapping):
            raise ValueError("configuration must be a mapping")
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in mapping.items() if k in known})


@dataclass
class StrategyConfig:
    """
    Configuration for exception handling strategies.

    Args:
        enabled: Initial enabled state of the strategy
        redaction_marker: Value substituted for sensitive fields
        sensitive_fields: Extra field names added to the built-in denylist
        include_recovery_advice: Add recovery advice to built responses

    Example:
        >>> config = StrategyConfig(sensitive_fields=("ssn", "iban"))
        >>> strategy = StorageExceptionStrategy(config=config)
    """
    enabled: bool = True
    redaction_marker: str = "[REDACTED]"
    sensitive_fields: Optional[Tuple[str, ...]] = None
    include_recovery_advice: bool = True

    def __post_init__(self):
        """Validate configuration"""
        if not self.redaction_marker:
            raise ValueError("redaction_marker must be a non-empty string")
        if self.sensitive_fields is not None:
            self.sensitive_fields = tuple(self.sensitive_fields)
            if not all(isinstance(name, str) and name for name in self.sensitive_fields):
                raise ValueError("sensitive_fields must contain non-empty strings")
