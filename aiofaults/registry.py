"""
Strategy registry.

Holds strategies by unique name in registration order. Mutations are plain
synchronous calls; the dispatcher takes a snapshot at the start of each run.
"""

from typing import Iterator, Optional

from .exceptions import RegistrationReason, StrategyRegistrationError
from .strategies import BaseExceptionStrategy


class StrategyRegistry:
    """
    Named collection of strategies.

    Example:
        >>> registry = StrategyRegistry()
        >>> registry.add(HttpExceptionStrategy())
        >>> registry.names()
        ['http-exception-strategy']
    """

    def __init__(self):
        # dicts keep insertion order, which breaks priority ties
        self._strategies: dict[str, BaseExceptionStrategy] = {}

    def __len__(self) -> int:
        return len(self._strategies)

    def __contains__(self, name: object) -> bool:
        return name in self._strategies

    def __iter__(self) -> Iterator[BaseExceptionStrategy]:
        return iter(list(self._strategies.values()))

    def add(self, strategy: BaseExceptionStrategy) -> None:
        """
        Register a strategy.

        Raises:
            StrategyRegistrationError: Name already taken, or not a strategy
        """
        if not isinstance(strategy, BaseExceptionStrategy):
            raise StrategyRegistrationError(
                f"{strategy!r} is not an exception strategy",
                component_type="registry",
                reason=RegistrationReason.INVALID_STRATEGY,
            )
        if strategy.name in self._strategies:
            raise StrategyRegistrationError(
                f"Strategy '{strategy.name}' is already registered",
                component_name=strategy.name,
                component_type="registry",
                reason=RegistrationReason.DUPLICATE_NAME,
            )
        self._strategies[strategy.name] = strategy

    def remove(self, name: str) -> Optional[BaseExceptionStrategy]:
        return self._strategies.pop(name, None)

    def get(self, name: str) -> Optional[BaseExceptionStrategy]:
        return self._strategies.get(name)

    def names(self) -> list[str]:
        return list(self._strategies)

    def snapshot(self) -> list[BaseExceptionStrategy]:
        """Strategies in registration order, detached from later mutations"""
        return list(self._strategies.values())

    def clear(self) -> None:
        self._strategies.clear()
