from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, TypeAlias

UserDependency: TypeAlias = Any
"""A dependency key registered or requested from the user's code."""


@dataclass(frozen=True, slots=True)
class DecorationRule:
    """Describe one decorator layer registered for a dependency key.

    ``named_parameters`` and ``injecting`` are captured at registration time
    and used for every construction of the decorator.
    """

    decorator: type[Any]
    named_parameters: Mapping[str, Any]
    injecting: Mapping[Any, Any]


class Registrations:
    """Store singletons, bindings and decoration rules indexed by dependency key.

    Keys are unique per map: adding a singleton or binding for an existing key
    replaces the previous entry. Decoration rules accumulate in insertion
    order. Lookups never mutate state.
    """

    def __init__(self) -> None:
        self._singletons: dict[UserDependency, Any] = {}
        self._bindings: dict[UserDependency, UserDependency] = {}
        self._decorations: dict[UserDependency, list[DecorationRule]] = {}

    def add_singleton(self, provides: UserDependency, instance: Any) -> None:
        """Register a pre-built instance for a dependency key.

        Args:
            provides: Dependency key the instance is returned for.
            instance: Pre-built value.

        """
        self._singletons[provides] = instance

    def has_singleton(self, dependency: UserDependency) -> bool:
        return dependency in self._singletons

    def get_singleton(self, dependency: UserDependency) -> Any:
        """Get the singleton registered for a dependency key.

        Args:
            dependency: Dependency key to look up.

        """
        return self._singletons[dependency]

    def add_binding(self, abstraction: UserDependency, implementation: UserDependency) -> None:
        self._bindings[abstraction] = implementation

    def find_binding(self, dependency: UserDependency) -> UserDependency:
        """Get the implementation bound to a key, or the key itself when unbound.

        Args:
            dependency: Dependency key to look up.

        """
        return self._bindings.get(dependency, dependency)

    def add_decorations(self, provides: UserDependency, rules: list[DecorationRule]) -> None:
        """Append decoration rules for a dependency key, keeping their order.

        Args:
            provides: Decorated dependency key.
            rules: Rules to append after the already registered ones.

        """
        self._decorations.setdefault(provides, []).extend(rules)

    def decorations_for(self, dependency: UserDependency) -> tuple[DecorationRule, ...]:
        return tuple(self._decorations.get(dependency, ()))


__all__ = ["DecorationRule", "Registrations", "UserDependency"]
