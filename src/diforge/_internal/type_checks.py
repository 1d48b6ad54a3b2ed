from __future__ import annotations

import types
from typing import Any, TypeGuard, Union, get_origin

_UNION_ORIGINS: tuple[Any, ...] = (Union, types.UnionType)


def is_runtime_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate is a runtime class safe for class-only operations.

    Args:
        candidate: Value being checked for eligibility or runtime type constraints.

    """
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


def class_origin(dependency: object) -> type[Any] | None:
    """Return the runtime class behind a class or a parametrised generic alias.

    Unions are not classes, even on interpreters where their origin is one.
    """
    if is_runtime_class(dependency):
        return dependency
    origin = get_origin(dependency)
    if any(origin is union for union in _UNION_ORIGINS):
        return None
    if is_runtime_class(origin):
        return origin
    return None


def describe_dependency(dependency: object) -> str:
    """Return a short human-readable name for a dependency key or callable."""
    if is_runtime_class(dependency):
        return dependency.__qualname__
    if get_origin(dependency) is not None:
        return repr(dependency)
    qualname = getattr(dependency, "__qualname__", None)
    if isinstance(qualname, str):
        return qualname
    return repr(dependency)


__all__ = ["class_origin", "describe_dependency", "is_runtime_class"]
