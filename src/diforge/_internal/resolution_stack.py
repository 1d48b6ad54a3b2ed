from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from diforge.exceptions import DIForgeCircularDependencyError

# Keys currently under construction in this execution context, outermost first.
# A ContextVar keeps concurrent resolutions on different threads isolated.
_resolution_stack: ContextVar[tuple[Any, ...]] = ContextVar("diforge_resolution_stack", default=())


def ensure_not_constructing(dependency: Any) -> None:
    """Raise if ``dependency`` is already being constructed in this context.

    Raises:
        DIForgeCircularDependencyError: If ``dependency`` is on the current
            resolution path.

    """
    stack = current_resolution_path()
    if dependency in stack:
        raise DIForgeCircularDependencyError(dependency, stack)


@contextmanager
def constructing(dependency: Any) -> Iterator[None]:
    """Mark ``dependency`` as under construction for the duration of the block."""
    token = _resolution_stack.set((*current_resolution_path(), dependency))
    try:
        yield
    finally:
        _resolution_stack.reset(token)


def current_resolution_path() -> tuple[Any, ...]:
    """Return the keys under construction in this context, outermost first."""
    return _resolution_stack.get()


__all__ = ["constructing", "current_resolution_path", "ensure_not_constructing"]
