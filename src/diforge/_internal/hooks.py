from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class SupportsPostInject(Protocol):
    """Capability for post-construction wiring.

    When the container constructs an instance exposing ``post_inject``, it
    resolves the method's parameters like a constructor's (positional slots by
    type, honouring the same ``injecting`` overrides) and invokes it before the
    decoration pipeline runs. The return value is discarded. Singletons and
    injected values are never passed through the hook.

    Examples:
        .. code-block:: python

            class Repository:
                def post_inject(self, metrics: Metrics) -> None:
                    self.metrics = metrics

    """

    def post_inject(self, *args: Any, **kwargs: Any) -> Any: ...


__all__ = ["SupportsPostInject"]
