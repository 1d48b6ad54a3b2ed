from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from typing_extensions import Self

from diforge._internal.type_checks import describe_dependency


class DIForgeError(Exception):
    """Represent a base class for all diforge-specific failures.

    Catch this type when you want to handle any container error path without
    matching each concrete exception class individually. Errors raised by
    user code (constructors, ``post_inject`` hooks, resolved callables) are
    never converted into ``DIForgeError``.
    """


class DIForgeInvalidRegistrationError(DIForgeError):
    """Signal invalid registration arguments.

    Raised by ``Container.add_singleton`` and ``Container.decorate`` when the
    arguments cannot describe a registration, for example ``provides=None``.
    """


class DIForgeInvalidDecoratorError(DIForgeInvalidRegistrationError):
    """Signal a decorator registration that cannot wrap its target.

    Raised synchronously by ``Container.decorate`` when no decorator is given
    or when a decorator is not assignable to the decorated key (not a
    subclass of it, or missing members of a ``Protocol`` target).

    Typical fixes include inheriting the decorator from the target type or
    implementing every protocol member.
    """

    def __init__(self, provides: Any, decorator: Any | None, message: str) -> None:
        self.provides = provides
        self.decorator = decorator
        super().__init__(message)

    @classmethod
    def empty(cls, provides: Any) -> Self:
        return cls(
            provides,
            None,
            f"decorate() requires at least one decorator for {describe_dependency(provides)}.",
        )

    @classmethod
    def not_assignable(cls, provides: Any, decorator: Any) -> Self:
        return cls(
            provides,
            decorator,
            (
                f"Decorator {describe_dependency(decorator)} must implement "
                f"{describe_dependency(provides)}."
            ),
        )


class DIForgeUntypedParameterError(DIForgeError):
    """Signal a positional parameter without a type annotation.

    The container resolves positional parameters by their declared type, so an
    unannotated slot is an authoring mistake in the target class or callable.
    This error is never wrapped into a resolution chain.

    Typical fixes include annotating the parameter or supplying it by name
    through ``named_parameters``.
    """

    def __init__(self, target: Any, parameter_name: str) -> None:
        self.target = target
        self.parameter_name = parameter_name
        super().__init__(
            f"Parameter '{parameter_name}' of {describe_dependency(target)} must be typed "
            "in order to be resolved.",
        )


class DIForgeCircularDependencyError(DIForgeError):
    """Signal a dependency requested again while it is still being constructed.

    Recorded as the root cause of a ``DIForgeResolutionError`` chain when
    cycle detection is enabled (the default). ``resolution_path`` lists the
    keys under construction, outermost first.
    """

    def __init__(self, dependency: Any, resolution_path: Sequence[Any]) -> None:
        self.dependency = dependency
        self.resolution_path = list(resolution_path)
        path = " -> ".join(describe_dependency(key) for key in [*self.resolution_path, dependency])
        super().__init__(f"Circular dependency detected: {path}")


class DIForgeMethodNotFoundError(DIForgeError):
    """Signal ``resolve_method`` on a method the object's type does not define."""

    def __init__(self, target_type: type[Any], method_name: str) -> None:
        self.target_type = target_type
        self.method_name = method_name
        super().__init__(
            f"{describe_dependency(target_type)} has no method named '{method_name}'.",
        )


class DIForgeResolutionError(DIForgeError):
    """Signal that the container could not wire a dependency.

    Each instance is one node of a failure chain: ``dependency`` is the key
    whose construction failed, and the failure is caused either by the next
    node (``inner``) or by a terminal ``root_cause``. Nested failures are
    re-raised with one extra node per enclosing constructor, so the message
    reads::

        Cannot resolve Outer because:
        Cannot resolve Inner because:
        Inner is abstract and has no binding.

    Errors raised by the constructors themselves are not resolution failures
    and are never wrapped.
    """

    def __init__(
        self,
        dependency: Any,
        *,
        inner: DIForgeResolutionError | None = None,
        root_cause: BaseException | None = None,
    ) -> None:
        if inner is not None:
            root_cause = inner.root_cause
        self.dependency = dependency
        self.inner = inner
        self.root_cause = root_cause
        super().__init__(self._render())

    @classmethod
    def wrap(cls, dependency: Any, inner: DIForgeResolutionError) -> Self:
        """Create the node naming ``dependency`` on top of an existing chain."""
        return cls(dependency, inner=inner)

    @classmethod
    def finalize(cls, dependency: Any, root_cause: BaseException | str) -> Self:
        """Create the innermost node of a chain.

        Args:
            dependency: Key whose construction failed.
            root_cause: Terminal low-level error, or a description of it.

        """
        if isinstance(root_cause, str):
            root_cause = DIForgeError(root_cause)
        return cls(dependency, root_cause=root_cause)

    @property
    def chain(self) -> list[Any]:
        """Keys of the chain, outermost first."""
        keys: list[Any] = []
        node: DIForgeResolutionError | None = self
        while node is not None:
            keys.append(node.dependency)
            node = node.inner
        return keys

    def _render(self) -> str:
        if self.inner is not None:
            reason = self.inner._render()
        else:
            reason = str(self.root_cause)
        return f"Cannot resolve {describe_dependency(self.dependency)} because:\n{reason}"


__all__ = [
    "DIForgeCircularDependencyError",
    "DIForgeError",
    "DIForgeInvalidDecoratorError",
    "DIForgeInvalidRegistrationError",
    "DIForgeMethodNotFoundError",
    "DIForgeResolutionError",
    "DIForgeUntypedParameterError",
]
