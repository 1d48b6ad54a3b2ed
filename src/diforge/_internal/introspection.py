from __future__ import annotations

import inspect
import sys
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from inspect import Parameter, Signature
from typing import Any, Final, ForwardRef, Protocol, get_type_hints

from typing_extensions import get_protocol_members, is_protocol

from diforge._internal.type_checks import class_origin, is_runtime_class


class _Missing:
    """Sentinel type for parameters declared without an annotation."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing()
"""Annotation value of a parameter declared without a type."""


class ParameterKind(Enum):
    """Classify how the container supplies a parameter."""

    POSITIONAL = "positional"
    """Resolved by declared type, or overridden through ``injecting``."""

    NAMED = "named"
    """Filled only from ``named_parameters``; otherwise the default applies."""


@dataclass(frozen=True, slots=True)
class ParameterInfo:
    """Information about a constructor/function parameter.

    ``annotation`` is ``MISSING`` when the parameter is untyped or when its
    annotation cannot be evaluated; in the latter case ``annotation_error``
    holds the evaluation failure. ``default`` is ``MISSING`` for parameters
    without a default value.
    """

    name: str
    annotation: Any
    kind: ParameterKind
    default: Any = MISSING
    annotation_error: Exception | None = field(default=None, compare=False)

    @property
    def is_typed(self) -> bool:
        return self.annotation is not MISSING

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING


class TypeIntrospector(Protocol):
    """Read parameter lists and answer assignability questions.

    The container depends only on this contract, so platforms or tests can swap
    the reflection mechanism (for example a precomputed registration table)
    without touching resolution.
    """

    def parameters(self, target: Any) -> tuple[ParameterInfo, ...]:
        """Return the ordered injectable parameters of a class or callable.

        Classes are described by their constructor, excluding ``self``. A class
        without an explicit constructor has no parameters. ``*args`` and
        ``**kwargs`` are never reported.

        Raises:
            ValueError: If the signature cannot be read.
            TypeError: If ``target`` is neither a class nor a callable.

        """
        ...

    def check_arguments(
        self,
        target: Any,
        args: Sequence[Any],
        kwargs: Mapping[str, Any],
    ) -> None:
        """Check that ``target`` accepts the collected arguments.

        Called before the container invokes ``target``, so a missing or
        unexpected argument is reported as a resolution failure rather than
        as an error of the target's own body.

        Raises:
            TypeError: If the arguments do not fit the target's signature.

        """
        ...

    def is_assignable(self, candidate: Any, target: Any) -> bool:
        """Return whether ``candidate`` satisfies the contract of ``target``."""
        ...


_INJECTABLE_KINDS: Final = {
    Parameter.POSITIONAL_ONLY: ParameterKind.POSITIONAL,
    Parameter.POSITIONAL_OR_KEYWORD: ParameterKind.POSITIONAL,
    Parameter.KEYWORD_ONLY: ParameterKind.NAMED,
}

_ANNOTATION_ERRORS: Final = (AttributeError, NameError, SyntaxError, TypeError)


@dataclass(slots=True)
class SignatureIntrospector:
    """Default ``TypeIntrospector`` built on ``inspect`` and ``get_type_hints``."""

    def parameters(self, target: Any) -> tuple[ParameterInfo, ...]:
        """Return the ordered injectable parameters of a class or callable.

        Annotations are evaluated per parameter: one unresolvable annotation
        (for example a name imported only under ``TYPE_CHECKING``) leaves the
        other parameters typed.

        Args:
            target: Class, parametrised generic alias, function, or bound method.

        """
        provider = self._provider(target)
        if provider is None:
            return ()

        members = self._annotated_members(provider)
        hints = self._resolved_type_hints(members)
        parameters: list[ParameterInfo] = []
        for parameter in self._signature(provider).parameters.values():
            kind = _INJECTABLE_KINDS.get(parameter.kind)
            if kind is None:
                continue
            annotation, annotation_error = self._annotation(parameter, hints, members)
            parameters.append(
                ParameterInfo(
                    name=parameter.name,
                    annotation=annotation,
                    kind=kind,
                    default=MISSING if parameter.default is Parameter.empty else parameter.default,
                    annotation_error=annotation_error,
                ),
            )
        return tuple(parameters)

    def check_arguments(
        self,
        target: Any,
        args: Sequence[Any],
        kwargs: Mapping[str, Any],
    ) -> None:
        """Bind ``args`` and ``kwargs`` to the signature of ``target``.

        Targets whose signature cannot be read are not checked.

        Raises:
            TypeError: If the arguments do not fit the signature.

        """
        try:
            signature = self._signature(class_origin(target) or target)
        except (TypeError, ValueError):
            return
        signature.bind(*args, **kwargs)

    def is_assignable(self, candidate: Any, target: Any) -> bool:
        """Return whether ``candidate`` is a class satisfying ``target``.

        Nominal targets require a subclass. ``Protocol`` targets are checked
        structurally: every protocol member must exist on the candidate.

        Args:
            candidate: Class (or parametrised generic alias) being checked.
            target: Dependency key the candidate must satisfy.

        """
        candidate_class = class_origin(candidate)
        target_class = class_origin(target)
        if candidate_class is None or target_class is None:
            return False
        if candidate_class is target_class:
            return True
        if is_protocol(target_class):
            declared = self._declared_names(candidate_class)
            return all(
                hasattr(candidate_class, member) or member in declared
                for member in get_protocol_members(target_class)
            )
        return issubclass(candidate_class, target_class)

    def _provider(self, target: Any) -> Callable[..., Any] | None:
        origin = class_origin(target)
        if origin is None:
            if not callable(target):
                msg = f"Cannot read parameters of {target!r}: not a class or callable."
                raise TypeError(msg)
            return target
        if origin.__init__ is object.__init__ and origin.__new__ is object.__new__:
            return None
        return origin

    def _signature(self, provider: Callable[..., Any]) -> Signature:
        if sys.version_info >= (3, 14):
            import annotationlib

            # Unresolvable names become ForwardRef objects instead of failing.
            return inspect.signature(
                provider,
                annotation_format=annotationlib.Format.FORWARDREF,
            )
        return inspect.signature(provider)

    def _annotated_members(self, provider: Callable[..., Any]) -> tuple[Any, ...]:
        if is_runtime_class(provider):
            return (provider.__init__, provider.__new__)
        return (provider,)

    def _resolved_type_hints(self, members: tuple[Any, ...]) -> dict[str, Any]:
        hints: dict[str, Any] = {}
        for member in members:
            try:
                member_hints = get_type_hints(member)
            except _ANNOTATION_ERRORS:
                continue
            for name, hint in member_hints.items():
                hints.setdefault(name, hint)
        hints.pop("return", None)
        return hints

    def _annotation(
        self,
        parameter: Parameter,
        hints: dict[str, Any],
        members: tuple[Any, ...],
    ) -> tuple[Any, Exception | None]:
        if parameter.name in hints:
            return hints[parameter.name], None

        raw_annotation = parameter.annotation
        if raw_annotation is Parameter.empty:
            return MISSING, None
        if not isinstance(raw_annotation, (str, ForwardRef)):
            return raw_annotation, None

        expression = (
            raw_annotation
            if isinstance(raw_annotation, str)
            else raw_annotation.__forward_arg__
        )
        try:
            return self._evaluate(parameter.name, expression, members), None
        except _ANNOTATION_ERRORS as error:
            return MISSING, error

    def _evaluate(self, name: str, expression: str, members: tuple[Any, ...]) -> Any:
        """Evaluate one annotation in the module that declared the signature."""
        module_name = next(
            (
                module
                for module in (getattr(member, "__module__", None) for member in members)
                if isinstance(module, str) and module != "builtins"
            ),
            None,
        )
        holder = type(
            "_AnnotationHolder",
            (),
            {"__annotations__": {name: expression}, "__module__": module_name},
        )
        return get_type_hints(holder)[name]

    def _declared_names(self, candidate: type[Any]) -> set[str]:
        names: set[str] = set()
        for klass in candidate.__mro__:
            names.update(getattr(klass, "__annotations__", {}))
        return names


__all__ = [
    "MISSING",
    "ParameterInfo",
    "ParameterKind",
    "SignatureIntrospector",
    "TypeIntrospector",
]
