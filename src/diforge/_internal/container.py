from __future__ import annotations

import functools
import logging
import warnings
from collections.abc import Callable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from types import MappingProxyType
from typing import Any, Literal, NoReturn, TypeVar, cast, overload

from diforge._internal.construction_policy import ConstructionPolicy
from diforge._internal.hooks import SupportsPostInject
from diforge._internal.integrations.pydantic_settings import is_pydantic_settings_subclass
from diforge._internal.introspection import (
    ParameterInfo,
    ParameterKind,
    SignatureIntrospector,
    TypeIntrospector,
)
from diforge._internal.registry import DecorationRule, Registrations
from diforge._internal.resolution_stack import constructing, ensure_not_constructing
from diforge._internal.type_checks import describe_dependency
from diforge.exceptions import (
    DIForgeCircularDependencyError,
    DIForgeInvalidDecoratorError,
    DIForgeInvalidRegistrationError,
    DIForgeMethodNotFoundError,
    DIForgeResolutionError,
    DIForgeUntypedParameterError,
)

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


class Container:
    """Construct fully wired objects from their declared dependencies.

    Dependency keys are usually classes, protocols, ABCs, or parametrised
    generic aliases. Nothing has to be registered up front: ``make`` builds
    any concrete class by resolving each positional constructor parameter from
    its type annotation, recursively. Registrations only override that
    behaviour:

    - ``add_singleton`` returns a pre-built instance for a key.
    - ``bind`` constructs an implementation when an abstraction is requested.
    - ``decorate`` wraps every value produced for a key in decorator layers.

    Per-call ``injecting`` overrides shadow construction for their keys and
    travel down to nested dependencies. Per-call ``named_parameters`` only
    reach the outermost constructor or callable. A positional parameter with a
    default keeps it when the container cannot produce its type, as with
    ``retries: int = 3``.

    Registration is not synchronised. Register everything at startup, then
    resolve from as many threads as needed: resolution never mutates the
    container.
    """

    def __init__(
        self,
        *,
        introspector: TypeIntrospector | None = None,
        detect_cycles: bool = True,
    ) -> None:
        """Initialize an empty container.

        Args:
            introspector: Reads parameter lists and checks decorator
                assignability. Defaults to ``SignatureIntrospector``.
            detect_cycles: Fail fast with a ``DIForgeCircularDependencyError``
                root cause when a key is requested again while still under
                construction. When disabled, cycles recurse until Python raises
                ``RecursionError``.

        Examples:
            .. code-block:: python

                container = Container()

                unguarded_container = Container(detect_cycles=False)

        """
        self._introspector: TypeIntrospector = (
            introspector if introspector is not None else SignatureIntrospector()
        )
        self._detect_cycles = detect_cycles
        self._construction_policy = ConstructionPolicy()
        self._registrations = Registrations()

    # region Registration Methods
    def bind(self, abstraction: Any, implementation: Any) -> None:
        """Construct ``implementation`` whenever ``abstraction`` is requested.

        Re-binding the same abstraction overrides the previous binding. The
        container does not check that the implementation satisfies the
        abstraction. Bindings are followed one hop: bindings and singletons of
        the implementation key itself are not consulted.

        Args:
            abstraction: Dependency key being requested.
            implementation: Class constructed in its place.

        Examples:
            .. code-block:: python

                container.bind(Logger, FileLogger)
                container.make(Logger)  # FileLogger instance

        """
        self._registrations.add_binding(abstraction, implementation)
        logger.debug(
            "Bound %s to %s",
            describe_dependency(abstraction),
            describe_dependency(implementation),
        )

    def add_singleton(
        self,
        instance: Any,
        *,
        provides: Any | Literal["infer"] = "infer",
    ) -> None:
        """Register a pre-built instance returned for every request of a key.

        Singletons take precedence over bindings and are never re-constructed,
        but decorators registered for the key still wrap them on each request.
        Re-registering the same key overrides the previous instance.

        Args:
            instance: Instance value to return on resolution.
            provides: Dependency key to register. Use ``"infer"`` to register
                under ``type(instance)``.

        Raises:
            DIForgeInvalidRegistrationError: If ``provides`` is ``None``.

        Examples:
            .. code-block:: python

                container.add_singleton(Settings(api_url="https://api.example.com"))
                container.add_singleton(InMemoryRepository(), provides=Repository)

        """
        provides_value = cast("Any", provides)
        if provides_value == "infer":
            resolved_provides: Any = type(instance)
        elif provides_value is not None:
            resolved_provides = provides_value
        else:
            msg = "add_singleton() parameter 'provides' must not be None; use 'infer'."
            raise DIForgeInvalidRegistrationError(msg)

        self._registrations.add_singleton(resolved_provides, instance)
        logger.debug("Registered singleton for %s", describe_dependency(resolved_provides))

    def decorate(
        self,
        *,
        provides: Any,
        decorator: type[Any] | None = None,
        decorators: Iterable[type[Any]] = (),
        named_parameters: Mapping[str, Any] | None = None,
        injecting: Mapping[Any, Any] | None = None,
    ) -> None:
        """Wrap every value produced for ``provides`` in decorator layers.

        Decorators apply in registration order, each one receiving the previous
        result as its ``provides``-typed dependency. The decorator's other
        dependencies resolve like any constructor's. All decorators are
        validated before any is registered.

        Args:
            provides: Dependency key to decorate.
            decorator: Single decorator class.
            decorators: Decorator classes, applied after ``decorator``.
            named_parameters: Named arguments for each decorator constructor.
            injecting: Injection overrides for each decorator construction.

        Raises:
            DIForgeInvalidRegistrationError: If ``provides`` is ``None``.
            DIForgeInvalidDecoratorError: If no decorator is given or a
                decorator is not assignable to ``provides``.

        Examples:
            .. code-block:: python

                class CachedRepository(Repository):
                    def __init__(self, inner: Repository, cache: Cache) -> None:
                        self.inner = inner
                        self.cache = cache


                container.decorate(provides=Repository, decorator=CachedRepository)

        """
        if provides is None:
            msg = "decorate() parameter 'provides' must not be None."
            raise DIForgeInvalidRegistrationError(msg)

        candidates = [*(() if decorator is None else (decorator,)), *decorators]
        if not candidates:
            raise DIForgeInvalidDecoratorError.empty(provides)
        for candidate in candidates:
            if not self._introspector.is_assignable(candidate, provides):
                raise DIForgeInvalidDecoratorError.not_assignable(provides, candidate)

        frozen_named_parameters = MappingProxyType(dict(named_parameters or {}))
        frozen_injecting = MappingProxyType(dict(injecting or {}))
        self._registrations.add_decorations(
            provides,
            [
                DecorationRule(
                    decorator=candidate,
                    named_parameters=frozen_named_parameters,
                    injecting=frozen_injecting,
                )
                for candidate in candidates
            ],
        )
        logger.debug(
            "Registered decorators for %s: %s",
            describe_dependency(provides),
            ", ".join(describe_dependency(candidate) for candidate in candidates),
        )

    # endregion Registration Methods

    # region Resolution Methods
    @overload
    def make(
        self,
        dependency: type[T],
        *,
        named_parameters: Mapping[str, Any] | None = None,
        injecting: Mapping[Any, Any] | None = None,
    ) -> T: ...

    @overload
    def make(
        self,
        dependency: Any,
        *,
        named_parameters: Mapping[str, Any] | None = None,
        injecting: Mapping[Any, Any] | None = None,
    ) -> Any: ...

    def make(
        self,
        dependency: Any,
        *,
        named_parameters: Mapping[str, Any] | None = None,
        injecting: Mapping[Any, Any] | None = None,
    ) -> Any:
        """Create a value for ``dependency``, injecting its dependencies recursively.

        A registered singleton is returned as is; otherwise the bound
        implementation (or ``dependency`` itself) is constructed. Decorators
        registered for ``dependency`` wrap the result.

        Args:
            dependency: Dependency key to produce.
            named_parameters: Values for the constructor parameters of that
                name. Not propagated to nested dependencies.
            injecting: Values used verbatim for positional parameters of the
                matching type, here and in every nested dependency.

        Raises:
            DIForgeResolutionError: If the container cannot wire the key or
                one of its nested dependencies.
            DIForgeUntypedParameterError: If a positional parameter has no
                annotation.

        Examples:
            .. code-block:: python

                client = container.make(
                    HttpClient,
                    named_parameters={"timeout": 5},
                    injecting={Transport: FakeTransport()},
                )

        """
        if self._registrations.has_singleton(dependency):
            instance = self._registrations.get_singleton(dependency)
        else:
            instance = self._construct(
                self._registrations.find_binding(dependency),
                named_parameters=named_parameters or {},
                injecting=injecting if injecting is not None else {},
            )
        return self._apply_decorators(instance, dependency)

    def resolve(
        self,
        callable_obj: Callable[..., R],
        *,
        named_parameters: Mapping[str, Any] | None = None,
        injecting: Mapping[Any, Any] | None = None,
    ) -> R:
        """Invoke a function or method with its parameters injected.

        Parameters are supplied exactly like constructor parameters in
        ``make``. Whatever the callable returns or raises reaches the caller
        unchanged.

        Args:
            callable_obj: Function, bound method, or other callable to invoke.
            named_parameters: Values for the parameters of that name.
            injecting: Values used verbatim for positional parameters of the
                matching type, here and in every nested dependency.

        Raises:
            DIForgeResolutionError: If an argument cannot be resolved, or the
                resolved arguments do not fit the callable's signature.
            DIForgeUntypedParameterError: If a positional parameter has no
                annotation.

        Examples:
            .. code-block:: python

                def current_user(session: Session) -> User:
                    return session.user


                user = container.resolve(current_user)

        """
        args, kwargs = self._collect_arguments(
            callable_obj,
            self._parameters_of(callable_obj, named_parameters or {}),
            named_parameters=named_parameters or {},
            injecting=injecting if injecting is not None else {},
        )
        self._check_call(callable_obj, args, kwargs)
        return callable_obj(*args, **kwargs)

    def resolve_method(
        self,
        obj: object,
        method_name: str,
        *,
        named_parameters: Mapping[str, Any] | None = None,
        injecting: Mapping[Any, Any] | None = None,
    ) -> Any:
        """Invoke a method looked up by name on ``obj``'s runtime type.

        Prefer ``resolve(obj.method)`` when the type is known statically; this
        variant suits objects whose concrete type is only known at runtime.

        Args:
            obj: Object owning the method.
            method_name: Name of the method to invoke.
            named_parameters: Values for the parameters of that name.
            injecting: Values used verbatim for positional parameters of the
                matching type.

        Raises:
            DIForgeMethodNotFoundError: If the runtime type has no such method.

        """
        if not self.has_method(obj, method_name):
            raise DIForgeMethodNotFoundError(type(obj), method_name)
        return self.resolve(
            getattr(obj, method_name),
            named_parameters=named_parameters,
            injecting=injecting,
        )

    def has_method(self, obj: object, method_name: str) -> bool:
        """Return whether ``obj``'s runtime type defines a method ``method_name``."""
        return callable(getattr(type(obj), method_name, None))

    def curry(
        self,
        callable_obj: Callable[..., R],
        *,
        named_parameters: Mapping[str, Any] | None = None,
        injecting: Mapping[Any, Any] | None = None,
    ) -> Callable[..., R]:
        """Create a callable whose arguments are injected by their runtime type.

        Each positional argument given to the returned callable becomes an
        injection override keyed by ``type(argument)``; ``None`` arguments are
        skipped. Keyword arguments extend ``named_parameters``. The callable
        then delegates to ``resolve``. Two arguments of the same type collide
        and the last one wins.

        Args:
            callable_obj: Callable to resolve on each invocation.
            named_parameters: Named values applied to every invocation.
            injecting: Injection overrides applied to every invocation. The
                mapping is copied; later changes to it are not observed.

        Examples:
            .. code-block:: python

                def greet(greeter: Greeter, name: str) -> str:
                    return greeter.greet(name)


                curried = container.curry(greet)
                curried("world")

        """
        captured_named_parameters = dict(named_parameters or {})
        captured_injecting = dict(injecting or {})

        @functools.wraps(callable_obj)
        def _curried(*args: Any, **kwargs: Any) -> R:
            call_injecting = dict(captured_injecting)
            call_injecting.update(
                {type(argument): argument for argument in args if argument is not None},
            )
            return self.resolve(
                callable_obj,
                named_parameters={**captured_named_parameters, **kwargs},
                injecting=call_injecting,
            )

        return _curried

    def presolve(
        self,
        callable_obj: Callable[..., R],
        *,
        named_parameters: Mapping[str, Any] | None = None,
        injecting: Mapping[Any, Any] | None = None,
    ) -> Callable[..., R]:
        """Deprecated alias of ``curry``."""
        warnings.warn(
            "Container.presolve() is deprecated; use Container.curry() instead.",
            DeprecationWarning,
            stacklevel=2,
        )
        return self.curry(callable_obj, named_parameters=named_parameters, injecting=injecting)

    # endregion Resolution Methods

    def _construct(
        self,
        target: Any,
        *,
        named_parameters: Mapping[str, Any],
        injecting: Mapping[Any, Any],
    ) -> Any:
        settings_model = is_pydantic_settings_subclass(target)
        if not settings_model:
            rejection_reason = self._construction_policy.rejection_reason(target)
            if rejection_reason is not None:
                self._fail(target, rejection_reason)

        with self._cycle_guard(target):
            if settings_model:
                # Settings models load their fields from the environment.
                args: list[Any] = []
                kwargs = dict(named_parameters)
            else:
                parameters = self._parameters_of(target, named_parameters)
                try:
                    args, kwargs = self._collect_arguments(
                        target,
                        parameters,
                        named_parameters=named_parameters,
                        injecting=injecting,
                    )
                except DIForgeResolutionError as error:
                    raise DIForgeResolutionError.wrap(target, error) from error
            self._check_call(target, args, kwargs)

            instance = target(*args, **kwargs)

            if isinstance(instance, SupportsPostInject):
                try:
                    self.resolve(instance.post_inject, injecting=injecting)
                except DIForgeResolutionError as error:
                    raise DIForgeResolutionError.wrap(target, error) from error

        return instance

    def _parameters_of(
        self,
        target: Any,
        named_parameters: Mapping[str, Any],
    ) -> tuple[ParameterInfo, ...]:
        try:
            parameters = self._introspector.parameters(target)
        except (TypeError, ValueError) as error:
            self._fail(target, error)
        for parameter in parameters:
            if (
                parameter.annotation_error is not None
                and parameter.kind is ParameterKind.POSITIONAL
                and not parameter.has_default
                and parameter.name not in named_parameters
            ):
                self._fail(target, parameter.annotation_error)
        return parameters

    def _collect_arguments(
        self,
        target: Any,
        parameters: tuple[ParameterInfo, ...],
        *,
        named_parameters: Mapping[str, Any],
        injecting: Mapping[Any, Any],
    ) -> tuple[list[Any], dict[str, Any]]:
        args: list[Any] = []
        kwargs = dict(named_parameters)
        for parameter in parameters:
            if parameter.kind is ParameterKind.NAMED:
                continue
            if parameter.name in kwargs:
                args.append(kwargs.pop(parameter.name))
                continue
            args.append(self._positional_value(target, parameter, injecting))
        return args, kwargs

    def _positional_value(
        self,
        target: Any,
        parameter: ParameterInfo,
        injecting: Mapping[Any, Any],
    ) -> Any:
        if not parameter.is_typed:
            if parameter.has_default and parameter.annotation_error is not None:
                return parameter.default
            raise DIForgeUntypedParameterError(target, parameter.name)
        if parameter.annotation in injecting:
            return injecting[parameter.annotation]
        if parameter.has_default and not self._can_make(parameter.annotation):
            return parameter.default
        return self.make(parameter.annotation, injecting=injecting)

    def _can_make(self, dependency: Any) -> bool:
        if self._registrations.has_singleton(dependency):
            return True
        target = self._registrations.find_binding(dependency)
        return (
            is_pydantic_settings_subclass(target)
            or self._construction_policy.rejection_reason(target) is None
        )

    def _check_call(self, target: Any, args: list[Any], kwargs: dict[str, Any]) -> None:
        """Bind resolved arguments to the signature before calling into user code.

        Keeps signature mismatches (missing or unexpected arguments) apart from
        ``TypeError`` raised by the target's own body.
        """
        try:
            self._introspector.check_arguments(target, args, kwargs)
        except TypeError as error:
            self._fail(target, error)

    def _apply_decorators(self, instance: Any, dependency: Any) -> Any:
        for rule in self._registrations.decorations_for(dependency):
            instance = self.make(
                rule.decorator,
                named_parameters=rule.named_parameters,
                injecting={**rule.injecting, dependency: instance},
            )
        return instance

    @contextmanager
    def _cycle_guard(self, target: Any) -> Iterator[None]:
        if not self._detect_cycles:
            yield
            return
        try:
            ensure_not_constructing(target)
        except DIForgeCircularDependencyError as error:
            self._fail(target, error)
        with constructing(target):
            yield

    def _fail(self, target: Any, cause: BaseException | str) -> NoReturn:
        error = DIForgeResolutionError.finalize(target, cause)
        logger.debug("Cannot resolve %s: %s", describe_dependency(target), error.root_cause)
        if isinstance(cause, BaseException):
            raise error from cause
        raise error


__all__ = ["Container"]
