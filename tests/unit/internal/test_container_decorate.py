from typing import Protocol

import pytest

from diforge import (
    Container,
    DIForgeInvalidDecoratorError,
    DIForgeInvalidRegistrationError,
    DIForgeResolutionError,
)


class _Greeter:
    def greet(self) -> str:
        return "hello"


class _Exclaiming(_Greeter):
    def __init__(self, inner: _Greeter) -> None:
        self.inner = inner

    def greet(self) -> str:
        return f"{self.inner.greet()}!"


class _Shouting(_Greeter):
    def __init__(self, inner: _Greeter) -> None:
        self.inner = inner

    def greet(self) -> str:
        return self.inner.greet().upper()


class _Prefix:
    pass


class _Prefixing(_Greeter):
    def __init__(self, inner: _Greeter, prefix: _Prefix, *, text: str = "> ") -> None:
        self.inner = inner
        self.prefix = prefix
        self.text = text

    def greet(self) -> str:
        return f"{self.text}{self.inner.greet()}"


class _Unrelated:
    def __init__(self, inner: _Greeter) -> None:
        self.inner = inner


class _Counter:
    def increment(self) -> int:
        return 1


class _GreeterProtocol(Protocol):
    def greet(self) -> str: ...


class _ProtocolGreeter:
    def greet(self) -> str:
        return "protocol"


class _ProtocolDecorator:
    def __init__(self, inner: _GreeterProtocol) -> None:
        self.inner = inner

    def greet(self) -> str:
        return f"[{self.inner.greet()}]"


class _BrokenDecorator(_Greeter):
    def __init__(self, inner: _Greeter, missing: "_Missing") -> None:
        self.inner = inner


class _Missing(Protocol):
    pass


def test_decorate_wraps_made_instance(container: Container) -> None:
    container.decorate(provides=_Greeter, decorator=_Exclaiming)

    greeter = container.make(_Greeter)

    assert isinstance(greeter, _Exclaiming)
    assert type(greeter.inner) is _Greeter
    assert greeter.greet() == "hello!"


def test_decorators_compose_in_registration_order(container: Container) -> None:
    container.decorate(provides=_Greeter, decorator=_Exclaiming)
    container.decorate(provides=_Greeter, decorator=_Shouting)

    greeter = container.make(_Greeter)

    assert isinstance(greeter, _Shouting)
    assert isinstance(greeter.inner, _Exclaiming)
    assert greeter.greet() == "HELLO!"


def test_decorators_list_keeps_its_order(container: Container) -> None:
    container.decorate(provides=_Greeter, decorators=[_Shouting, _Exclaiming])

    assert container.make(_Greeter).greet() == "HELLO!"


def test_single_decorator_is_applied_before_list(container: Container) -> None:
    container.decorate(provides=_Greeter, decorator=_Shouting, decorators=[_Exclaiming])

    assert container.make(_Greeter).greet() == "HELLO!"


def test_decorators_wrap_singletons(container: Container) -> None:
    greeter = _Greeter()
    container.add_singleton(greeter)
    container.decorate(provides=_Greeter, decorator=_Exclaiming)

    first = container.make(_Greeter)
    second = container.make(_Greeter)

    assert first.inner is greeter
    assert second.inner is greeter
    assert first is not second


def test_decorators_apply_to_requested_key_not_bound_implementation(
    container: Container,
) -> None:
    class _Formal(_Greeter):
        def greet(self) -> str:
            return "good day"

    container.bind(_Greeter, _Formal)
    container.decorate(provides=_Greeter, decorator=_Exclaiming)

    assert container.make(_Greeter).greet() == "good day!"
    assert type(container.make(_Formal)) is _Formal


def test_decorators_apply_to_nested_dependencies(container: Container) -> None:
    class _Consumer:
        def __init__(self, greeter: _Greeter) -> None:
            self.greeter = greeter

    container.decorate(provides=_Greeter, decorator=_Exclaiming)

    assert container.make(_Consumer).greeter.greet() == "hello!"


def test_decorator_dependencies_are_resolved(container: Container) -> None:
    container.decorate(provides=_Greeter, decorator=_Prefixing)

    greeter = container.make(_Greeter)

    assert isinstance(greeter.prefix, _Prefix)
    assert greeter.greet() == "> hello"


def test_decorator_receives_registration_overrides(container: Container) -> None:
    prefix = _Prefix()
    container.decorate(
        provides=_Greeter,
        decorator=_Prefixing,
        named_parameters={"text": "# "},
        injecting={_Prefix: prefix},
    )

    greeter = container.make(_Greeter)

    assert greeter.prefix is prefix
    assert greeter.greet() == "# hello"


def test_registration_overrides_are_copied(container: Container) -> None:
    named_parameters = {"text": "# "}
    container.decorate(provides=_Greeter, decorator=_Prefixing, named_parameters=named_parameters)
    named_parameters["text"] = "changed"

    assert container.make(_Greeter).greet() == "# hello"


def test_decorators_of_decorators_are_applied(container: Container) -> None:
    class _Loud(_Exclaiming):
        def __init__(self, inner: _Exclaiming) -> None:
            self.inner = inner

        def greet(self) -> str:
            return self.inner.greet() + "!!"

    container.decorate(provides=_Greeter, decorator=_Exclaiming)
    container.decorate(provides=_Exclaiming, decorator=_Loud)

    assert container.make(_Greeter).greet() == "hello!!!"


def test_protocol_target_accepts_structural_decorator(container: Container) -> None:
    container.bind(_GreeterProtocol, _ProtocolGreeter)
    container.decorate(provides=_GreeterProtocol, decorator=_ProtocolDecorator)

    assert container.make(_GreeterProtocol).greet() == "[protocol]"


def test_decorate_rejects_missing_decorator(container: Container) -> None:
    with pytest.raises(DIForgeInvalidDecoratorError) as exc_info:
        container.decorate(provides=_Greeter)

    assert exc_info.value.provides is _Greeter
    assert "at least one decorator" in str(exc_info.value)


def test_decorate_rejects_empty_decorator_list(container: Container) -> None:
    with pytest.raises(DIForgeInvalidDecoratorError):
        container.decorate(provides=_Greeter, decorators=[])


def test_decorate_rejects_non_assignable_decorator(container: Container) -> None:
    with pytest.raises(DIForgeInvalidDecoratorError) as exc_info:
        container.decorate(provides=_Greeter, decorator=_Unrelated)

    assert exc_info.value.decorator is _Unrelated
    assert "must implement _Greeter" in str(exc_info.value)


def test_decorate_rejects_decorator_missing_protocol_members(container: Container) -> None:
    with pytest.raises(DIForgeInvalidDecoratorError):
        container.decorate(provides=_GreeterProtocol, decorator=_Counter)


def test_decorate_rejects_non_class_decorator(container: Container) -> None:
    def _decorator(inner: _Greeter) -> _Greeter:
        return inner

    with pytest.raises(DIForgeInvalidDecoratorError):
        container.decorate(provides=_Greeter, decorator=_decorator)  # type: ignore[arg-type]


def test_failed_decorate_registers_nothing(container: Container) -> None:
    with pytest.raises(DIForgeInvalidDecoratorError):
        container.decorate(provides=_Greeter, decorators=[_Exclaiming, _Unrelated])

    assert type(container.make(_Greeter)) is _Greeter


def test_decorate_rejects_none_provides(container: Container) -> None:
    with pytest.raises(DIForgeInvalidRegistrationError):
        container.decorate(provides=None, decorator=_Exclaiming)


def test_decorator_resolution_failure_names_decorator(container: Container) -> None:
    container.decorate(provides=_Greeter, decorator=_BrokenDecorator)

    with pytest.raises(DIForgeResolutionError) as exc_info:
        container.make(_Greeter)

    assert exc_info.value.chain == [_BrokenDecorator, _Missing]
