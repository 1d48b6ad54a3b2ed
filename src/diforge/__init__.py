from diforge._internal.container import Container
from diforge._internal.hooks import SupportsPostInject
from diforge._internal.introspection import (
    MISSING,
    ParameterInfo,
    ParameterKind,
    SignatureIntrospector,
    TypeIntrospector,
)
from diforge.exceptions import (
    DIForgeCircularDependencyError,
    DIForgeError,
    DIForgeInvalidDecoratorError,
    DIForgeInvalidRegistrationError,
    DIForgeMethodNotFoundError,
    DIForgeResolutionError,
    DIForgeUntypedParameterError,
)

__all__ = [
    "MISSING",
    "Container",
    "DIForgeCircularDependencyError",
    "DIForgeError",
    "DIForgeInvalidDecoratorError",
    "DIForgeInvalidRegistrationError",
    "DIForgeMethodNotFoundError",
    "DIForgeResolutionError",
    "DIForgeUntypedParameterError",
    "ParameterInfo",
    "ParameterKind",
    "SignatureIntrospector",
    "SupportsPostInject",
    "TypeIntrospector",
]
