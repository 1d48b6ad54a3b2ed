from __future__ import annotations

import importlib
import warnings
from typing import Any

from diforge._internal.type_checks import class_origin

_PYDANTIC_V1_WARNING_PATTERN = (
    r"Core Pydantic V1 functionality isn't compatible with Python 3\.14 or greater\."
)


def _load_base_settings(module_name: str) -> type[Any] | None:
    try:
        module = importlib.import_module(module_name)
    except ImportError:
        return None
    base_settings = getattr(module, "BaseSettings", None)
    if isinstance(base_settings, type):
        return base_settings
    return None


def _load_pydantic_v1_base() -> type[Any] | None:
    with warnings.catch_warnings():
        warnings.filterwarnings(
            "ignore",
            message=_PYDANTIC_V1_WARNING_PATTERN,
            category=UserWarning,
        )
        return _load_base_settings("pydantic.v1")


def _build_settings_bases() -> tuple[type[Any], ...]:
    bases: list[type[Any]] = []
    for candidate in (_load_base_settings("pydantic_settings"), _load_pydantic_v1_base()):
        if candidate is not None and candidate not in bases:
            bases.append(candidate)
    return tuple(bases)


SETTINGS_BASES: tuple[type[Any], ...] = _build_settings_bases()


def is_pydantic_settings_subclass(candidate: object) -> bool:
    """Return whether a dependency key is a supported Pydantic settings model.

    Settings models populate their fields from the environment, so the
    container constructs them with a plain call instead of injecting each
    field. Both ``pydantic_settings.BaseSettings`` and legacy
    ``pydantic.v1.BaseSettings`` are recognised when installed; without
    Pydantic this function returns ``False`` for every candidate.

    Args:
        candidate: Dependency key about to be constructed.

    """
    origin = class_origin(candidate)
    if origin is None:
        return False
    return any(issubclass(origin, base) for base in SETTINGS_BASES)


__all__ = [
    "SETTINGS_BASES",
    "is_pydantic_settings_subclass",
]
