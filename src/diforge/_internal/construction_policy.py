from __future__ import annotations

import datetime
import decimal
import inspect
import pathlib
import uuid
from dataclasses import dataclass
from typing import Any

from typing_extensions import is_protocol

from diforge._internal.type_checks import class_origin, describe_dependency


@dataclass(frozen=True, slots=True)
class ConstructionPolicy:
    """Internal policy deciding which keys the container may construct by itself.

    Keys rejected here can still be supplied through singletons or per-call
    ``injecting`` overrides; the policy only applies when the container would
    have to call a constructor.
    """

    ignored_base_types: tuple[type[Any], ...] = (
        pathlib.PurePath,
        datetime.datetime,
        datetime.date,
        datetime.time,
        datetime.timedelta,
        uuid.UUID,
        decimal.Decimal,
    )

    def rejection_reason(self, candidate: object) -> str | None:
        """Return why ``candidate`` cannot be constructed, or ``None`` when it can.

        Args:
            candidate: Class or parametrised generic alias about to be constructed.

        """
        name = describe_dependency(candidate)
        origin = class_origin(candidate)
        if origin is None:
            return f"{name} is not a class."
        if is_protocol(origin):
            return f"{name} is a protocol and has no binding."
        if inspect.isabstract(origin):
            return f"{name} is abstract and has no binding."
        if issubclass(origin, type):
            return f"{name} is a metaclass."
        if origin.__module__ == "builtins":
            return f"{name} is a builtin type; register a singleton or inject a value."
        if issubclass(origin, self.ignored_base_types):
            return f"{name} is a value type; register a singleton or inject a value."
        return None


__all__ = ["ConstructionPolicy"]
