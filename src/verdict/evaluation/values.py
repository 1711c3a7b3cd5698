"""Structured output values and dot-path access.

Adapter outputs are normalized into a small value universe before any
assertion looks at them: ``str``, ``int``, ``float``, ``bool``, ``None``,
``dict[str, StructuredValue]`` and ``list[StructuredValue]``.
"""

from __future__ import annotations

import dataclasses
import json
import math
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, TypeAlias

from pydantic import BaseModel


StructuredValue: TypeAlias = (
    str | int | float | bool | None | dict[str, "StructuredValue"] | list["StructuredValue"]
)


def to_structured(value: Any) -> StructuredValue:
    """Normalize an arbitrary adapter output into a StructuredValue."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, Enum):
        return to_structured(value.value)
    if isinstance(value, BaseModel):
        return to_structured(value.model_dump(mode="json"))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_structured(dataclasses.asdict(value))
    if isinstance(value, Mapping):
        return {str(k): to_structured(v) for k, v in value.items()}
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, Sequence) or isinstance(value, (set, frozenset)):
        return [to_structured(v) for v in value]
    return str(value)


def get_by_path(value: StructuredValue, path: str) -> StructuredValue:
    """Walk a dot-separated path into ``value``.

    Mapping segments are looked up by key and list segments by integer
    index. Anything missing along the way yields ``None``.

    >>> get_by_path({"a": {"b": 5}}, "a.b")
    5
    >>> get_by_path({}, "x.y") is None
    True
    """
    if not path:
        return value

    current = value
    for segment in path.split("."):
        if current is None:
            return None
        if isinstance(current, dict):
            current = current.get(segment)
        elif isinstance(current, list):
            try:
                index = int(segment)
            except ValueError:
                return None
            if not -len(current) <= index < len(current):
                return None
            current = current[index]
        else:
            return None
    return current


def stringify(value: Any) -> str:
    """Render a value as text for substring and regex checks."""
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, int):
        return str(value)
    return json.dumps(to_structured(value), separators=(",", ":"), ensure_ascii=False)


def output_text(output: StructuredValue) -> str:
    """Text the implicit validation pass inspects.

    The ``content`` field of a mapping output is used when it is truthy,
    otherwise the whole output.
    """
    if isinstance(output, dict) and output.get("content"):
        return stringify(output["content"])
    return stringify(output)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def strict_equals(left: Any, right: Any) -> bool:
    """Equality without bool/number coercion.

    ``1 == True`` and ``1 == 1.0`` hold in Python; only the second holds
    here. Containers are compared element by element under the same rule.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if is_number(left) and is_number(right):
        return left == right
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(strict_equals(left[k], right[k]) for k in left)
    if isinstance(left, list) and isinstance(right, list):
        return len(left) == len(right) and all(strict_equals(a, b) for a, b in zip(left, right))
    if type(left) is not type(right):
        return False
    return left == right
