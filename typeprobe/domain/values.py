"""
Runtime value tagging and numeric coercion.

`tag_value` classifies whatever the driver handed back, independent of any
declared type. `coerce_number` is the explicit step between a possibly-absent
aggregate and arithmetic; `attempt_add` performs arithmetic on an unchecked
value and captures the failure instead of raising.
"""
from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

Number = Union[int, float, Decimal]


class ValueKind(str, enum.Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    REAL = "real"
    DECIMAL = "decimal"
    TEXT = "text"
    BLOB = "blob"
    OTHER = "other"


class CoercionError(ValueError):
    """Raised when a value cannot be forced into a number."""


def type_tag(value: Any) -> str:
    """Runtime type tag shown in reports (the Python type name)."""
    return type(value).__name__


@dataclass(frozen=True)
class TaggedValue:
    kind: ValueKind
    value: Any

    @property
    def type_tag(self) -> str:
        return type_tag(self.value)

    def as_dict(self) -> dict[str, Any]:
        value = self.value
        if isinstance(value, Decimal):
            value = str(value)
        elif isinstance(value, (bytes, bytearray, memoryview)):
            value = bytes(value).hex()
        return {"value": value, "kind": self.kind.value, "type": self.type_tag}


def tag_value(value: Any) -> TaggedValue:
    """Classify a runtime value into a ValueKind."""
    if value is None:
        kind = ValueKind.NULL
    # bool before int: bool is an int subclass
    elif isinstance(value, bool):
        kind = ValueKind.BOOLEAN
    elif isinstance(value, int):
        kind = ValueKind.INTEGER
    elif isinstance(value, float):
        kind = ValueKind.REAL
    elif isinstance(value, Decimal):
        kind = ValueKind.DECIMAL
    elif isinstance(value, str):
        kind = ValueKind.TEXT
    elif isinstance(value, (bytes, bytearray, memoryview)):
        kind = ValueKind.BLOB
    else:
        kind = ValueKind.OTHER
    return TaggedValue(kind=kind, value=value)


def _parse_number(text: str) -> Number:
    stripped = text.strip()
    try:
        return int(stripped)
    except ValueError:
        pass
    try:
        parsed = float(stripped)
    except ValueError as exc:
        raise CoercionError(f"cannot coerce {text!r} to a number") from exc
    if math.isnan(parsed):
        raise CoercionError(f"cannot coerce {text!r} to a number")
    return parsed


def coerce_number(value: Any, policy: str = "zero") -> Optional[Number]:
    """
    Force a possibly-absent value into a definite number.

    Parameters
    ----------
    value : Any
        The raw value, typically an aggregate that may be None.
    policy : str
        "zero" maps None and blank text to 0; "propagate" maps both to None
        so the caller sees that there was no data.

    Raises
    ------
    CoercionError
        If the value is not numeric and cannot be parsed as one.
    ValueError
        If the policy is unknown.
    """
    if policy not in ("zero", "propagate"):
        raise ValueError(f"Unknown null policy '{policy}'. Available: zero, propagate")

    tagged = tag_value(value)
    if tagged.kind is ValueKind.NULL:
        return 0 if policy == "zero" else None
    if tagged.kind is ValueKind.BOOLEAN:
        return int(value)
    if tagged.kind in (ValueKind.INTEGER, ValueKind.REAL, ValueKind.DECIMAL):
        return value
    if tagged.kind is ValueKind.TEXT:
        if not value.strip():
            return 0 if policy == "zero" else None
        return _parse_number(value)
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise CoercionError(f"cannot coerce {type_tag(value)} to a number") from exc


@dataclass(frozen=True)
class Derived:
    """Outcome of arithmetic on an unchecked operand."""

    value: Any = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


def attempt_add(left: Any, right: Any) -> Derived:
    """Evaluate ``left + right`` with Python semantics, capturing a TypeError."""
    try:
        return Derived(value=left + right)
    except TypeError as exc:
        return Derived(error=f"{type(exc).__name__}: {exc}")


__all__ = [
    "CoercionError",
    "Derived",
    "Number",
    "TaggedValue",
    "ValueKind",
    "attempt_add",
    "coerce_number",
    "tag_value",
    "type_tag",
]
