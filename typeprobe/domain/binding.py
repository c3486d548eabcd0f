"""
Binding raw SQL rows to caller-declared shapes.

Two modes:

- unchecked: `model_construct` copies the row into the model without looking
  at it, the Python equivalent of a typed raw query whose type argument is a
  bare assertion.
- checked: strict validation at the boundary; disagreeing columns come back as
  `ColumnMismatch` entries instead of silently riding along.
"""
from __future__ import annotations

import typing
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from typeprobe.domain.values import ValueKind, tag_value

M = TypeVar("M", bound=BaseModel)

_KIND_BY_TYPE = {
    bool: ValueKind.BOOLEAN,
    int: ValueKind.INTEGER,
    float: ValueKind.REAL,
    Decimal: ValueKind.DECIMAL,
    str: ValueKind.TEXT,
    bytes: ValueKind.BLOB,
}


@dataclass(frozen=True)
class ColumnMismatch:
    shape: str
    column: str
    declared: ValueKind
    actual: ValueKind
    value: Any
    reason: str

    def describe(self) -> str:
        return (
            f"{self.shape}.{self.column}: declared {self.declared.value}, "
            f"got {self.actual.value} ({self.value!r})"
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "shape": self.shape,
            "column": self.column,
            "declared": self.declared.value,
            "actual": self.actual.value,
            "value": tag_value(self.value).as_dict()["value"],
            "reason": self.reason,
        }


def declared_kind(shape: Type[BaseModel], field_name: str) -> Tuple[ValueKind, bool]:
    """
    Return the declared kind of a field and whether it admits None.
    """
    annotation = shape.model_fields[field_name].annotation
    nullable = False
    args = typing.get_args(annotation)
    if args and type(None) in args:
        nullable = True
        remaining = [arg for arg in args if arg is not type(None)]
        annotation = remaining[0] if len(remaining) == 1 else annotation
    return _KIND_BY_TYPE.get(annotation, ValueKind.OTHER), nullable


def _column_for(shape: Type[BaseModel], key: str) -> Optional[str]:
    """Map a result column name to the field's alias; drivers may fold case."""
    for name, info in shape.model_fields.items():
        alias = info.alias or name
        if key == alias or key.lower() == alias.lower() or key == name:
            return alias
    return None


def normalize_row(shape: Type[BaseModel], row: Mapping[str, Any]) -> dict[str, Any]:
    """Re-key a result row by the shape's aliases, dropping unknown columns."""
    normalized: dict[str, Any] = {}
    for key, value in row.items():
        column = _column_for(shape, key)
        if column is not None:
            normalized[column] = value
    return normalized


def bind_unchecked(shape: Type[M], rows: Sequence[Mapping[str, Any]]) -> List[M]:
    """Bind rows without validation; declared types are not enforced."""
    return [shape.model_construct(**normalize_row(shape, row)) for row in rows]


def bind_checked(
    shape: Type[M], rows: Sequence[Mapping[str, Any]]
) -> Tuple[List[Optional[M]], List[ColumnMismatch]]:
    """
    Validate rows strictly against their declared shape.

    Returns
    -------
    (instances, mismatches)
        `instances` is aligned with `rows`; a row that failed validation is None.
    """
    instances: List[Optional[M]] = []
    mismatches: List[ColumnMismatch] = []
    aliases = {(info.alias or name): name for name, info in shape.model_fields.items()}

    for row in rows:
        normalized = normalize_row(shape, row)
        try:
            instances.append(shape.model_validate(normalized, strict=True))
        except ValidationError as exc:
            instances.append(None)
            for error in exc.errors():
                column = str(error["loc"][0]) if error["loc"] else "?"
                field_name = aliases.get(column, column)
                if field_name in shape.model_fields:
                    declared, _ = declared_kind(shape, field_name)
                else:
                    declared = ValueKind.OTHER
                value = normalized.get(column)
                mismatches.append(
                    ColumnMismatch(
                        shape=shape.__name__,
                        column=column,
                        declared=declared,
                        actual=tag_value(value).kind,
                        value=value,
                        reason=error["msg"],
                    )
                )
    return instances, mismatches


__all__ = [
    "ColumnMismatch",
    "bind_checked",
    "bind_unchecked",
    "declared_kind",
    "normalize_row",
]
