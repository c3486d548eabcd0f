"""
Domain package for typeprobe.

Exports the table model, seed data, declared result shapes, and the value
tagging/binding helpers used by the runners.
"""

from typeprobe.domain.binding import ColumnMismatch, bind_checked, bind_unchecked
from typeprobe.domain.models import (
    SEED_DATA,
    AggregateResult,
    Base,
    QueryIntResult,
    QueryStrResult,
    SeedRecord,
    Simple,
)
from typeprobe.domain.values import (
    CoercionError,
    TaggedValue,
    ValueKind,
    attempt_add,
    coerce_number,
    tag_value,
    type_tag,
)

__all__ = [
    "AggregateResult",
    "Base",
    "CoercionError",
    "ColumnMismatch",
    "QueryIntResult",
    "QueryStrResult",
    "SEED_DATA",
    "SeedRecord",
    "Simple",
    "TaggedValue",
    "ValueKind",
    "attempt_add",
    "bind_checked",
    "bind_unchecked",
    "coerce_number",
    "tag_value",
    "type_tag",
]
