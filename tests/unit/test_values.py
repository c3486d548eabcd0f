from __future__ import annotations

from decimal import Decimal

import pytest

from typeprobe.domain.values import (
    CoercionError,
    ValueKind,
    attempt_add,
    coerce_number,
    tag_value,
    type_tag,
)


@pytest.mark.parametrize(
    "value,kind",
    [
        (None, ValueKind.NULL),
        (True, ValueKind.BOOLEAN),
        (1, ValueKind.INTEGER),
        (0.0, ValueKind.REAL),
        (Decimal("1.50"), ValueKind.DECIMAL),
        ("4", ValueKind.TEXT),
        (b"\x00", ValueKind.BLOB),
        (object(), ValueKind.OTHER),
    ],
)
def test_tag_value_classifies_runtime_types(value, kind):
    assert tag_value(value).kind is kind


def test_type_tag_reports_python_type_name():
    assert type_tag(None) == "NoneType"
    assert type_tag("4") == "str"
    assert type_tag(4) == "int"
    assert tag_value(0.0).type_tag == "float"


def test_tagged_value_as_dict_is_json_friendly():
    assert tag_value(Decimal("2.5")).as_dict() == {"value": "2.5", "kind": "decimal", "type": "Decimal"}
    assert tag_value(b"\x01\x02").as_dict()["value"] == "0102"
    assert tag_value(None).as_dict() == {"value": None, "kind": "null", "type": "NoneType"}


class TestCoerceNumber:
    def test_absent_value_becomes_zero_by_default(self):
        assert coerce_number(None) == 0

    def test_absent_value_propagates_when_asked(self):
        assert coerce_number(None, "propagate") is None

    def test_numbers_pass_through(self):
        assert coerce_number(1) == 1
        assert coerce_number(2.5) == 2.5
        assert coerce_number(Decimal("3")) == Decimal("3")

    def test_booleans_become_integers(self):
        assert coerce_number(True) == 1
        assert isinstance(coerce_number(False), int)

    def test_numeric_strings_are_parsed(self):
        assert coerce_number("4") == 4
        assert isinstance(coerce_number("4"), int)
        assert coerce_number(" 4.5 ") == 4.5

    def test_blank_string_is_zero(self):
        assert coerce_number("") == 0
        assert coerce_number("   ") == 0

    def test_blank_string_propagates_as_absent(self):
        assert coerce_number("", "propagate") is None
        assert coerce_number("  ", "propagate") is None

    @pytest.mark.parametrize("value", ["bad", "nan", b"\x00"])
    def test_unparsable_values_raise(self, value):
        with pytest.raises(CoercionError):
            coerce_number(value)

    def test_unknown_policy_is_rejected(self):
        with pytest.raises(ValueError, match="Unknown null policy"):
            coerce_number(None, "guess")


class TestAttemptAdd:
    def test_integer_addition(self):
        derived = attempt_add(1, 99)
        assert derived.value == 100
        assert not derived.failed

    def test_float_operand_yields_float(self):
        derived = attempt_add(0.0, 99)
        assert derived.value == 99.0
        assert isinstance(derived.value, float)

    def test_string_operand_is_captured_as_type_error(self):
        derived = attempt_add("bad", 99)
        assert derived.failed
        assert derived.value is None
        assert derived.error.startswith("TypeError: ")
