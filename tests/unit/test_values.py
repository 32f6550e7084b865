"""
Unit tests for tagged values and documents.
"""

import math

import numpy as np
import pytest

from docquery.core.document import Document
from docquery.core.exceptions import FieldNotFoundError, ValidationError
from docquery.core.values import Value, ValueKind, to_plain


class TestValue:
    """Test value tagging."""

    @pytest.mark.parametrize(
        "obj,kind",
        [
            (None, ValueKind.NULL),
            (True, ValueKind.BOOL),
            (np.bool_(False), ValueKind.BOOL),
            ("x", ValueKind.STRING),
            (b"x", ValueKind.BYTES),
            (3, ValueKind.INT),
            (-(2 ** 63), ValueKind.INT),
            (2 ** 63, ValueKind.UINT),
            (np.int8(-1), ValueKind.INT),
            (np.uint64(2 ** 64 - 1), ValueKind.UINT),
            (1.5, ValueKind.FLOAT),
            (np.float32(1.5), ValueKind.FLOAT),
            ({"a": 1}, ValueKind.MAP),
            ([1, 2], ValueKind.LIST),
        ],
    )
    def test_kinds(self, obj, kind):
        assert Value.of(obj).kind == kind

    def test_bool_is_not_numeric(self):
        """bool must not be treated as an int."""
        v = Value.of(True)
        assert not v.is_numeric
        assert v.is_scalar

    def test_uint_keeps_value(self):
        v = Value.of(np.uint64(2 ** 64 - 1))
        assert v.raw == 2 ** 64 - 1

    def test_out_of_range_int(self):
        with pytest.raises(ValidationError):
            Value.of(2 ** 64)
        with pytest.raises(ValidationError):
            Value.of(-(2 ** 63) - 1)

    def test_unsupported_type(self):
        with pytest.raises(ValidationError):
            Value.of(object())

    def test_nan(self):
        assert Value.of(math.nan).is_nan
        assert not Value.of(1.0).is_nan
        assert not Value.of("nan").is_nan

    def test_containers_are_not_scalar(self):
        assert not Value.of([1]).is_scalar
        assert not Value.of({}).is_scalar

    def test_of_is_idempotent(self):
        v = Value.of(7)
        assert Value.of(v) is v

    def test_to_plain(self):
        doc = {"a": np.int64(3), "b": [np.float64(0.5), (1, 2)], "c": {"d": np.bool_(True)}}
        plain = to_plain(doc)
        assert plain == {"a": 3, "b": [0.5, [1, 2]], "c": {"d": True}}
        assert type(plain["a"]) is int
        assert type(plain["c"]["d"]) is bool


class TestDocument:
    """Test field path access."""

    def test_get_nested(self):
        doc = Document({"user": {"age": 31}})
        assert doc.get(("user", "age")) == Value(ValueKind.INT, 31)

    def test_get_list_index(self):
        doc = Document({"a": [10, 20, {"b": "x"}]})
        assert doc.get_raw(("a", "1")) == 20
        assert doc.get_raw(("a", "2", "b")) == "x"

    def test_missing_path(self):
        doc = Document({"a": {"b": 1}})
        with pytest.raises(FieldNotFoundError) as exc:
            doc.get_raw(("a", "c"))
        assert exc.value.field_path == ("a", "c")
        assert "a.c" in str(exc.value)

        with pytest.raises(FieldNotFoundError):
            doc.get_raw(("a", "b", "c"))
        with pytest.raises(FieldNotFoundError):
            Document({"a": [1]}).get_raw(("a", "5"))
        with pytest.raises(FieldNotFoundError):
            Document({"a": [1]}).get_raw(("a", "x"))

    @pytest.mark.parametrize("segment", ["-1", "+1", " 1", "1.0", "", "١"])
    def test_list_index_must_be_plain_digits(self, segment):
        doc = Document({"a": [1, 2, 3]})
        with pytest.raises(FieldNotFoundError):
            doc.get_raw(("a", segment))
        assert not doc.has(("a", segment))

    def test_has(self):
        doc = Document({"a": None})
        assert doc.has(("a",))
        assert not doc.has(("b",))

    def test_project(self):
        doc = Document({"a": 1, "b": {"c": 2, "d": 3}, "e": 4})
        out = doc.project([("a",), ("b", "c"), ("missing",)])
        assert out == {"a": 1, "b": {"c": 2}}

    def test_project_does_not_modify_source(self):
        data = {"a": 1, "b": 2}
        Document(data).project([("a",)])
        assert data == {"a": 1, "b": 2}

    def test_mapping_access(self):
        doc = Document({"a": 1, "b": 2})
        assert doc["a"] == 1
        assert "b" in doc
        assert sorted(doc) == ["a", "b"]
        assert len(doc) == 2
        assert doc == Document({"a": 1, "b": 2})
