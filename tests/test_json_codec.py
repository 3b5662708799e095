"""
Tests for value normalization and encoding on the remote store
"""
import json

import pytest

from pimx.core.json_codec import (
    MAX_UNWRAP_ATTEMPTS,
    InvalidDocumentError,
    decode_stored,
    encode_value,
    normalize_value,
)


class TestNormalizeValue:
    """Unwrapping of values stringified by older clients"""

    def test_structured_value_is_unchanged(self):
        """Objects and arrays pass straight through"""
        value = {"a": [1, 2, {"b": None}]}
        assert normalize_value(value) == value

    def test_single_stringified_object_is_parsed(self):
        """A JSON string holding an object yields the object"""
        assert normalize_value('{"a": 1}') == {"a": 1}

    def test_double_stringified_array_is_parsed(self):
        """Two layers of stringification are both removed"""
        raw = json.dumps(json.dumps([1, 2, 3]))
        assert normalize_value(raw) == [1, 2, 3]

    def test_unwrapping_is_bounded(self):
        """At most MAX_UNWRAP_ATTEMPTS layers are removed"""
        raw = {"deep": True}
        for _ in range(MAX_UNWRAP_ATTEMPTS + 1):
            raw = json.dumps(raw)
        result = normalize_value(raw)
        assert isinstance(result, str)
        assert json.loads(result) == {"deep": True}

    def test_plain_text_is_kept(self):
        """Text that does not look like JSON is stored as text"""
        assert normalize_value("hello world") == "hello world"

    def test_unparseable_json_lookalike_is_kept(self):
        """Broken JSON-looking text is returned as it stands"""
        assert normalize_value("{broken") == "{broken"
        assert normalize_value("{not: valid}") == "{not: valid}"

    def test_escaped_quotes_are_recovered(self):
        """Backslash-escaped quotes inside an object are undone"""
        assert normalize_value('{\\"a\\": 1}') == {"a": 1}

    def test_loose_objects_become_array(self):
        """Comma-separated objects without brackets are wrapped in an array"""
        assert normalize_value('{"a": 1}, {"b": 2}') == [{"a": 1}, {"b": 2}]

    def test_numbers_and_booleans_pass_through(self):
        assert normalize_value(5) == 5
        assert normalize_value(False) is False
        assert normalize_value(None) is None


class TestEncodeValue:
    def test_non_ascii_is_preserved(self):
        """Persian text is written as-is"""
        assert encode_value("ریاضی") == '"ریاضی"'

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), {"x": float("-inf")}])
    def test_non_finite_numbers_raise(self, bad):
        """Strict JSON has no NaN or Infinity"""
        with pytest.raises(InvalidDocumentError):
            encode_value(bad)

    def test_unsupported_type_raises(self):
        with pytest.raises(InvalidDocumentError):
            encode_value({"s": {1, 2}})


class TestDecodeStored:
    def test_json_text_is_parsed(self):
        assert decode_stored('{"a": 1}') == {"a": 1}

    def test_non_json_text_is_returned(self):
        """Rows written outside the API are still readable"""
        assert decode_stored("raw") == "raw"
