"""Unit tests for the snapshot codec."""

from __future__ import annotations

import datetime as dt
import uuid
from decimal import Decimal

import pytest

from revisions import codec
from revisions.errors import CorruptPayload, SnapshotEncodingError


class TestEncodeDecode:
    """Tests for encode/decode of attribute maps."""

    def test_values_survive(self) -> None:
        """Test every supported value type comes back equal and same type."""
        attrs = {
            "title": "Story",
            "count": 3,
            "ratio": 0.1,
            "flag": False,
            "missing": None,
            "when": dt.datetime(2024, 5, 1, 12, 30, tzinfo=dt.timezone.utc),
            "day": dt.date(2024, 5, 1),
            "at": dt.time(8, 15),
            "price": Decimal("19.99"),
            "ref": uuid.UUID("12345678-1234-5678-1234-567812345678"),
            "blob": b"\x00\xff",
            "nested": {"tags": ["a", "b"], "inner": {"n": 1}},
        }

        decoded = codec.decode(codec.encode(attrs))

        assert decoded == attrs
        for key, value in attrs.items():
            assert type(decoded[key]) is type(value)

    @pytest.mark.parametrize(
        "value",
        [
            {"__revisions_type__": "uuid", "value": "12345678-1234-5678-1234-567812345678"},
            {1: "a", 2: "b"},
            {(1, "x"): True},
            (1, 2),
            ((1, [2, (3,)]),),
            frozenset({1, 2}),
            dt.timedelta(days=10**8, microseconds=1),
            dt.timedelta(days=-3, seconds=5),
        ],
    )
    def test_nested_values_survive(self, value) -> None:
        """Test values plain JSON would reshape come back unchanged."""
        decoded = codec.decode(codec.encode({"meta": value}))

        assert decoded == {"meta": value}
        assert type(decoded["meta"]) is type(value)

    def test_exclude_removes_keys(self) -> None:
        """Test excluded keys are never written."""
        attrs = {"title": "x", "secret": "pw", "token": 1}

        payload = codec.encode(attrs, exclude={"secret", "token"})

        assert "pw" not in payload
        assert codec.decode(payload) == {"title": "x"}

    def test_exclude_unknown_key_is_ignored(self) -> None:
        assert codec.decode(codec.encode({"a": 1}, exclude=["zzz"])) == {"a": 1}

    def test_unsupported_value(self) -> None:
        """Test values with no portable form raise SnapshotEncodingError."""
        with pytest.raises(SnapshotEncodingError):
            codec.encode({"obj": object()})


class TestCorruptPayload:
    """Tests for payloads that cannot be decoded."""

    @pytest.mark.parametrize(
        "payload",
        [
            "not json",
            "[1, 2, 3]",
            '"just a string"',
            '{"when": {"__revisions_type__": "datetime", "value": "yesterday"}}',
            '{"x": {"__revisions_type__": "nonsense", "value": 1}}',
            '{"x": {"__revisions_type__": "decimal", "value": "abc"}}',
            '{"x": {"__revisions_type__": "bytes", "value": 1}}',
            '{"x": {"__revisions_type__": "bytes", "value": "not base64!"}}',
            '{"x": {"__revisions_type__": "timedelta", "value": 1.5}}',
            '{"x": {"__revisions_type__": "map", "value": [[[1], 2]]}}',
        ],
    )
    def test_decode_raises(self, payload: str) -> None:
        with pytest.raises(CorruptPayload):
            codec.decode(payload)
