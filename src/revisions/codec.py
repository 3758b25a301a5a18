"""
Snapshot codec – attribute map <-> portable JSON text.

Plain JSON cannot carry timestamps, decimals, UUIDs, bytes, tuples, sets or
maps with non-string keys, so those are written as small tagged objects and
restored by ``decode``. A map that happens to use the tag key itself is
tagged too, so user data never gets mistaken for a tagged value. Pure
functions, no side effects.
"""

from __future__ import annotations

import base64
import datetime as dt
import enum
import json
import uuid
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping

from .errors import CorruptPayload, SnapshotEncodingError

TYPE_TAG = "__revisions_type__"

_JSON_SCALARS = (str, int, float, bool, type(None))


def _tagged(kind: str, value: Any) -> Dict[str, Any]:
    return {TYPE_TAG: kind, "value": value}


def _prepare(value: Any) -> Any:
    """Rewrite ``value`` into plain JSON types, tagging what JSON can't hold."""
    if isinstance(value, enum.Enum):
        return _prepare(value.value)
    if isinstance(value, _JSON_SCALARS):
        return value
    if isinstance(value, dict):
        if TYPE_TAG not in value and all(isinstance(k, str) for k in value):
            return {k: _prepare(v) for k, v in value.items()}
        return _tagged("map", [[_prepare(k), _prepare(v)] for k, v in value.items()])
    if isinstance(value, list):
        return [_prepare(v) for v in value]
    if isinstance(value, tuple):
        return _tagged("tuple", [_prepare(v) for v in value])
    if isinstance(value, frozenset):
        return _tagged("frozenset", [_prepare(v) for v in sorted(value, key=repr)])
    if isinstance(value, set):
        return _tagged("set", [_prepare(v) for v in sorted(value, key=repr)])
    # order matters: datetime is a subclass of date
    if isinstance(value, dt.datetime):
        return _tagged("datetime", value.isoformat())
    if isinstance(value, dt.date):
        return _tagged("date", value.isoformat())
    if isinstance(value, dt.time):
        return _tagged("time", value.isoformat())
    if isinstance(value, dt.timedelta):
        return _tagged("timedelta", [value.days, value.seconds, value.microseconds])
    if isinstance(value, Decimal):
        return _tagged("decimal", str(value))
    if isinstance(value, uuid.UUID):
        return _tagged("uuid", str(value))
    if isinstance(value, (bytes, bytearray)):
        return _tagged("bytes", base64.b64encode(bytes(value)).decode("ascii"))
    raise TypeError(f"{type(value).__name__} is not snapshot-serialisable")


def _decode_timedelta(parts: List[int]) -> dt.timedelta:
    days, seconds, microseconds = parts
    return dt.timedelta(days=days, seconds=seconds, microseconds=microseconds)


def _decode_bytes(text: str) -> bytes:
    return base64.b64decode(text.encode("ascii"), validate=True)


_DECODERS = {
    "datetime": dt.datetime.fromisoformat,
    "date": dt.date.fromisoformat,
    "time": dt.time.fromisoformat,
    "timedelta": _decode_timedelta,
    "decimal": Decimal,
    "uuid": uuid.UUID,
    "bytes": _decode_bytes,
    "tuple": tuple,
    "set": set,
    "frozenset": frozenset,
    "map": lambda pairs: {k: v for k, v in pairs},
}


def _untag(obj: Dict[str, Any]) -> Any:
    if TYPE_TAG not in obj:
        return obj
    try:
        return _DECODERS[obj[TYPE_TAG]](obj["value"])
    except (KeyError, TypeError, AttributeError, ArithmeticError) as exc:
        raise ValueError(f"bad tagged value {obj!r}") from exc


def encode(attributes: Mapping[str, Any], exclude: Iterable[str] = ()) -> str:
    """Serialise ``attributes`` minus every key in ``exclude``."""
    excluded = set(exclude)
    kept = {k: v for k, v in attributes.items() if k not in excluded}
    try:
        return json.dumps(_prepare(kept), sort_keys=True)
    except (TypeError, ValueError) as exc:
        raise SnapshotEncodingError(str(exc)) from exc


def decode(payload: str | bytes) -> Dict[str, Any]:
    """Parse a stored payload back into an attribute map."""
    try:
        data = json.loads(payload, object_hook=_untag)
    except (TypeError, ValueError) as exc:
        raise CorruptPayload(f"cannot decode snapshot payload: {exc}") from exc
    if not isinstance(data, dict):
        raise CorruptPayload(f"snapshot payload is a {type(data).__name__}, not a map")
    return data
