"""
Canonical JSON serialization.

Signing and verification of escrow PDF envelopes operate on the exact
bytes produced here. Both sides MUST derive byte-identical input from
logically identical data, regardless of the key order of the source
mappings.

Rules:
- object keys are emitted in ascending order at every nesting level
- arrays preserve their order
- no insignificant whitespace
- non-ASCII characters are emitted as-is (UTF-8), never escaped

Compatibility with the JavaScript signing service:
- keys are ordered by UTF-16 code units, which is how
  ``Array.prototype.sort`` orders strings
- integral floats are rendered as integers (``1.0`` -> ``1``)
- NaN and Infinity are not representable and are rejected
- floats that either side would print in exponent form are rejected.
  ``repr`` switches to an exponent below ``1e-4``, while JavaScript does
  so below ``1e-6`` and at ``1e21`` or above. Python and JavaScript agree
  on the digits of every other float.
"""

from __future__ import annotations

import json
import math
from typing import Any, Dict, List, Union

_JS_EXPONENT_THRESHOLD = 1e21

JsonValue = Union[None, bool, int, float, str, List["JsonValue"], Dict[str, "JsonValue"]]


def _utf16_sort_key(key: str) -> bytes:
    return key.encode("utf-16-be", "surrogatepass")


def canonicalize_json(value: Any) -> Any:
    """
    Return a copy of ``value`` with every mapping's keys sorted.

    Only plain dicts and lists/tuples are restructured. Any other value
    (including non-plain objects such as ``Decimal``) is passed through
    untouched.
    """
    if isinstance(value, (list, tuple)):
        return [canonicalize_json(item) for item in value]

    if isinstance(value, dict):
        for key in value:
            if not isinstance(key, str):
                raise TypeError(
                    f"Canonical JSON object keys must be strings, "
                    f"got {type(key).__name__}"
                )
        return {
            key: canonicalize_json(value[key])
            for key in sorted(value, key=_utf16_sort_key)
        }

    return value


def _normalize_numbers(value: Any) -> Any:
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError("NaN and Infinity are not valid canonical JSON")
        if value.is_integer():
            if abs(value) >= _JS_EXPONENT_THRESHOLD:
                raise ValueError(
                    f"Float {value!r} has no portable canonical JSON form"
                )
            return int(value)
        if "e" in repr(value):
            raise ValueError(f"Float {value!r} has no portable canonical JSON form")
        return value
    if isinstance(value, list):
        return [_normalize_numbers(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_numbers(item) for key, item in value.items()}
    return value


def stringify_canonical_json(value: Any) -> str:
    """Serialize ``value`` as canonical JSON text."""
    canonical = _normalize_numbers(canonicalize_json(value))
    return json.dumps(
        canonical,
        ensure_ascii=False,
        allow_nan=False,
        separators=(",", ":"),
    )


def canonical_json_bytes(value: Any) -> bytes:
    """UTF-8 encoded canonical JSON."""
    return stringify_canonical_json(value).encode("utf-8")
