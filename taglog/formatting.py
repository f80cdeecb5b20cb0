"""formatting.py - Render arbitrary message values as display text.

Messages passed to ``tag()`` may be plain strings, numbers, sequences or
mappings. Mappings are pretty-printed as an indented JSON block so request
payloads and records stay readable in both the console and the exported
report; sequences are shown inline.

Small flat mappings (up to three scalar values) are by far the most common
payload, so they are built directly by string concatenation. The result is
byte-identical to the ``json.dumps`` path.
"""

import json
import math
from collections.abc import Mapping
from typing import Any

MAX_DEPTH = 32

_FAST_PATH_THRESHOLD = 3

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def format_value(value: Any, max_depth: int = MAX_DEPTH) -> str:
    """Return the display text for ``value``.

    Args:
        value: Scalar, list/tuple or mapping.
        max_depth: Nesting depth beyond which values are rendered with their
            default ``str()`` form.

    Returns:
        ``"null"`` for None, ``"true"``/``"false"`` for booleans, an inline
        ``[a, b]`` list for sequences, an indented JSON block for mappings and
        ``str(value)`` for everything else. Never raises.

    Example:
        >>> format_value({"user": "ana", "id": 7})
        '{\\n  "user": "ana",\\n  "id": 7\\n}'
        >>> format_value([1, "two", None])
        '[1, two, null]'
    """
    try:
        return _format(value, 0, max_depth)
    except Exception:
        return _fallback(value)


def _format(value: Any, depth: int, max_depth: int) -> str:
    if depth > max_depth:
        return _fallback(value)
    if isinstance(value, Mapping):
        return _format_mapping(value, depth, max_depth)
    if isinstance(value, (list, tuple)):
        inner = ", ".join(_format(item, depth + 1, max_depth) for item in value)
        return f"[{inner}]"
    return _scalar_text(value)


def _format_mapping(mapping: Mapping, depth: int, max_depth: int) -> str:
    if len(mapping) <= _FAST_PATH_THRESHOLD and _is_flat(mapping):
        return _format_flat_mapping(mapping)
    try:
        return json.dumps(
            _to_json(mapping, depth, max_depth),
            indent=2,
            ensure_ascii=False,
        )
    except (TypeError, ValueError):
        return _fallback(mapping)


def _is_flat(mapping: Mapping) -> bool:
    return not any(
        isinstance(value, (Mapping, list, tuple)) for value in mapping.values()
    )


def _format_flat_mapping(mapping: Mapping) -> str:
    if not mapping:
        return "{}"
    lines = [
        f'  "{_escape(_key_text(key))}": {_json_scalar(value)}'
        for key, value in mapping.items()
    ]
    return "{\n" + ",\n".join(lines) + "\n}"


def _to_json(value: Any, depth: int, max_depth: int) -> Any:
    """Copy ``value`` into plain JSON types, bounded by ``max_depth``."""
    if depth > max_depth:
        return _fallback(value)
    if isinstance(value, Mapping):
        return {
            _json_key(key): _to_json(item, depth + 1, max_depth)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_to_json(item, depth + 1, max_depth) for item in value]
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    return str(value)


def _json_key(key: Any) -> Any:
    if key is None or isinstance(key, (str, bool, int, float)):
        return key
    return str(key)


def _key_text(key: Any) -> str:
    # Same key conversion json.dumps applies, extended to arbitrary objects.
    if isinstance(key, str):
        return key
    if key is None or isinstance(key, (bool, int, float)):
        return _json_scalar(key)
    return str(key)


def _json_scalar(value: Any) -> str:
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, int):
        return int.__repr__(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        return float.__repr__(value)
    if isinstance(value, str):
        return f'"{_escape(value)}"'
    return f'"{_escape(str(value))}"'


def _escape(text: str) -> str:
    return "".join(_escape_char(ch) for ch in text)


def _escape_char(ch: str) -> str:
    escaped = _ESCAPES.get(ch)
    if escaped is not None:
        return escaped
    if ch < " ":
        return f"\\u{ord(ch):04x}"
    return ch


def _scalar_text(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    return str(value)


def _fallback(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return object.__repr__(value)
