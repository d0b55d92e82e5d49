"""Record codec: values <-> JSON text, preserving MISSING.

JSON cannot tell "missing" apart from null, so MISSING is written as the
reserved string ``"__UNDEFINED__"`` and mapped back on decode.

Known limitation: a genuine ``"__UNDEFINED__"`` string in user data
decodes as MISSING.
"""

from __future__ import annotations

import json
from typing import Any, Final

from shoebox.shared.errors import SerializationError
from shoebox.shared.types import MISSING

UNDEFINED: Final = "__UNDEFINED__"


def _encode_missing(value: Any) -> Any:
    # json.dumps only calls `default` for objects it cannot encode itself
    if value is MISSING:
        return UNDEFINED
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


def _restore_missing(value: Any) -> Any:
    if value == UNDEFINED:
        return MISSING
    if isinstance(value, list):
        return [_restore_missing(v) for v in value]
    if isinstance(value, dict):
        return {k: _restore_missing(v) for k, v in value.items()}
    return value


def serialize(value: Any) -> str:
    """Encode a value as JSON text, substituting the MISSING sentinel."""
    try:
        return json.dumps(value, default=_encode_missing, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Cannot serialize value: {exc}") from exc


def deserialize(text: str | bytes) -> Any:
    """Decode JSON text produced by :func:`serialize`."""
    try:
        decoded = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Malformed stored payload: {exc}") from exc
    return _restore_missing(decoded)
