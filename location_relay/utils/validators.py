# location_relay/utils/validators.py
import json
import math
from typing import Any, Mapping, Optional

PREVIEW_LIMIT = 100


def is_present(value: Any) -> bool:
    # zero and False are values, only None and "" count as absent
    return value is not None and value != ""


def first_present(key: str, *sources: Optional[Mapping]):
    for src in sources:
        if src is None:
            continue
        value = src.get(key)
        if is_present(value):
            return value
    return None


def parse_float(value: Any) -> float:
    """
    Parse a coordinate-like value sent either as a JSON number or as text.
    Raises ValueError for booleans, unparseable text and nan/inf.
    """
    if isinstance(value, bool):
        raise ValueError(f"boolean is not a number: {value!r}")
    if isinstance(value, str):
        value = value.strip()
    f = float(value)
    if not math.isfinite(f):
        raise ValueError(f"non-finite number: {value!r}")
    return f


def parse_number_text(text: str):
    """Query strings carry numbers as text: '72' -> 72, '7.5' -> 7.5."""
    s = str(text).strip()
    try:
        return int(s)
    except ValueError:
        pass
    f = float(s)
    if not math.isfinite(f):
        raise ValueError(f"non-finite number: {text!r}")
    return f


def preview(raw: Any, limit: int = PREVIEW_LIMIT) -> str:
    s = raw if isinstance(raw, str) else repr(raw)
    if len(s) <= limit:
        return s
    return s[:limit] + "..."


def decode_json_object(raw: str) -> dict:
    """Decode a JSON-encoded parameter; anything but an object is rejected."""
    decoded = json.loads(raw)
    if not isinstance(decoded, dict):
        raise ValueError(f"expected a JSON object, got {type(decoded).__name__}")
    return decoded
