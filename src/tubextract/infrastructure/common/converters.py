"""Type conversion utilities."""

from __future__ import annotations

import re

_INT_RE = re.compile(r"^[+-]?[0-9]{1,3}(?:,[0-9]{3})+$|^[+-]?[0-9]+$")


def to_int(raw: object) -> int | None:
    """Convert *raw* to int when the conversion is unambiguous.

    Handles various formats:
        - None → None
        - int → int (passthrough, bools rejected)
        - 3.0 → 3 (integral floats only)
        - "123" → 123
        - " 123 " → 123
        - "1,234" → 1234 (well-formed thousands groups only)
        - "12abc" → None
        - "" → None

    Args:
        raw: Input value of any JSON type.

    Returns:
        Integer or None if conversion is not unambiguous.
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, int):
        return raw

    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None

    if isinstance(raw, str):
        txt = raw.strip()
        if not _INT_RE.match(txt):
            return None
        try:
            return int(txt.replace(",", ""))
        except ValueError:
            # Beyond the interpreter's digit limit.
            return None

    return None


def to_bool(raw: object) -> bool | None:
    """Convert JSON booleans and ``"true"``/``"false"`` strings."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return None


def to_str(raw: object) -> str | None:
    """Return strings as-is and render numbers; reject containers."""
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return str(raw)
    return None
