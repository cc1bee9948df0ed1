"""Text helpers for values rendered into templates."""

from __future__ import annotations

import math

_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
    "\\": "&#x5C;",
    "`": "&#96;",
}


def escape_html(value: str) -> str:
    """Escape characters that are unsafe inside HTML text and attributes."""
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


def is_number(value: object) -> bool:
    """Return True for ints and strings holding a plain decimal number."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    try:
        number = float(str(value))
    except ValueError:
        return False
    return math.isfinite(number)
