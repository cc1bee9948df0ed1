"""Coercion helpers for the 0/1 flags stored on topics and posts.

Stored flags arrive as ints, strings or booleans depending on who wrote
them. Read-time checks follow the integer-parse rule: a flag is set only when
its leading integer parses to exactly 1.
"""

from __future__ import annotations

import math
import re
from typing import Any

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_int(value: Any) -> int | None:
    """Parse the leading base-10 integer of ``value``.

    Returns None when no integer can be read. Booleans and None never parse,
    floats are truncated toward zero, strings may carry trailing garbage
    (``"1abc"`` parses to 1, ``"1.9"`` to 1, ``"true"`` to None).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return math.trunc(value)
    match = _LEADING_INT.match(str(value))
    if match is None:
        return None
    return int(match.group(1))


def parse_int_flag(value: Any) -> bool:
    """Return True iff ``value`` parses to the integer 1."""
    return parse_int(value) == 1


def normalize_int_flag(value: Any) -> int:
    """Return the parsed integer of ``value`` or 0 when it does not parse."""
    return parse_int(value) or 0


def same_uid(left: Any, right: Any) -> bool:
    """Compare two user ids that may be stored as ints or numeric strings."""
    left_int = parse_int(left)
    right_int = parse_int(right)
    if left_int is None or right_int is None:
        return False
    return left_int == right_int
