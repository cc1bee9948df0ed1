"""Helpers for the timeline events attached to posts."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

SHARE_EVENT = "share"
# Fields describing a single share; a group record keeps them only inside ``items``.
_SINGLE_SHARE_FIELDS = ("user", "text", "timestamp", "timestampISO")


def events_in_window(
    events: Iterable[Mapping[str, Any]], start: Any, end: Any
) -> list[Mapping[str, Any]]:
    """Return the events with ``start <= timestamp < end``, keeping their order."""
    if start is None or end is None:
        return []
    return [event for event in events if start <= event["timestamp"] < end]


def merge_consecutive_share_events(events: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Collapse runs of adjacent share events into one group record.

    The first share of a run becomes the group: its ``items`` list starts
    with a copy of its own fields and is followed by every later share of
    the run. Other events, and shares separated by them, are left alone.
    Input mappings are not modified.
    """
    merged: list[dict[str, Any]] = []
    for event in events:
        current = dict(event)
        last = merged[-1] if merged else None
        if last is not None and last.get("type") == SHARE_EVENT and current.get("type") == SHARE_EVENT:
            if "items" not in last:
                last["items"] = [dict(last)]
                for field in _SINGLE_SHARE_FIELDS:
                    last.pop(field, None)
            last["items"].append(current)
        else:
            merged.append(current)
    return merged
