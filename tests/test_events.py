# tests/test_events.py
"""Tests for timeline event helpers."""

from forum_stage.services.events import events_in_window, merge_consecutive_share_events


def _share(eid, ts, uid=1):
    return {
        "id": eid,
        "type": "share",
        "uid": uid,
        "text": "[[topic:shared]]",
        "timestamp": ts,
        "timestampISO": f"iso-{ts}",
        "user": {"uid": uid},
    }


def test_adjacent_shares_fold_into_first() -> None:
    events = [_share(1, 10), _share(2, 20, uid=2), {"id": 3, "type": "pin", "timestamp": 30}, _share(4, 40)]

    merged = merge_consecutive_share_events(events)

    assert [e["id"] for e in merged] == [1, 3, 4]
    group = merged[0]
    assert [item["id"] for item in group["items"]] == [1, 2]
    assert group["items"][0]["user"] == {"uid": 1}
    assert group["items"][1] == events[1]
    for field in ("user", "text", "timestamp", "timestampISO"):
        assert field not in group
    assert "items" not in merged[2]


def test_merge_leaves_input_untouched() -> None:
    events = [_share(1, 10), _share(2, 20)]
    merge_consecutive_share_events(events)
    assert "items" not in events[0]
    assert events[0]["user"] == {"uid": 1}


def test_run_of_three_shares() -> None:
    merged = merge_consecutive_share_events([_share(1, 10), _share(2, 20), _share(3, 30)])
    assert len(merged) == 1
    assert [item["id"] for item in merged[0]["items"]] == [1, 2, 3]


def test_non_share_events_never_merge() -> None:
    events = [{"id": 1, "type": "pin", "timestamp": 1}, {"id": 2, "type": "pin", "timestamp": 2}]
    assert merge_consecutive_share_events(events) == events


def test_events_in_window_is_half_open() -> None:
    events = [{"timestamp": ts} for ts in (5, 10, 15, 20)]
    assert events_in_window(events, 10, 20) == [{"timestamp": 10}, {"timestamp": 15}]
    assert events_in_window(events, None, 20) == []
