# tests/test_visibility.py
"""Tests for private-topic visibility filtering."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from forum_stage.core.exceptions import PostNotFoundError, TopicNotFoundError
from forum_stage.services.visibility import (
    filter_visible_posts,
    filter_visible_topics,
    is_post_visible,
    is_topic_visible,
)

ADMIN_UID = 1


class StaffOracle:
    """Treats ADMIN_UID as staff everywhere and records every question."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def is_admin_or_mod(self, tid, uid) -> bool:
        self.calls.append((tid, uid))
        return uid == ADMIN_UID


def _topic(tid, uid, private):
    return {"tid": tid, "uid": uid, "private": private}


@pytest.mark.asyncio
async def test_public_topic_visible_to_everyone() -> None:
    oracle = StaffOracle()
    for viewer in (0, 5, ADMIN_UID):
        assert await is_topic_visible(_topic(1, 10, 0), viewer, oracle)
    assert oracle.calls == []


@pytest.mark.asyncio
async def test_private_topic_visibility() -> None:
    oracle = StaffOracle()
    topic = _topic(7, 10, "1")
    assert await is_topic_visible(topic, 10, oracle)
    assert await is_topic_visible(topic, "10", oracle)
    assert await is_topic_visible(topic, ADMIN_UID, oracle)
    assert not await is_topic_visible(topic, 99, oracle)
    assert not await is_topic_visible(topic, 0, oracle)


@pytest.mark.asyncio
async def test_guest_never_sees_private_guest_topic() -> None:
    oracle = StaffOracle()
    assert not await is_topic_visible(_topic(7, 0, 1), 0, oracle)
    assert oracle.calls == []


@pytest.mark.asyncio
async def test_filter_keeps_input_order() -> None:
    topics = [_topic(3, 10, 0), _topic(1, 11, 1), _topic(2, 12, 1), _topic(4, 99, 1)]
    visible = await filter_visible_topics(topics, 99, StaffOracle())
    assert [t["tid"] for t in visible] == [3, 4]

    visible = await filter_visible_topics(topics, ADMIN_UID, StaffOracle())
    assert [t["tid"] for t in visible] == [3, 1, 2, 4]


@pytest.mark.asyncio
@pytest.mark.parametrize("value", [None, "topics", {"tid": 1}, []])
async def test_filter_non_list_or_empty_returns_empty(value) -> None:
    assert await filter_visible_topics(value, 1, StaffOracle()) == []
    assert await filter_visible_posts(value, 1, StaffOracle(), AsyncMock()) == []


@pytest.mark.asyncio
async def test_filter_drops_non_mapping_items() -> None:
    topics = [None, _topic(3, 10, 0), "junk"]
    visible = await filter_visible_topics(topics, 5, StaffOracle())
    assert visible == [_topic(3, 10, 0)]


@pytest.mark.asyncio
async def test_posts_use_embedded_topic_fields() -> None:
    topics = AsyncMock()
    posts = [
        {"pid": 1, "topic": _topic(3, 10, 1)},
        {"pid": 2, "topic": _topic(4, 11, 0)},
    ]
    visible = await filter_visible_posts(posts, 10, StaffOracle(), topics)
    assert [p["pid"] for p in visible] == [1, 2]
    visible = await filter_visible_posts(posts, 12, StaffOracle(), topics)
    assert [p["pid"] for p in visible] == [2]
    topics.get_topic_fields.assert_not_awaited()


@pytest.mark.asyncio
async def test_topic_fields_looked_up_once_per_tid() -> None:
    topics = AsyncMock()
    topics.get_topic_fields.side_effect = lambda tid, fields: _topic(tid, 10, 1 if tid == 3 else 0)
    posts = [{"pid": pid, "tid": 3} for pid in range(1, 6)] + [{"pid": 6, "tid": 4}]

    visible = await filter_visible_posts(posts, 99, StaffOracle(), topics)

    assert [p["pid"] for p in visible] == [6]
    assert topics.get_topic_fields.await_count == 2


@pytest.mark.asyncio
async def test_post_tid_resolved_from_post_lookup() -> None:
    topics = AsyncMock()
    topics.get_topic_fields.return_value = _topic(8, 10, 0)
    post_reader = AsyncMock()
    post_reader.get_post_field.return_value = 8

    assert await is_post_visible({"pid": 40}, 99, StaffOracle(), topics, post_reader)
    post_reader.get_post_field.assert_awaited_once_with(40, "tid")


@pytest.mark.asyncio
async def test_post_without_topic_raises() -> None:
    post_reader = AsyncMock()
    post_reader.get_post_field.return_value = None
    with pytest.raises(PostNotFoundError):
        await filter_visible_posts([{"pid": 40}], 99, StaffOracle(), AsyncMock(), post_reader)


class StallingTopics:
    """Fails the lookup of tid 1 and never answers for any other tid."""

    def __init__(self) -> None:
        self.cancelled: list = []

    async def get_topic_fields(self, tid, fields):
        if tid == 1:
            raise TopicNotFoundError(tid)
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            self.cancelled.append(tid)
            raise
        return _topic(tid, 10, 0)


@pytest.mark.asyncio
async def test_failed_lookup_cancels_outstanding_lookups() -> None:
    topics = StallingTopics()
    posts = [{"pid": 1, "tid": 1}, {"pid": 2, "tid": 2}, {"pid": 3, "tid": 3}]

    with pytest.raises(TopicNotFoundError):
        await filter_visible_posts(posts, 99, StaffOracle(), topics)
    for _ in range(3):
        await asyncio.sleep(0)

    assert sorted(topics.cancelled) == [2, 3]
