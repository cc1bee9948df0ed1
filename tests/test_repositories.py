# tests/test_repositories.py
"""Tests for the read repositories."""

import pytest

from forum_stage.core.exceptions import CategoryNotFoundError, InvalidDataError, TopicNotFoundError
from forum_stage.models import TopicThumb
from forum_stage.repositories import CategoryRepository, PostRepository, TopicRepository, UserRepository


@pytest.mark.asyncio
async def test_topic_records_use_camel_case(forum, db_session) -> None:
    alice = forum.user("alice")
    topic = forum.topic(forum.category(), alice, title="Hello")
    repo = TopicRepository(db_session)

    record = await repo.get_topic_data(topic.tid)
    assert record["mainPid"] == topic.main_pid
    assert record["timestampISO"].endswith("Z")
    assert await repo.get_topics_data([topic.tid, 9999]) == [record, None]
    assert await repo.get_topic_field(topic.tid, "title") == "Hello"
    with pytest.raises(TopicNotFoundError):
        await repo.get_topic_fields(9999, ["title"])


@pytest.mark.asyncio
async def test_sorted_set_range(forum, db_session) -> None:
    general = forum.category()
    alice = forum.user("alice")
    older = forum.topic(general, alice)
    newer = forum.topic(general, alice)
    pinned = forum.topic(general, alice, pinned=1, timestamp=1)
    repo = TopicRepository(db_session)

    key = f"cid:{general.cid}:tids"
    assert await repo.get_sorted_set_range(key, 0, -1) == [pinned.tid, newer.tid, older.tid]
    assert await repo.get_sorted_set_range(key, 1, 1) == [newer.tid]
    assert await repo.get_sorted_set_range(key, 5, 9) == []
    assert await repo.get_sorted_set_range(f"tid:{older.tid}:posts", 0, -1, reverse=False) == [older.main_pid]
    with pytest.raises(InvalidDataError):
        await repo.get_sorted_set_range("uid:1:followed", 0, -1)


@pytest.mark.asyncio
async def test_teasers_and_thumbs(forum, db_session) -> None:
    alice = forum.user("alice")
    general = forum.category()
    lonely = forum.topic(general, alice)
    busy = forum.topic(general, alice)
    forum.post(busy, alice, content="first reply")
    latest = forum.post(busy, None, content="guest reply")
    forum.post(busy, alice, content="deleted reply", deleted=1)
    db_session.add(TopicThumb(tid=busy.tid, path="/files/busy.png"))
    db_session.flush()
    repo = TopicRepository(db_session)
    topics = await repo.get_topics_data([lonely.tid, busy.tid, 9999])

    teasers = await repo.get_teasers(topics)
    assert teasers[0] is None
    assert teasers[1]["pid"] == latest.pid
    assert teasers[1]["index"] == 3
    assert teasers[1]["user"]["username"] == "[[global:guest]]"
    assert teasers[2] is None

    thumbs = await repo.get_thumbs(topics)
    assert thumbs == [[], [{"id": busy.tid, "name": "busy.png", "url": "/files/busy.png"}], []]


@pytest.mark.asyncio
async def test_users_have_placeholders(forum, db_session) -> None:
    alice = forum.user("alice")
    repo = UserRepository(db_session)
    users = await repo.get_users_fields([alice.uid, 0, 9999], ["uid", "username"])
    assert users == [
        {"uid": alice.uid, "username": "alice", "displayname": "alice"},
        {"uid": 0, "username": "[[global:guest]]", "displayname": "[[global:guest]]"},
        {"uid": 0, "username": "[[global:former-user]]", "displayname": "[[global:former-user]]"},
    ]


@pytest.mark.asyncio
async def test_guest_post_shows_escaped_handle(forum, db_session) -> None:
    topic = forum.topic(forum.category(), None, handle="<i>Guest</i>")
    repo = PostRepository(db_session)
    [post] = await repo.get_posts_by_pids([topic.main_pid])
    assert post["user"]["username"] == "&lt;i&gt;Guest&lt;&#x2F;i&gt;"
    assert post["user"]["displayname"] == post["user"]["username"]


@pytest.mark.asyncio
async def test_category_lookup(forum, db_session) -> None:
    general = forum.category("General", tag_whitelist="a,, b ")
    repo = CategoryRepository(db_session)
    assert (await repo.get_category_data(general.cid))["name"] == "General"
    assert await repo.get_tag_whitelist([general.cid, 9999]) == [["a", "b"], []]
    with pytest.raises(CategoryNotFoundError):
        await repo.get_category_data(9999)
