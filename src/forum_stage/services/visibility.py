"""Visibility filtering for private topics and their posts.

A topic flagged private is visible only to its owner and to staff of its
category; guests never see it. Public topics are visible to everyone. Posts
inherit the visibility of their topic.

Batch filters check every item concurrently and keep the input order.
Nothing here raises for a denied item: it is simply left out.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from forum_stage.core.exceptions import PostNotFoundError
from forum_stage.utils.flags import parse_int, parse_int_flag, same_uid

logger = logging.getLogger(__name__)

_TOPIC_POLICY_FIELDS = ("tid", "private", "uid")


class AdminOrModOracle(Protocol):
    """Subset of the privilege service the filters rely on."""

    async def is_admin_or_mod(self, tid: Any, uid: Any) -> bool: ...


class TopicFieldReader(Protocol):
    """Topic lookup used to resolve the policy fields of a post's topic."""

    async def get_topic_fields(self, tid: Any, fields: Sequence[str]) -> dict[str, Any]: ...


class PostFieldReader(Protocol):
    """Post lookup used to find the topic of a bare post."""

    async def get_post_field(self, pid: Any, field: str) -> Any: ...


def _is_guest(viewer_uid: Any) -> bool:
    return (parse_int(viewer_uid) or 0) <= 0


async def is_topic_visible(
    topic: Mapping[str, Any], viewer_uid: Any, privileges: AdminOrModOracle
) -> bool:
    """Return True if ``viewer_uid`` may see ``topic``.

    ``topic`` needs ``private``, ``uid`` and ``tid``.
    """
    if not parse_int_flag(topic.get("private")):
        return True
    if _is_guest(viewer_uid):
        return False
    if same_uid(topic.get("uid"), viewer_uid):
        return True
    return bool(await privileges.is_admin_or_mod(topic.get("tid"), viewer_uid))


async def filter_visible_topics(
    topics: Any, viewer_uid: Any, privileges: AdminOrModOracle
) -> list[Any]:
    """Return the topics ``viewer_uid`` may see, in input order."""
    if not isinstance(topics, list) or not topics:
        return []

    async def check(topic: Any) -> bool:
        if not isinstance(topic, Mapping):
            return False
        return await is_topic_visible(topic, viewer_uid, privileges)

    visibility = await asyncio.gather(*(check(topic) for topic in topics))
    return [topic for topic, visible in zip(topics, visibility, strict=True) if visible]


class _TopicPolicyCache:
    """Per-invocation memo of topic policy fields, shared by concurrent checks."""

    def __init__(self, topics: TopicFieldReader, posts: PostFieldReader | None) -> None:
        self._topics = topics
        self._posts = posts
        self._pending: dict[Any, asyncio.Task[dict[str, Any]]] = {}

    async def tid_for(self, post: Mapping[str, Any]) -> Any:
        if post.get("tid"):
            return post["tid"]
        if self._posts is None:
            raise PostNotFoundError(post.get("pid"), "post has no tid and no post lookup")
        tid = await self._posts.get_post_field(post.get("pid"), "tid")
        if not tid:
            raise PostNotFoundError(post.get("pid"))
        return tid

    async def fields(self, tid: Any) -> dict[str, Any]:
        key = parse_int(tid)
        key = tid if key is None else key
        task = self._pending.get(key)
        if task is None:
            task = asyncio.create_task(self._topics.get_topic_fields(tid, _TOPIC_POLICY_FIELDS))
            self._pending[key] = task
        return await task

    @property
    def lookups(self) -> int:
        return len(self._pending)

    def discard(self) -> None:
        """Cancel lookups still running and retrieve the errors of failed ones."""
        for task in self._pending.values():
            if not task.done():
                task.cancel()
            elif not task.cancelled():
                task.exception()


async def _policy_topic(post: Mapping[str, Any], cache: _TopicPolicyCache) -> dict[str, Any]:
    topic = dict(post.get("topic") or {})
    if not topic.get("tid"):
        topic["tid"] = await cache.tid_for(post)
    if "private" not in topic or "uid" not in topic:
        topic = {**topic, **await cache.fields(topic["tid"])}
    return topic


async def is_post_visible(
    post: Mapping[str, Any],
    viewer_uid: Any,
    privileges: AdminOrModOracle,
    topics: TopicFieldReader,
    posts: PostFieldReader | None = None,
) -> bool:
    """Return True if ``viewer_uid`` may see ``post`` (single-post form)."""
    cache = _TopicPolicyCache(topics, posts)
    try:
        topic = await _policy_topic(post, cache)
    finally:
        cache.discard()
    return await is_topic_visible(topic, viewer_uid, privileges)


async def filter_visible_posts(
    posts_list: Any,
    viewer_uid: Any,
    privileges: AdminOrModOracle,
    topics: TopicFieldReader,
    posts: PostFieldReader | None = None,
) -> list[Any]:
    """Return the posts ``viewer_uid`` may see, in input order.

    A post's topic is taken from ``post["topic"]`` when it carries the
    ``private``/``uid`` fields; otherwise the topic is looked up, once per
    tid for the whole batch.

    Raises:
        PostNotFoundError: If a post's topic cannot be determined.
        TopicNotFoundError: If a post's topic does not exist.
    """
    if not isinstance(posts_list, list) or not posts_list:
        return []
    cache = _TopicPolicyCache(topics, posts)

    async def check(post: Any) -> bool:
        if not isinstance(post, Mapping):
            return False
        topic = await _policy_topic(post, cache)
        return await is_topic_visible(topic, viewer_uid, privileges)

    try:
        visibility = await asyncio.gather(*(check(post) for post in posts_list))
    finally:
        cache.discard()
    logger.debug(
        "filter_visible_posts: %d/%d visible, %d topic lookups",
        sum(visibility),
        len(posts_list),
        cache.lookups,
    )
    return [post for post, visible in zip(posts_list, visibility, strict=True) if visible]
