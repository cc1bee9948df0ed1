"""Data access helpers for topics and per-viewer topic state."""
from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from forum_stage.core.exceptions import InvalidDataError, TopicNotFoundError
from forum_stage.models import (
    Post,
    RelatedTopic,
    Topic,
    TopicBookmark,
    TopicEvent,
    TopicFollow,
    TopicRead,
    TopicThumb,
    User,
)
from forum_stage.models.reader_state import FOLLOW_STATE_FOLLOWING, FOLLOW_STATE_IGNORING
from forum_stage.utils.flags import parse_int
from forum_stage.utils.time import to_iso_string

__all__ = ["TopicRepository", "topic_to_dict"]

# ORM attribute -> record key
_TOPIC_FIELDS: dict[str, str] = {
    "tid": "tid",
    "uid": "uid",
    "cid": "cid",
    "title": "title",
    "slug": "slug",
    "main_pid": "mainPid",
    "postcount": "postcount",
    "viewcount": "viewcount",
    "private": "private",
    "anonymous": "anonymous",
    "locked": "locked",
    "pinned": "pinned",
    "deleted": "deleted",
    "timestamp": "timestamp",
    "lastposttime": "lastposttime",
    "deleter_uid": "deleterUid",
    "deleted_timestamp": "deletedTimestamp",
    "merger_uid": "mergerUid",
    "merge_into_tid": "mergeIntoTid",
    "merged_timestamp": "mergedTimestamp",
    "forker_uid": "forkerUid",
    "forked_from_tid": "forkedFromTid",
    "fork_timestamp": "forkTimestamp",
}


def topic_to_dict(topic: Topic, fields: Iterable[str] | None = None) -> dict[str, Any]:
    """Convert a Topic row to the record shape used by the services."""
    record = {key: getattr(topic, attr) for attr, key in _TOPIC_FIELDS.items()}
    record["timestampISO"] = to_iso_string(topic.timestamp)
    record["lastposttimeISO"] = to_iso_string(topic.lastposttime)
    if fields is None:
        return record
    return {field: record.get(field) for field in fields}


def _ids(values: Iterable[Any]) -> list[int]:
    parsed = (parse_int(value) for value in values)
    return [value for value in parsed if value is not None]


def _redis_slice(items: Sequence[Any], start: int, stop: int) -> list[Any]:
    """Inclusive ``start``..``stop`` slice where negative indices count from the end."""
    length = len(items)
    if start < 0:
        start = max(length + start, 0)
    if stop < 0:
        stop = length + stop
    if start > stop or start >= length:
        return []
    return list(items[start : stop + 1])


class TopicRepository:
    """Read-only access to topics, their thumbnails, events and viewer state."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def _load(self, tids: Sequence[Any]) -> dict[int, Topic]:
        ids = _ids(tids)
        if not ids:
            return {}
        rows = self.session.execute(select(Topic).where(Topic.tid.in_(ids))).scalars()
        return {row.tid: row for row in rows}

    async def exists(self, tids: Sequence[Any]) -> list[bool]:
        """Return, per tid, whether the topic is stored."""
        found = self._load(tids)
        return [parse_int(tid) in found for tid in tids]

    async def get_topics_data(self, tids: Sequence[Any]) -> list[dict[str, Any] | None]:
        """Return topic records in ``tids`` order; missing topics are None."""
        found = self._load(tids)
        result: list[dict[str, Any] | None] = []
        for tid in tids:
            row = found.get(parse_int(tid))  # type: ignore[arg-type]
            result.append(topic_to_dict(row) if row is not None else None)
        return result

    async def get_topic_data(self, tid: Any) -> dict[str, Any] | None:
        """Return a single topic record or None."""
        records = await self.get_topics_data([tid])
        return records[0]

    async def get_topics_fields(
        self, tids: Sequence[Any], fields: Sequence[str]
    ) -> list[dict[str, Any] | None]:
        """Return the requested fields of each topic in ``tids`` order."""
        found = self._load(tids)
        result: list[dict[str, Any] | None] = []
        for tid in tids:
            row = found.get(parse_int(tid))  # type: ignore[arg-type]
            result.append(topic_to_dict(row, fields) if row is not None else None)
        return result

    async def get_topic_fields(self, tid: Any, fields: Sequence[str]) -> dict[str, Any]:
        """Return the requested fields of one topic.

        Raises:
            TopicNotFoundError: If no topic exists for ``tid``.
        """
        records = await self.get_topics_fields([tid], fields)
        if records[0] is None:
            raise TopicNotFoundError(tid)
        return records[0]

    async def get_topic_field(self, tid: Any, field: str) -> Any:
        """Return one field of one topic."""
        record = await self.get_topic_fields(tid, [field])
        return record[field]

    async def get_sorted_set_range(
        self, set_key: str, start: int, stop: int, *, reverse: bool = True
    ) -> list[int]:
        """Return ids from an ordered index.

        Supported keys are ``cid:<cid>:tids`` (topics of a category by last
        post time) and ``tid:<tid>:posts`` (posts of a topic by timestamp).
        ``start``/``stop`` are inclusive and ``-1`` means the last element.
        """
        parts = set_key.split(":")
        owner = parse_int(parts[1]) if len(parts) == 3 else None
        if owner is None:
            raise InvalidDataError(f"unknown sorted set {set_key!r}")
        if parts[0] == "cid" and parts[2] == "tids":
            order = (Topic.pinned, Topic.lastposttime, Topic.tid)
            stmt = select(Topic.tid).where(Topic.cid == owner)
            stmt = stmt.order_by(*(c.desc() if reverse else c.asc() for c in order))
        elif parts[0] == "tid" and parts[2] == "posts":
            order = (Post.timestamp, Post.pid)
            stmt = select(Post.pid).where(Post.tid == owner)
            stmt = stmt.order_by(*(c.desc() if reverse else c.asc() for c in order))
        else:
            raise InvalidDataError(f"unknown sorted set {set_key!r}")
        ids = list(self.session.execute(stmt).scalars())
        return _redis_slice(ids, start, stop)

    async def get_teasers(
        self, topics: Sequence[Mapping[str, Any] | None]
    ) -> list[dict[str, Any] | None]:
        """Return the latest reply of each topic, or None for unreplied topics."""
        tids = [t["tid"] for t in topics if t]
        latest: dict[int, Post] = {}
        indices: dict[int, int] = {}
        if tids:
            counts = self.session.execute(
                select(Post.tid, func.count(Post.pid))
                .where(Post.tid.in_(tids), Post.deleted == 0)
                .group_by(Post.tid)
            ).all()
            indices = {tid: count - 1 for tid, count in counts}
            rows = self.session.execute(
                select(Post)
                .where(Post.tid.in_(tids), Post.deleted == 0)
                .order_by(Post.timestamp.asc(), Post.pid.asc())
            ).scalars()
            for row in rows:
                latest[row.tid] = row

        authors = {
            row.uid: row
            for row in self.session.execute(
                select(User).where(User.uid.in_({p.uid for p in latest.values()}))
            ).scalars()
        }

        teasers: list[dict[str, Any] | None] = []
        for topic in topics:
            post = latest.get(topic["tid"]) if topic else None
            if post is None or post.pid == topic.get("mainPid"):
                teasers.append(None)
                continue
            author = authors.get(post.uid)
            user = {
                "uid": post.uid,
                "username": author.username if author else "[[global:guest]]",
                "userslug": author.userslug if author else "",
                "picture": author.picture if author else None,
                "displayname": author.username if author else "[[global:guest]]",
            }
            teasers.append({
                "pid": post.pid,
                "tid": post.tid,
                "uid": post.uid,
                "content": post.content,
                "anonymous": post.anonymous,
                "timestamp": post.timestamp,
                "timestampISO": to_iso_string(post.timestamp),
                "index": indices.get(post.tid, 0) + 1,
                "user": user,
            })
        return teasers

    async def get_thumbs(
        self, topics: Sequence[Mapping[str, Any] | None]
    ) -> list[list[dict[str, Any]]]:
        """Return the thumbnails of each topic."""
        tids = [t["tid"] for t in topics if t]
        by_tid: dict[int, list[dict[str, Any]]] = {}
        if tids:
            rows = self.session.execute(
                select(TopicThumb)
                .where(TopicThumb.tid.in_(tids))
                .order_by(TopicThumb.position.asc(), TopicThumb.id.asc())
            ).scalars()
            for row in rows:
                by_tid.setdefault(row.tid, []).append({
                    "id": row.tid,
                    "name": row.path.rsplit("/", 1)[-1],
                    "url": row.path,
                })
        return [list(by_tid.get(t["tid"], [])) if t else [] for t in topics]

    async def has_read_topics(self, tids: Sequence[Any], uid: Any) -> list[bool]:
        """Return whether ``uid`` has a read marker on each topic."""
        viewer = parse_int(uid) or 0
        if viewer <= 0:
            return [False for _ in tids]
        read = set(
            self.session.execute(
                select(TopicRead.tid).where(TopicRead.uid == viewer, TopicRead.tid.in_(_ids(tids)))
            ).scalars()
        )
        return [parse_int(tid) in read for tid in tids]

    async def get_follow_data(self, tids: Sequence[Any], uid: Any) -> list[dict[str, bool]]:
        """Return following/ignoring flags of ``uid`` for each topic."""
        viewer = parse_int(uid) or 0
        states: dict[int, str] = {}
        if viewer > 0:
            rows = self.session.execute(
                select(TopicFollow).where(
                    TopicFollow.uid == viewer, TopicFollow.tid.in_(_ids(tids))
                )
            ).scalars()
            states = {row.tid: row.state for row in rows}
        result = []
        for tid in tids:
            state = states.get(parse_int(tid))  # type: ignore[arg-type]
            result.append({
                "following": state == FOLLOW_STATE_FOLLOWING,
                "ignoring": state == FOLLOW_STATE_IGNORING,
            })
        return result

    async def get_user_bookmarks(self, tids: Sequence[Any], uid: Any) -> list[int | None]:
        """Return the stored bookmark index of ``uid`` for each topic."""
        viewer = parse_int(uid) or 0
        if viewer <= 0:
            return [None for _ in tids]
        rows = self.session.execute(
            select(TopicBookmark).where(
                TopicBookmark.uid == viewer, TopicBookmark.tid.in_(_ids(tids))
            )
        ).scalars()
        marks = {row.tid: row.post_index for row in rows}
        return [marks.get(parse_int(tid)) for tid in tids]  # type: ignore[arg-type]

    async def get_user_bookmark(self, tid: Any, uid: Any) -> int | None:
        """Return the stored bookmark index of ``uid`` in one topic."""
        marks = await self.get_user_bookmarks([tid], uid)
        return marks[0]

    async def get_events(self, tid: Any, *, reverse: bool = False) -> list[dict[str, Any]]:
        """Return the timeline events of a topic in timestamp order."""
        order = TopicEvent.timestamp.desc() if reverse else TopicEvent.timestamp.asc()
        rows = list(
            self.session.execute(
                select(TopicEvent).where(TopicEvent.tid == parse_int(tid)).order_by(order)
            ).scalars()
        )
        actors = {
            row.uid: row
            for row in self.session.execute(
                select(User).where(User.uid.in_({r.uid for r in rows if r.uid}))
            ).scalars()
        }
        events = []
        for row in rows:
            event: dict[str, Any] = {
                "id": row.id,
                "type": row.type,
                "uid": row.uid,
                "text": row.text,
                "timestamp": row.timestamp,
                "timestampISO": to_iso_string(row.timestamp),
            }
            if row.network:
                event["network"] = row.network
            actor = actors.get(row.uid)
            if actor is not None:
                event["user"] = {
                    "uid": actor.uid,
                    "username": actor.username,
                    "userslug": actor.userslug,
                    "picture": actor.picture,
                }
            events.append(event)
        return events

    async def get_related_topics(self, topic: Mapping[str, Any]) -> list[dict[str, Any]]:
        """Return topics linked to ``topic`` with the fields needed to list and mask them."""
        rows = self.session.execute(
            select(Topic)
            .join(RelatedTopic, RelatedTopic.related_tid == Topic.tid)
            .where(RelatedTopic.tid == topic["tid"])
            .order_by(Topic.tid.asc())
        ).scalars()
        return [
            topic_to_dict(row, ["tid", "uid", "cid", "title", "slug", "private", "anonymous"])
            for row in rows
        ]
