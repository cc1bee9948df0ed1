"""Data access helpers for working with posts."""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from forum_stage.core.exceptions import InvalidDataError, PostNotFoundError
from forum_stage.models import Post, Topic
from forum_stage.repositories.user_repo import UserRepository
from forum_stage.utils.flags import parse_int
from forum_stage.utils.text import escape_html
from forum_stage.utils.time import now_ms, to_iso_string

__all__ = ["PostRepository", "post_to_dict"]

_POST_FIELDS = ("pid", "tid", "uid", "handle", "content", "timestamp", "anonymous", "deleted", "votes")


def post_to_dict(post: Post, fields: Sequence[str] | None = None) -> dict[str, Any]:
    """Convert a Post row to the record shape used by the services."""
    record = {name: getattr(post, name) for name in _POST_FIELDS}
    record["timestampISO"] = to_iso_string(post.timestamp)
    if fields is None:
        return record
    return {field: record.get(field) for field in fields}


class PostRepository:
    """Read-only access to posts."""

    def __init__(self, session: Session, users: UserRepository | None = None) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session
        self.users = users or UserRepository(session)

    def _load(self, pids: Sequence[Any]) -> dict[int, Post]:
        ids = [pid for pid in (parse_int(p) for p in pids) if pid is not None]
        if not ids:
            return {}
        rows = self.session.execute(select(Post).where(Post.pid.in_(ids))).scalars()
        return {row.pid: row for row in rows}

    async def exists(self, pid: Any) -> bool:
        """Return True if a post is stored under ``pid``."""
        return parse_int(pid) in self._load([pid])

    async def get_posts_fields(
        self, pids: Sequence[Any], fields: Sequence[str]
    ) -> list[dict[str, Any] | None]:
        """Return the requested fields of each post in ``pids`` order."""
        found = self._load(pids)
        result: list[dict[str, Any] | None] = []
        for pid in pids:
            row = found.get(parse_int(pid))  # type: ignore[arg-type]
            result.append(post_to_dict(row, fields) if row is not None else None)
        return result

    async def get_post_field(self, pid: Any, field: str) -> Any:
        """Return one field of one post.

        Raises:
            PostNotFoundError: If no post exists for ``pid``.
        """
        records = await self.get_posts_fields([pid], [field])
        if records[0] is None:
            raise PostNotFoundError(pid)
        return records[0][field]

    async def _with_users(self, posts: list[dict[str, Any]]) -> list[dict[str, Any]]:
        uids = list(dict.fromkeys(p["uid"] for p in posts))
        users = dict(zip(uids, await self.users.get_users_fields(uids), strict=True))
        for post in posts:
            user = dict(users[post["uid"]])
            if post["uid"] == 0 and post.get("handle"):
                user["username"] = escape_html(post["handle"])
                user["displayname"] = user["username"]
            post["user"] = user
        return posts

    async def get_posts_by_pids(self, pids: Sequence[Any]) -> list[dict[str, Any] | None]:
        """Return full post records with their author attached, in ``pids`` order."""
        found = self._load(pids)
        rows = [found.get(parse_int(pid)) for pid in pids]  # type: ignore[arg-type]
        records = [post_to_dict(row) for row in rows if row is not None]
        await self._with_users(records)
        by_pid = {record["pid"]: record for record in records}
        return [by_pid.get(row.pid) if row is not None else None for row in rows]

    async def get_post_index(self, pid: Any) -> int:
        """Return the zero-based position of a post inside its topic."""
        row = self._load([pid]).get(parse_int(pid))  # type: ignore[arg-type]
        if row is None:
            raise PostNotFoundError(pid)
        ordered = list(
            self.session.execute(
                select(Post.pid)
                .where(Post.tid == row.tid)
                .order_by(Post.timestamp.asc(), Post.pid.asc())
            ).scalars()
        )
        return ordered.index(row.pid)

    async def get_topic_posts(
        self,
        topic: Mapping[str, Any],
        set_key: str,
        start: int,
        stop: int,
        *,
        reverse: bool = False,
    ) -> list[dict[str, Any]]:
        """Return one page of a topic's posts.

        ``set_key`` is ``tid:<tid>:posts`` (chronological) or
        ``tid:<tid>:posts:votes`` (highest voted first). ``start``/``stop``
        are inclusive and ``-1`` means the last post.

        Each post carries its ``index`` and the ``eventStart``/``eventEnd``
        window used to attach timeline events: from its own timestamp up to
        the next post's timestamp (or now for the newest post).

        Raises:
            InvalidDataError: If ``set_key`` does not name this topic's posts.
        """
        base = f"tid:{topic['tid']}:posts"
        if set_key not in (base, f"{base}:votes"):
            raise InvalidDataError(f"unknown post set {set_key!r} for topic {topic['tid']}")
        rows = list(
            self.session.execute(
                select(Post)
                .where(Post.tid == topic["tid"])
                .order_by(Post.timestamp.asc(), Post.pid.asc())
            ).scalars()
        )
        records = [post_to_dict(row) for row in rows]
        upper = now_ms()
        for index, record in enumerate(records):
            record["index"] = index
            record["eventStart"] = record["timestamp"]
            record["eventEnd"] = (
                records[index + 1]["timestamp"] if index + 1 < len(records) else upper
            )
        if set_key.endswith(":votes"):
            records.sort(key=lambda record: record["votes"], reverse=True)
        if reverse:
            records.reverse()
        length = len(records)
        first = max(start + length, 0) if start < 0 else start
        last = length + stop if stop < 0 else stop
        page = records[first : last + 1] if first <= last else []
        return await self._with_users(page)

    async def get_recent_posts(
        self, since_ms: int, start: int, stop: int
    ) -> list[dict[str, Any]]:
        """Return non-deleted posts newer than ``since_ms``, newest first.

        Each post carries a ``topic`` summary without privacy fields.
        """
        stmt = (
            select(Post, Topic)
            .join(Topic, Topic.tid == Post.tid)
            .where(Post.deleted == 0, Post.timestamp >= since_ms)
            .order_by(Post.timestamp.desc(), Post.pid.desc())
            .offset(max(start, 0))
        )
        if stop >= 0:
            stmt = stmt.limit(max(stop - start + 1, 0))
        posts = []
        for post, topic in self.session.execute(stmt).all():
            record = post_to_dict(post)
            record["topic"] = {
                "tid": topic.tid,
                "cid": topic.cid,
                "title": topic.title,
                "slug": topic.slug,
                "mainPid": topic.main_pid,
            }
            record["isMainPost"] = post.pid == topic.main_pid
            posts.append(record)
        return await self._with_users(posts)
