"""Privilege checks backed by the forum database."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from forum_stage.core.exceptions import InvalidDataError
from forum_stage.models import Category, CategoryModerator, CategoryReader, Post, Topic, User
from forum_stage.utils.flags import parse_int, parse_int_flag, same_uid

logger = logging.getLogger(__name__)

READ_PERMISSIONS = frozenset({"topics:read", "read"})


class PrivilegeService:
    """Answers who may read and who may moderate what.

    Administrators and global moderators moderate every category; category
    moderators moderate only the categories they were granted.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _user(self, uid: Any) -> User | None:
        parsed = parse_int(uid) or 0
        if parsed <= 0:
            return None
        return self.db.get(User, parsed)

    def _moderated_cids(self, uid: int) -> set[int]:
        return set(
            self.db.execute(
                select(CategoryModerator.cid).where(CategoryModerator.uid == uid)
            ).scalars()
        )

    async def is_administrator(self, uid: Any) -> bool:
        """Return True if ``uid`` is an administrator."""
        user = self._user(uid)
        return bool(user and user.is_admin)

    async def are_administrators(self, uids: Sequence[Any]) -> list[bool]:
        """Return the administrator flag of each uid."""
        ids = [parsed for parsed in (parse_int(uid) for uid in uids) if parsed and parsed > 0]
        admins: set[int] = set()
        if ids:
            admins = set(
                self.db.execute(
                    select(User.uid).where(User.uid.in_(ids), User.is_admin.is_(True))
                ).scalars()
            )
        return [parse_int(uid) in admins for uid in uids]

    async def is_global_moderator(self, uid: Any) -> bool:
        """Return True if ``uid`` belongs to the global moderators."""
        user = self._user(uid)
        return bool(user and user.is_global_mod)

    async def is_moderator(self, uid: Any) -> bool:
        """Return True if ``uid`` moderates globally or at least one category."""
        user = self._user(uid)
        if user is None:
            return False
        return user.is_global_mod or bool(self._moderated_cids(user.uid))

    async def moderated_cids(self, uid: Any) -> set[int]:
        """Return the categories ``uid`` was granted moderation of."""
        user = self._user(uid)
        if user is None:
            return set()
        return self._moderated_cids(user.uid)

    async def is_category_moderator(self, cid: Any, uid: Any) -> bool:
        """Return True if ``uid`` was granted moderation of category ``cid``."""
        user = self._user(uid)
        if user is None or parse_int(cid) is None:
            return False
        return parse_int(cid) in self._moderated_cids(user.uid)

    async def is_admin_or_global_mod(self, uid: Any) -> bool:
        """Return True for administrators and global moderators."""
        user = self._user(uid)
        return bool(user and (user.is_admin or user.is_global_mod))

    async def is_admin_or_mod(self, tid: Any, uid: Any) -> bool:
        """Return True if ``uid`` is staff for the category holding topic ``tid``."""
        user = self._user(uid)
        if user is None:
            return False
        if user.is_admin or user.is_global_mod:
            return True
        parsed_tid = parse_int(tid)
        cid = self.db.execute(select(Topic.cid).where(Topic.tid == parsed_tid)).scalar()
        if cid is None:
            return False
        return cid in self._moderated_cids(user.uid)

    async def can_read_category(self, cid: Any, uid: Any) -> bool:
        """Return True if ``uid`` may read topics of category ``cid``."""
        category = self.db.get(Category, parse_int(cid)) if parse_int(cid) is not None else None
        if category is None:
            return False
        user = self._user(uid)
        if user is not None and (user.is_admin or user.is_global_mod):
            return True
        if category.disabled:
            return False
        if not category.read_restricted:
            return True
        if user is None:
            return False
        if category.cid in self._moderated_cids(user.uid):
            return True
        reader = self.db.get(CategoryReader, (category.cid, user.uid))
        return reader is not None

    async def filter_tids(self, permission: str, tids: Sequence[Any], uid: Any) -> list[Any]:
        """Return the tids ``uid`` holds ``permission`` on, in input order.

        Topics that do not exist, sit in unreadable categories, or are
        deleted (unless the viewer owns or moderates them) are dropped.

        Raises:
            InvalidDataError: For permissions other than read.
        """
        if permission not in READ_PERMISSIONS:
            raise InvalidDataError(f"unsupported privilege {permission!r}")
        if not isinstance(tids, list | tuple) or not tids:
            return []
        ids = [parsed for parsed in (parse_int(tid) for tid in tids) if parsed is not None]
        topics = {
            row.tid: row
            for row in self.db.execute(select(Topic).where(Topic.tid.in_(ids))).scalars()
        }
        readable: dict[int, bool] = {}
        allowed = []
        for tid in tids:
            topic = topics.get(parse_int(tid))  # type: ignore[arg-type]
            if topic is None:
                continue
            if topic.cid not in readable:
                readable[topic.cid] = await self.can_read_category(topic.cid, uid)
            if not readable[topic.cid]:
                continue
            if parse_int_flag(topic.deleted) and not (
                (topic.uid > 0 and same_uid(topic.uid, uid))
                or await self.is_admin_or_mod(topic.tid, uid)
            ):
                continue
            allowed.append(tid)
        logger.debug("filter_tids kept %d of %d topics for uid=%s", len(allowed), len(tids), uid)
        return allowed

    async def can_read_post(self, pid: Any, uid: Any) -> bool:
        """Return True if ``uid`` may read the topic holding post ``pid``."""
        parsed = parse_int(pid)
        tid = self.db.execute(select(Post.tid).where(Post.pid == parsed)).scalar()
        if tid is None:
            return False
        return bool(await self.filter_tids("topics:read", [tid], uid))
