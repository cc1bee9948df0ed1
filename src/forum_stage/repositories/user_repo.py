"""Data access helpers for user accounts and their settings."""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from forum_stage.models import User
from forum_stage.models.user import SORT_OLDEST_TO_NEWEST
from forum_stage.utils.flags import parse_int

__all__ = ["UserRepository", "DEFAULT_USER_FIELDS"]

DEFAULT_USER_FIELDS = (
    "uid",
    "username",
    "fullname",
    "userslug",
    "reputation",
    "postcount",
    "picture",
    "signature",
    "banned",
    "status",
)


def _placeholder(uid: int) -> dict[str, Any]:
    """Record used for guests (uid 0) and for accounts that no longer exist."""
    name = "[[global:guest]]" if uid == 0 else "[[global:former-user]]"
    return {
        "uid": 0,
        "username": name,
        "displayname": name,
        "userslug": "",
        "fullname": None,
        "picture": None,
        "signature": "",
        "reputation": 0,
        "postcount": 0,
        "banned": 0,
        "status": "offline",
    }


def _user_to_dict(user: User) -> dict[str, Any]:
    return {
        "uid": user.uid,
        "username": user.username,
        "displayname": user.displayname,
        "userslug": user.userslug,
        "fullname": user.fullname,
        "picture": user.picture,
        "signature": user.signature,
        "reputation": user.reputation,
        "postcount": user.postcount,
        "banned": user.banned,
        "status": user.status,
    }


class UserRepository:
    """Read-only access to users."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def _load(self, uids: Sequence[Any]) -> dict[int, User]:
        ids = [uid for uid in (parse_int(u) for u in uids) if uid]
        if not ids:
            return {}
        rows = self.session.execute(select(User).where(User.uid.in_(ids))).scalars()
        return {row.uid: row for row in rows}

    async def get_users_fields(
        self, uids: Sequence[Any], fields: Sequence[str] = DEFAULT_USER_FIELDS
    ) -> list[dict[str, Any]]:
        """Return user records in ``uids`` order.

        ``displayname`` is always included. Guests and unknown accounts get a
        placeholder record so callers can join positionally.
        """
        found = self._load(uids)
        wanted = list(dict.fromkeys([*fields, "displayname"]))
        result = []
        for uid in uids:
            parsed = parse_int(uid) or 0
            row = found.get(parsed)
            record = _user_to_dict(row) if row is not None else _placeholder(parsed)
            result.append({field: record.get(field) for field in wanted})
        return result

    async def get_user_fields(
        self, uid: Any, fields: Sequence[str] = DEFAULT_USER_FIELDS
    ) -> dict[str, Any]:
        """Return one user record."""
        records = await self.get_users_fields([uid], fields)
        return records[0]

    async def get_display_settings(self, uids: Sequence[Any]) -> list[dict[str, bool]]:
        """Return the ``showfullname`` preference of each user."""
        found = self._load(uids)
        result = []
        for uid in uids:
            row = found.get(parse_int(uid))  # type: ignore[arg-type]
            result.append({"showfullname": bool(row and row.show_fullname)})
        return result

    async def get_settings(self, uid: Any) -> dict[str, Any]:
        """Return the viewer settings relevant to topic rendering."""
        row = self._load([uid]).get(parse_int(uid))  # type: ignore[arg-type]
        if row is None:
            return {"topicPostSort": SORT_OLDEST_TO_NEWEST, "showfullname": False}
        return {"topicPostSort": row.topic_post_sort, "showfullname": row.show_fullname}
