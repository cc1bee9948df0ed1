"""Service-level helpers for reading posts outside a topic page."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.orm import Session

from forum_stage.core.settings import Settings
from forum_stage.repositories import PostRepository, TopicRepository, UserRepository
from forum_stage.services.hooks import HOOK_POSTS_RECENT, HookBus
from forum_stage.services.identity import IdentityMasker
from forum_stage.services.privileges import PrivilegeService
from forum_stage.services.visibility import filter_visible_posts, is_post_visible
from forum_stage.utils.flags import parse_int
from forum_stage.utils.text import is_number
from forum_stage.utils.time import now_ms

logger = logging.getLogger(__name__)

DAY_MS = 86_400_000
# Lookback of each recent-posts term; terms not listed here cover all time.
RECENT_TERMS: dict[str, int] = {
    "day": DAY_MS,
    "week": 7 * DAY_MS,
    "month": 30 * DAY_MS,
}


def recent_since(term: str | None, now: int | None = None) -> int:
    """Return the oldest timestamp a recent-posts ``term`` still includes."""
    span = RECENT_TERMS.get(term or "")
    if span is None:
        return 0
    return (now if now is not None else now_ms()) - span


class PostService:
    """Recent-post listings and post permalinks, filtered for one viewer."""

    def __init__(
        self,
        *,
        topics: TopicRepository,
        posts: PostRepository,
        privileges: PrivilegeService,
        hooks: HookBus,
        settings: Settings,
        masker: IdentityMasker | None = None,
    ) -> None:
        self.topics = topics
        self.posts = posts
        self.privileges = privileges
        self.hooks = hooks
        self.settings = settings
        self.masker = masker or IdentityMasker(settings)

    @classmethod
    def from_session(
        cls,
        db: Session,
        hooks: HookBus,
        settings: Settings,
        masker: IdentityMasker | None = None,
    ) -> PostService:
        """Wire the service to repositories over one database session."""
        return cls(
            topics=TopicRepository(db),
            posts=PostRepository(db, UserRepository(db)),
            privileges=PrivilegeService(db),
            hooks=hooks,
            settings=settings,
            masker=masker,
        )

    async def get_recent_posts(
        self, viewer_uid: Any, start: int, stop: int, term: str | None = "alltime"
    ) -> dict[str, Any]:
        """Return the newest posts the viewer may read, with hidden authors masked.

        Args:
            viewer_uid: Viewer uid; 0 or None for guests.
            start: First position of the page (inclusive).
            stop: Last position of the page (inclusive).
            term: ``day``, ``week``, ``month`` or ``alltime``.

        Returns:
            ``{"posts": [...], "nextStart": stop + 1}``
        """
        uid = parse_int(viewer_uid) or 0
        posts = await self.posts.get_recent_posts(recent_since(term), start, stop)

        tids = list(dict.fromkeys(post["tid"] for post in posts))
        readable = set(await self.privileges.filter_tids("topics:read", tids, uid))
        posts = [post for post in posts if post["tid"] in readable]
        posts = await filter_visible_posts(posts, uid, self.privileges, self.topics, self.posts)

        staff_by_tid = dict(
            zip(
                tids,
                await asyncio.gather(*(self.privileges.is_admin_or_mod(tid, uid) for tid in tids)),
                strict=True,
            )
        )
        for post in posts:
            self.masker.mask_author(post, uid, staff_by_tid[post["tid"]])

        logger.debug("get_recent_posts term=%s uid=%s returned %d posts", term, uid, len(posts))
        result = await self.hooks.fire(HOOK_POSTS_RECENT, {"posts": posts, "uid": uid})
        hooked = result.get("posts") if isinstance(result, Mapping) else None
        return {"posts": hooked if isinstance(hooked, list) else posts, "nextStart": stop + 1}

    async def resolve_redirect(self, pid: Any, viewer_uid: Any) -> dict[str, Any]:
        """Resolve a post permalink to its position inside the topic.

        ``path`` is None when ``pid`` is not numeric or no such post exists.
        ``canRead`` is True only if the viewer may read the post's category
        and see its topic.
        """
        if not is_number(pid) or not await self.posts.exists(pid):
            return {"path": None, "canRead": False}
        uid = parse_int(viewer_uid) or 0
        tid = await self.posts.get_post_field(pid, "tid")
        topic, index = await asyncio.gather(
            self.topics.get_topic_fields(tid, ["tid", "slug", "uid", "private"]),
            self.posts.get_post_index(pid),
        )
        slug = f"/{topic['slug']}" if topic.get("slug") else ""
        path = f"{self.settings.relative_path}/topic/{topic['tid']}{slug}/{index + 1}"

        can_read = await self.privileges.can_read_post(pid, uid)
        if can_read:
            can_read = await is_post_visible(
                {"pid": parse_int(pid), "tid": tid, "topic": topic},
                uid,
                self.privileges,
                self.topics,
                self.posts,
            )
        return {"path": path, "canRead": can_read}
