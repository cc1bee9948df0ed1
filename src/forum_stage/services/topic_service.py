"""Topic aggregation for list views and the single-topic page.

``TopicService`` joins topic rows with everything a page needs to render
them (authors, categories, teasers, viewer state) and applies the two
per-viewer projections: private topics the viewer may not see are left out,
and authors of anonymous items are replaced by their synthetic identity.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, MutableMapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from forum_stage.core.exceptions import InvalidDataError, TopicNotFoundError
from forum_stage.core.settings import Settings
from forum_stage.models.user import SORT_MOST_VOTES, SORT_NEWEST_TO_OLDEST
from forum_stage.repositories import (
    CategoryRepository,
    PostRepository,
    TopicRepository,
    UserRepository,
)
from forum_stage.services.events import events_in_window, merge_consecutive_share_events
from forum_stage.services.hooks import (
    HOOK_TOPIC_GET,
    HOOK_TOPIC_SEARCH,
    HOOK_TOPIC_THREAD_TOOLS,
    HOOK_TOPICS_GET,
    HookBus,
)
from forum_stage.services.identity import IdentityMasker, should_mask
from forum_stage.services.privileges import PrivilegeService
from forum_stage.services.visibility import (
    filter_visible_posts,
    filter_visible_topics,
    is_topic_visible,
)
from forum_stage.utils.flags import normalize_int_flag, parse_int, parse_int_flag, same_uid
from forum_stage.utils.text import escape_html
from forum_stage.utils.time import to_iso_string

logger = logging.getLogger(__name__)

MAIN_POST_INDEX = 0
ACTOR_FIELDS = ("username", "userslug", "picture")
_POLICY_FIELDS = ("tid", "uid", "cid", "private", "postcount")


def viewer_uid_of(options: Any) -> int:
    """Return the viewer uid from a bare uid or an options mapping with ``uid``."""
    if isinstance(options, Mapping):
        options = options.get("uid")
    return parse_int(options) or 0


def bookmark_position(stored: Any, postcount: Any, sort: str | None) -> int | None:
    """Translate a stored bookmark into the post number shown to the viewer."""
    mark = parse_int(stored)
    if mark is None:
        return None
    count = parse_int(postcount) or 0
    if sort == SORT_NEWEST_TO_OLDEST:
        return max(1, count + 2 - mark)
    return min(count, mark + 1)


def calculate_topic_indices(topics: Sequence[MutableMapping[str, Any]], start: int) -> None:
    """Number ``topics`` by their position in the listing that starts at ``start``."""
    for offset, topic in enumerate(topics):
        if topic:
            topic["index"] = start + offset


def post_set_for(tid: Any, sort: str | None) -> tuple[str, bool]:
    """Return the post set key and direction matching a viewer's sort setting."""
    if sort == SORT_MOST_VOTES:
        return f"tid:{tid}:posts:votes", False
    return f"tid:{tid}:posts", sort == SORT_NEWEST_TO_OLDEST


@dataclass
class _ViewerStaff:
    """Which categories the viewer moderates."""

    everywhere: bool = False
    cids: set[int] = field(default_factory=set)

    def for_category(self, cid: Any) -> bool:
        return self.everywhere or parse_int(cid) in self.cids


@dataclass
class _TopicBatch:
    topics: list[dict[str, Any] | None]
    teasers: list[dict[str, Any] | None]
    users: dict[Any, dict[str, Any]]
    show_fullname: dict[Any, bool]
    admins: dict[Any, bool]
    categories: dict[Any, dict[str, Any] | None]
    guest_handles: dict[Any, str]
    thumbs: list[list[dict[str, Any]]]


class TopicService:
    """Builds topic records as one viewer is allowed to see them."""

    def __init__(
        self,
        *,
        topics: TopicRepository,
        posts: PostRepository,
        users: UserRepository,
        categories: CategoryRepository,
        privileges: PrivilegeService,
        hooks: HookBus,
        settings: Settings,
        masker: IdentityMasker | None = None,
    ) -> None:
        self.topics = topics
        self.posts = posts
        self.users = users
        self.categories = categories
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
    ) -> TopicService:
        """Wire the service to repositories over one database session."""
        users = UserRepository(db)
        return cls(
            topics=TopicRepository(db),
            posts=PostRepository(db, users),
            users=users,
            categories=CategoryRepository(db),
            privileges=PrivilegeService(db),
            hooks=hooks,
            settings=settings,
            masker=masker,
        )

    # ------------------------------------------------------------------
    # Batch loading
    # ------------------------------------------------------------------

    async def _viewer_staff(self, uid: int) -> _ViewerStaff:
        everywhere, cids = await asyncio.gather(
            self.privileges.is_admin_or_global_mod(uid),
            self.privileges.moderated_cids(uid),
        )
        return _ViewerStaff(everywhere, cids)

    async def _show_fullname(self, uids: list[Any]) -> list[bool]:
        if self.settings.hide_fullname:
            return [False for _ in uids]
        display = await self.users.get_display_settings(uids)
        return [entry["showfullname"] for entry in display]

    async def _guest_handles(self, topics: list[dict[str, Any]]) -> dict[Any, str]:
        guest_topics = [t for t in topics if not parse_int(t.get("uid")) and t.get("mainPid")]
        if not guest_topics:
            return {}
        main_posts = await self.posts.get_posts_fields(
            [t["mainPid"] for t in guest_topics], ["handle"]
        )
        return {
            topic["tid"]: post["handle"]
            for topic, post in zip(guest_topics, main_posts, strict=True)
            if post and post.get("handle")
        }

    async def _load_topics(self, tids: list[Any]) -> _TopicBatch:
        topics = await self.topics.get_topics_data(tids)
        present = [t for t in topics if t]
        uids = list(dict.fromkeys(t["uid"] for t in present))
        cids = list(dict.fromkeys(t["cid"] for t in present))

        teasers, users, show_fullname, categories, handles, thumbs, admins = await asyncio.gather(
            self.topics.get_teasers(topics),
            self.users.get_users_fields(uids),
            self._show_fullname(uids),
            self.categories.get_categories_fields(cids),
            self._guest_handles(present),
            self.topics.get_thumbs(topics),
            self.privileges.are_administrators(uids),
        )
        return _TopicBatch(
            topics=topics,
            teasers=teasers,
            users=dict(zip(uids, users, strict=True)),
            show_fullname=dict(zip(uids, show_fullname, strict=True)),
            admins=dict(zip(uids, admins, strict=True)),
            categories=dict(zip(cids, categories, strict=True)),
            guest_handles=handles,
            thumbs=thumbs,
        )

    def _author(self, topic: Mapping[str, Any], batch: _TopicBatch) -> dict[str, Any]:
        uid = topic["uid"]
        user = dict(batch.users[uid])
        if not batch.show_fullname.get(uid):
            user["fullname"] = None
        if batch.admins.get(uid):
            badges = list(user.get("custom_profile_info") or [])
            badges.insert(0, {"content": self.settings.admin_badge_html})
            user["custom_profile_info"] = badges
        handle = batch.guest_handles.get(topic["tid"])
        if handle and not parse_int(uid):
            user["username"] = escape_html(handle)
            user["displayname"] = user["username"]
        return user

    # ------------------------------------------------------------------
    # List views
    # ------------------------------------------------------------------

    async def get_topics_by_tids(self, tids: Any, options: Any = None) -> list[Any]:
        """Return render-ready topic records for ``tids`` as the viewer sees them.

        ``options`` is the viewer uid or a mapping carrying ``uid``. Topics
        that no longer exist or whose category is missing or disabled are
        dropped; otherwise the input order is kept. The result passes
        through the ``filter:topics.get`` hook.
        """
        if not isinstance(tids, list) or not tids:
            return []
        uid = viewer_uid_of(options)

        batch, has_read, follow, bookmarks, viewer_settings, staff = await asyncio.gather(
            self._load_topics(tids),
            self.topics.has_read_topics(tids, uid),
            self.topics.get_follow_data(tids, uid),
            self.topics.get_user_bookmarks(tids, uid),
            self.users.get_settings(uid),
            self._viewer_staff(uid),
        )
        sort = viewer_settings.get("topicPostSort")

        result: list[dict[str, Any]] = []
        for i, topic in enumerate(batch.topics):
            if not topic:
                continue
            category = batch.categories.get(topic["cid"])
            if not category or parse_int_flag(category.get("disabled")):
                continue

            topic["thumbs"] = batch.thumbs[i]
            topic["category"] = category
            topic["user"] = self._author(topic, batch)
            topic["isOwner"] = bool(parse_int(topic["uid"])) and same_uid(topic["uid"], uid)

            is_staff = staff.for_category(topic["cid"])
            self.masker.mask_author(topic, uid, is_staff)
            teaser = batch.teasers[i]
            if teaser:
                self.masker.mask_author(teaser, uid, is_staff)

            topic["teaser"] = teaser
            topic["ignored"] = follow[i]["ignoring"]
            topic["followed"] = follow[i]["following"]
            topic["unread"] = uid <= 0 or (not has_read[i] and not topic["ignored"])
            topic["bookmark"] = bookmark_position(bookmarks[i], topic.get("postcount"), sort)
            topic["unreplied"] = teaser is None
            topic["icons"] = []
            result.append(topic)

        logger.debug("get_topics_by_tids kept %d of %d topics for uid=%s", len(result), len(tids), uid)

        hooked = await self.hooks.fire(HOOK_TOPICS_GET, {"topics": result, "uid": uid})
        topics = hooked.get("topics") if isinstance(hooked, Mapping) else None
        if not isinstance(topics, list):
            logger.warning("%s returned no topic list; using unfiltered topics", HOOK_TOPICS_GET)
            topics = result

        async def finish(topic: Any) -> None:
            if not isinstance(topic, MutableMapping):
                return
            topic["private"] = normalize_int_flag(topic.get("private"))
            topic["isAdminOrMod"] = await self.privileges.is_admin_or_mod(topic.get("tid"), uid)

        await asyncio.gather(*(finish(topic) for topic in topics))
        return topics

    async def get_topics(self, tids: Any, options: Any = None) -> list[Any]:
        """Return the topics of ``tids`` the viewer may read and see."""
        if not isinstance(tids, list) or not tids:
            return []
        uid = viewer_uid_of(options)
        readable = await self.privileges.filter_tids("topics:read", tids, uid)
        rows = await self.topics.get_topics_fields(readable, _POLICY_FIELDS)
        visible = await filter_visible_topics([row for row in rows if row], uid, self.privileges)
        return await self.get_topics_by_tids([row["tid"] for row in visible], options)

    async def get_topics_from_set(
        self, set_key: str, options: Any, start: int, stop: int
    ) -> dict[str, Any]:
        """Return one page of a topic index such as ``cid:<cid>:tids``."""
        tids = await self.topics.get_sorted_set_range(set_key, start, stop, reverse=True)
        topics = await self.get_topics(tids, options)
        calculate_topic_indices(topics, start)
        return {"topics": topics, "nextStart": stop + 1}

    async def get_visible_counts(self, cid: Any, options: Any = None) -> dict[str, Any]:
        """Return topic and post totals of a category counting only visible topics.

        Raises:
            CategoryNotFoundError: If the category does not exist.
        """
        category = await self.categories.get_category_data(cid)
        uid = viewer_uid_of(options)
        tids = await self.topics.get_sorted_set_range(f"cid:{category['cid']}:tids", 0, -1)
        readable = await self.privileges.filter_tids("topics:read", tids, uid)
        rows = await self.topics.get_topics_fields(readable, _POLICY_FIELDS)
        visible = await filter_visible_topics([row for row in rows if row], uid, self.privileges)
        return {
            "cid": category["cid"],
            "topicCount": len(visible),
            "postCount": sum(parse_int(row.get("postcount")) or 0 for row in visible),
        }

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def exists(self, tids: Any) -> bool | list[bool]:
        """Return whether each topic exists; a single tid gives a single bool."""
        if isinstance(tids, list):
            return await self.topics.exists(tids)
        found = await self.topics.exists([tids])
        return found[0]

    async def is_locked(self, tid: Any) -> bool:
        return parse_int_flag(await self.topics.get_topic_field(tid, "locked"))

    async def get_main_pids(self, tids: Any) -> list[Any]:
        if not isinstance(tids, list) or not tids:
            return []
        rows = await self.topics.get_topics_fields(tids, ["mainPid"])
        return [row["mainPid"] if row else None for row in rows]

    async def get_main_posts(self, tids: Any, options: Any = None) -> list[dict[str, Any]]:
        """Return the first post of each visible topic with its author projected."""
        uid = viewer_uid_of(options)
        pids = [pid for pid in await self.get_main_pids(tids) if pid]
        posts = [post for post in await self.posts.get_posts_by_pids(pids) if post]
        for post in posts:
            post["index"] = MAIN_POST_INDEX
        posts = await filter_visible_posts(posts, uid, self.privileges, self.topics, self.posts)
        staff = await asyncio.gather(
            *(self.privileges.is_admin_or_mod(post["tid"], uid) for post in posts)
        )
        for post, is_staff in zip(posts, staff, strict=True):
            self.masker.mask_author(post, uid, is_staff)
        return posts

    async def get_main_post(self, tid: Any, options: Any = None) -> dict[str, Any] | None:
        posts = await self.get_main_posts([tid], options)
        return posts[0] if posts else None

    async def search(self, tid: Any, term: Any) -> list[Any]:
        """Return post ids of topic ``tid`` matching ``term`` as answered by search plugins.

        Raises:
            InvalidDataError: If ``tid`` or ``term`` is empty.
        """
        if not tid or not term:
            raise InvalidDataError()
        result = await self.hooks.fire(HOOK_TOPIC_SEARCH, {"tid": tid, "term": term, "ids": []})
        if isinstance(result, list):
            return result
        ids = result.get("ids") if isinstance(result, Mapping) else None
        return ids if isinstance(ids, list) else []

    async def get_visible_topic(self, tid: Any, options: Any = None) -> dict[str, Any]:
        """Return the topic record of ``tid`` if the viewer may read and see it.

        Raises:
            TopicNotFoundError: If the topic is missing or hidden from the viewer.
        """
        uid = viewer_uid_of(options)
        topic = await self.topics.get_topic_data(tid)
        if topic is None or not await self.privileges.filter_tids("topics:read", [tid], uid):
            raise TopicNotFoundError(tid)
        if not await is_topic_visible(topic, uid, self.privileges):
            raise TopicNotFoundError(tid)
        return topic

    # ------------------------------------------------------------------
    # Single topic page
    # ------------------------------------------------------------------

    async def _actor(self, uid: Any) -> dict[str, Any] | None:
        if not parse_int(uid):
            return None
        return await self.users.get_user_fields(uid, ACTOR_FIELDS)

    async def _title_of(self, tid: Any) -> str | None:
        if not parse_int(tid):
            return None
        rows = await self.topics.get_topics_fields([tid], ["title"])
        return rows[0]["title"] if rows[0] else None

    async def _merger(self, topic: Mapping[str, Any]) -> dict[str, Any] | None:
        merger = await self._actor(topic.get("mergerUid"))
        if merger is not None:
            merger["mergedIntoTitle"] = await self._title_of(topic.get("mergeIntoTid"))
        return merger

    async def _forker(self, topic: Mapping[str, Any]) -> dict[str, Any] | None:
        forker = await self._actor(topic.get("forkerUid"))
        if forker is not None:
            forker["forkedFromTitle"] = await self._title_of(topic.get("forkedFromTid"))
        return forker

    async def _related(self, topic: Mapping[str, Any], uid: int) -> list[dict[str, Any]]:
        related = await self.topics.get_related_topics(topic)
        if not related:
            return []
        readable = set(
            await self.privileges.filter_tids("topics:read", [t["tid"] for t in related], uid)
        )
        visible = await filter_visible_topics(
            [t for t in related if t["tid"] in readable], uid, self.privileges
        )
        staff = await asyncio.gather(
            *(self.privileges.is_admin_or_mod(t["tid"], uid) for t in visible)
        )
        for related_topic, is_staff in zip(visible, staff, strict=True):
            if should_mask(related_topic, uid, is_staff):
                related_topic["uid"] = 0
        return visible

    async def get_topic_with_posts(
        self,
        topic: Mapping[str, Any],
        set_key: str,
        viewer_uid: Any,
        start: int,
        stop: int,
        reverse: bool = False,
    ) -> dict[str, Any]:
        """Assemble the full topic page for one viewer.

        ``topic`` is not modified; the returned record is a copy carrying
        the post page, category, viewer state and lifecycle actors. Each post
        gets the timeline events that happened between it and the next post.
        """
        topic = dict(topic)
        uid = parse_int(viewer_uid) or 0
        tid = topic["tid"]

        (
            posts,
            category,
            whitelist,
            tools,
            follow,
            bookmark,
            sharing,
            deleter,
            merger,
            forker,
            related,
            thumbs,
            events,
            is_staff,
        ) = await asyncio.gather(
            self.posts.get_topic_posts(topic, set_key, start, stop, reverse=reverse),
            self.categories.get_category_data(topic["cid"]),
            self.categories.get_tag_whitelist([topic["cid"]]),
            self.hooks.fire(HOOK_TOPIC_THREAD_TOOLS, {"topic": topic, "uid": uid, "tools": []}),
            self.topics.get_follow_data([tid], uid),
            self.topics.get_user_bookmark(tid, uid),
            self.categories.get_active_post_sharing(),
            self._actor(topic.get("deleterUid")),
            self._merger(topic),
            self._forker(topic),
            self._related(topic, uid),
            self.topics.get_thumbs([topic]),
            self.topics.get_events(tid, reverse=reverse),
            self.privileges.is_admin_or_mod(tid, uid),
        )

        for post in posts:
            window = events_in_window(events, post.get("eventStart"), post.get("eventEnd"))
            post["events"] = merge_consecutive_share_events(window)
            post.pop("eventStart", None)
            post.pop("eventEnd", None)
            self.masker.mask_author(post, uid, is_staff)

        if should_mask(topic, uid, is_staff):
            topic["uid"] = 0

        topic["thumbs"] = thumbs[0]
        topic["posts"] = posts
        topic["category"] = category
        topic["tagWhitelist"] = whitelist[0]
        topic["minTags"] = category["minTags"]
        topic["maxTags"] = category["maxTags"]
        topic["thread_tools"] = tools.get("tools", []) if isinstance(tools, Mapping) else []
        topic["isFollowing"] = follow[0]["following"]
        topic["isNotFollowing"] = not follow[0]["following"] and not follow[0]["ignoring"]
        topic["isIgnoring"] = follow[0]["ignoring"]
        topic["bookmark"] = bookmark
        topic["postSharing"] = sharing
        topic["deleter"] = deleter
        if deleter:
            topic["deletedTimestampISO"] = to_iso_string(topic.get("deletedTimestamp"))
        topic["merger"] = merger
        if merger:
            topic["mergedTimestampISO"] = to_iso_string(topic.get("mergedTimestamp"))
        topic["forker"] = forker
        if forker:
            topic["forkTimestampISO"] = to_iso_string(topic.get("forkTimestamp"))
        topic["related"] = related or []
        topic["unreplied"] = parse_int(topic.get("postcount")) == 1
        topic["icons"] = []

        result = await self.hooks.fire(HOOK_TOPIC_GET, {"topic": topic, "uid": uid})
        return result["topic"]
