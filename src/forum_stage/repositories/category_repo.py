"""Data access helpers for categories and sharing configuration."""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from forum_stage.core.exceptions import CategoryNotFoundError
from forum_stage.models import Category, PostSharingNetwork
from forum_stage.utils.flags import parse_int

__all__ = ["CategoryRepository", "LIST_CATEGORY_FIELDS"]

LIST_CATEGORY_FIELDS = (
    "cid",
    "name",
    "slug",
    "icon",
    "backgroundImage",
    "imageClass",
    "bgColor",
    "color",
    "disabled",
)


def _category_to_dict(category: Category) -> dict[str, Any]:
    return {
        "cid": category.cid,
        "name": category.name,
        "slug": category.slug,
        "icon": category.icon,
        "backgroundImage": category.background_image,
        "imageClass": category.image_class,
        "bgColor": category.bg_color,
        "color": category.color,
        "disabled": int(category.disabled),
        "readRestricted": int(category.read_restricted),
        "minTags": category.min_tags,
        "maxTags": category.max_tags,
    }


class CategoryRepository:
    """Read-only access to categories."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def _load(self, cids: Sequence[Any]) -> dict[int, Category]:
        ids = [cid for cid in (parse_int(c) for c in cids) if cid is not None]
        if not ids:
            return {}
        rows = self.session.execute(select(Category).where(Category.cid.in_(ids))).scalars()
        return {row.cid: row for row in rows}

    async def get_categories_fields(
        self, cids: Sequence[Any], fields: Sequence[str] = LIST_CATEGORY_FIELDS
    ) -> list[dict[str, Any] | None]:
        """Return the requested fields of each category in ``cids`` order."""
        found = self._load(cids)
        result: list[dict[str, Any] | None] = []
        for cid in cids:
            row = found.get(parse_int(cid))  # type: ignore[arg-type]
            if row is None:
                result.append(None)
                continue
            record = _category_to_dict(row)
            result.append({field: record.get(field) for field in fields})
        return result

    async def get_category_data(self, cid: Any) -> dict[str, Any]:
        """Return the full record of one category.

        Raises:
            CategoryNotFoundError: If no category exists for ``cid``.
        """
        row = self._load([cid]).get(parse_int(cid))  # type: ignore[arg-type]
        if row is None:
            raise CategoryNotFoundError(cid)
        return _category_to_dict(row)

    async def get_tag_whitelist(self, cids: Sequence[Any]) -> list[list[str]]:
        """Return the allowed tags of each category (empty list means any)."""
        found = self._load(cids)
        result = []
        for cid in cids:
            row = found.get(parse_int(cid))  # type: ignore[arg-type]
            raw = row.tag_whitelist if row is not None else ""
            result.append([tag.strip() for tag in raw.split(",") if tag.strip()])
        return result

    async def get_active_post_sharing(self) -> list[dict[str, Any]]:
        """Return the sharing networks enabled for posts."""
        rows = self.session.execute(
            select(PostSharingNetwork)
            .where(PostSharingNetwork.active.is_(True))
            .order_by(PostSharingNetwork.id.asc())
        ).scalars()
        return [{"id": row.id, "name": row.name, "class": row.icon, "activated": True} for row in rows]
