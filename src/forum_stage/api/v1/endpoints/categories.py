# src/forum_stage/api/v1/endpoints/categories.py
"""Category listing endpoints."""

from typing import Any

from fastapi import APIRouter, HTTPException, Query, status

from forum_stage.api.v1.dependencies import SettingsDep, TopicServiceDep, ViewerUidDep
from forum_stage.core.exceptions import CategoryNotFoundError
from forum_stage.schemas import CategoryCounts, TopicsPage
from forum_stage.services import TopicService

router = APIRouter(prefix="/categories", tags=["categories"])


async def _require_readable(service: TopicService, cid: int, uid: int) -> None:
    try:
        await service.categories.get_category_data(cid)
    except CategoryNotFoundError as err:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found",
        ) from err
    if not await service.privileges.can_read_category(cid, uid):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="[[error:no-privileges]]",
        )


@router.get("/{cid}/topics", response_model=TopicsPage)
async def list_category_topics(
    cid: int,
    service: TopicServiceDep,
    uid: ViewerUidDep,
    app_settings: SettingsDep,
    start: int = Query(0, ge=0, description="Offset of the first topic"),
    stop: int | None = Query(None, ge=0, description="Offset of the last topic (inclusive)"),
) -> dict[str, Any]:
    """Return one page of the category's topics, newest activity first.

    Private topics the viewer may not see are left out and anonymous
    authors are masked.
    """
    await _require_readable(service, cid, uid)
    if stop is None:
        stop = start + app_settings.topics_per_page - 1
    return await service.get_topics_from_set(f"cid:{cid}:tids", uid, start, stop)


@router.get("/{cid}/counts", response_model=CategoryCounts)
async def category_counts(
    cid: int,
    service: TopicServiceDep,
    uid: ViewerUidDep,
) -> dict[str, Any]:
    """Return topic and post totals counting only topics visible to the viewer."""
    await _require_readable(service, cid, uid)
    return await service.get_visible_counts(cid, uid)
