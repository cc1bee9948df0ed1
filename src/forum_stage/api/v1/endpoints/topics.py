# src/forum_stage/api/v1/endpoints/topics.py
"""Topic page endpoints."""

from typing import Any

from fastapi import APIRouter, HTTPException, Query, status

from forum_stage.api.v1.dependencies import TopicServiceDep, ViewerUidDep
from forum_stage.core.exceptions import InvalidDataError, NotFoundError
from forum_stage.schemas import TopicSearchResult
from forum_stage.services import TopicService
from forum_stage.services.topic_service import post_set_for

router = APIRouter(prefix="/topics", tags=["topics"])


async def _visible_topic(service: TopicService, tid: int, uid: int) -> dict[str, Any]:
    # Hidden and missing topics answer the same way.
    try:
        return await service.get_visible_topic(tid, uid)
    except NotFoundError as err:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Topic not found",
        ) from err


@router.get("/{tid}")
async def get_topic(
    tid: int,
    service: TopicServiceDep,
    uid: ViewerUidDep,
    start: int = Query(0, ge=0, description="Offset of the first post"),
    stop: int = Query(-1, ge=-1, description="Offset of the last post (inclusive, -1 for all)"),
) -> dict[str, Any]:
    """Return the topic page with its posts in the viewer's preferred order.

    Raises:
        HTTPException: 404 if the topic is missing or hidden from the viewer.
    """
    topic = await _visible_topic(service, tid, uid)
    viewer_settings = await service.users.get_settings(uid)
    set_key, reverse = post_set_for(tid, viewer_settings.get("topicPostSort"))
    try:
        return await service.get_topic_with_posts(topic, set_key, uid, start, stop, reverse)
    except NotFoundError as err:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(err),
        ) from err


@router.get("/{tid}/search", response_model=TopicSearchResult)
async def search_topic(
    tid: int,
    service: TopicServiceDep,
    uid: ViewerUidDep,
    term: str = Query("", description="Text to look for inside the topic"),
) -> dict[str, Any]:
    """Return the ids of posts in the topic matching ``term``."""
    await _visible_topic(service, tid, uid)
    try:
        ids = await service.search(tid, term)
    except InvalidDataError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(err),
        ) from err
    return {"tid": tid, "term": term, "ids": ids}
