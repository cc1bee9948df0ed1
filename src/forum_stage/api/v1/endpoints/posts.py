# src/forum_stage/api/v1/endpoints/posts.py
"""Post-related endpoints: recent posts and permalinks."""

from typing import Any

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import RedirectResponse

from forum_stage.api.v1.dependencies import PostServiceDep, SettingsDep, ViewerUidDep
from forum_stage.schemas import RecentPostsPage
from forum_stage.services.post_service import RECENT_TERMS

router = APIRouter(tags=["posts"])

ALLTIME = "alltime"


@router.get("/posts/recent", response_model=RecentPostsPage)
@router.get("/posts/recent/{term}", response_model=RecentPostsPage)
async def recent_posts(
    service: PostServiceDep,
    uid: ViewerUidDep,
    app_settings: SettingsDep,
    term: str = ALLTIME,
    start: int = Query(0, ge=0, description="Offset of the first post"),
    stop: int | None = Query(None, ge=0, description="Offset of the last post (inclusive)"),
) -> dict[str, Any]:
    """Return the newest posts of ``term`` (day, week, month or alltime).

    Raises:
        HTTPException: 400 for an unknown term.
    """
    if term != ALLTIME and term not in RECENT_TERMS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown term {term!r}",
        )
    if stop is None:
        stop = start + app_settings.recent_posts_per_page - 1
    return await service.get_recent_posts(uid, start, stop, term)


@router.get("/post/{pid}")
async def post_permalink(
    pid: str,
    service: PostServiceDep,
    uid: ViewerUidDep,
) -> RedirectResponse:
    """Redirect a post permalink to the post's position inside its topic.

    Raises:
        HTTPException: 404 if the post does not exist, 403 if the viewer may
            not read it.
    """
    target = await service.resolve_redirect(pid, uid)
    if not target["path"]:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found",
        )
    if not target["canRead"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="[[error:no-privileges]]",
        )
    return RedirectResponse(url=target["path"], status_code=status.HTTP_302_FOUND)
