"""Shared API dependencies for viewer identity and service wiring."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from forum_stage.core.settings import Settings, settings
from forum_stage.db.session import get_db
from forum_stage.services import HookBus, PostService, TopicService
from forum_stage.utils.flags import parse_int

VIEWER_HEADER = "X-Forum-Uid"

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_viewer_uid(
    forum_uid: Annotated[str | None, Header(alias=VIEWER_HEADER)] = None,
) -> int:
    """Return the viewer uid carried by the request; guests are 0.

    Raises:
        HTTPException: If the header is present but not an integer.
    """
    if forum_uid is None or forum_uid == "":
        return 0
    uid = parse_int(forum_uid)
    if uid is None or uid < 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {VIEWER_HEADER} header",
        )
    return uid


def get_settings() -> Settings:
    """Return the application settings."""
    return settings


def get_hook_bus(request: Request) -> HookBus:
    """Return the plugin hook bus owned by the application."""
    hooks = getattr(request.app.state, "hooks", None)
    if hooks is None:
        hooks = HookBus()
        request.app.state.hooks = hooks
    return hooks


ViewerUidDep = Annotated[int, Depends(get_viewer_uid)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
HookBusDep = Annotated[HookBus, Depends(get_hook_bus)]


def get_topic_service(db: SessionDep, hooks: HookBusDep, app_settings: SettingsDep) -> TopicService:
    """Build a topic service bound to the request's session."""
    return TopicService.from_session(db, hooks, app_settings)


def get_post_service(db: SessionDep, hooks: HookBusDep, app_settings: SettingsDep) -> PostService:
    """Build a post service bound to the request's session."""
    return PostService.from_session(db, hooks, app_settings)


TopicServiceDep = Annotated[TopicService, Depends(get_topic_service)]
PostServiceDep = Annotated[PostService, Depends(get_post_service)]
