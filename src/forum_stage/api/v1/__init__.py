# src/forum_stage/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import categories_router, posts_router, topics_router

__all__ = [
    "categories_router",
    "posts_router",
    "topics_router",
]
