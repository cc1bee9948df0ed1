# src/forum_stage/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .categories import router as categories_router
from .posts import router as posts_router
from .topics import router as topics_router

__all__ = [
    "categories_router",
    "posts_router",
    "topics_router",
]
