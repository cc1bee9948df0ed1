"""Core configuration and error types."""

from .exceptions import (
    CategoryNotFoundError,
    ForumError,
    InvalidDataError,
    NotFoundError,
    PostNotFoundError,
    TopicNotFoundError,
)
from .settings import Settings

__all__ = [
    "Settings",
    "ForumError",
    "NotFoundError",
    "TopicNotFoundError",
    "PostNotFoundError",
    "CategoryNotFoundError",
    "InvalidDataError",
]
