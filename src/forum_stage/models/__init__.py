# src/forum_stage/models/__init__.py
"""SQLAlchemy models for the forum stage application."""

from .category import Category, CategoryModerator, CategoryReader
from .post import Post
from .reader_state import PostSharingNetwork, TopicBookmark, TopicFollow, TopicRead
from .topic import RelatedTopic, Topic, TopicEvent, TopicThumb
from .user import User

__all__ = [
    "Category", "CategoryModerator", "CategoryReader",
    "Post",
    "PostSharingNetwork", "TopicBookmark", "TopicFollow", "TopicRead",
    "RelatedTopic", "Topic", "TopicEvent", "TopicThumb",
    "User",
]
