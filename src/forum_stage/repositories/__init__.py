"""Read-only repositories over the forum database."""

from .category_repo import CategoryRepository
from .post_repo import PostRepository
from .topic_repo import TopicRepository
from .user_repo import UserRepository

__all__ = ["CategoryRepository", "PostRepository", "TopicRepository", "UserRepository"]
