# src/forum_stage/services/__init__.py
"""Business logic services for the forum stage."""

from .hooks import HookBus
from .identity import IdentityMasker
from .post_service import PostService
from .privileges import PrivilegeService
from .topic_service import TopicService

__all__ = [
    "HookBus",
    "IdentityMasker",
    "PostService",
    "PrivilegeService",
    "TopicService",
]
