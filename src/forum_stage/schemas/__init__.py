# src/forum_stage/schemas/__init__.py
"""Pydantic schemas for API responses."""

from .listing import CategoryCounts, RecentPostsPage, TopicSearchResult, TopicsPage

__all__ = ["CategoryCounts", "RecentPostsPage", "TopicSearchResult", "TopicsPage"]
