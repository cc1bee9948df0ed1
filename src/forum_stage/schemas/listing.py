# src/forum_stage/schemas/listing.py
"""Response envelopes for paged listings.

Topic and post records are open-ended (plugins may add fields through
hooks), so they are passed through as plain mappings.
"""

from typing import Any

from pydantic import BaseModel, Field


class TopicsPage(BaseModel):
    """One page of a category's topics."""

    topics: list[dict[str, Any]]
    nextStart: int = Field(..., description="Start offset of the following page")


class RecentPostsPage(BaseModel):
    """One page of recent posts."""

    posts: list[dict[str, Any]]
    nextStart: int = Field(..., description="Start offset of the following page")


class CategoryCounts(BaseModel):
    """Topic and post totals of a category as seen by the viewer."""

    cid: int
    topicCount: int
    postCount: int


class TopicSearchResult(BaseModel):
    """Post ids matching a search inside one topic."""

    tid: int
    term: str
    ids: list[Any]
