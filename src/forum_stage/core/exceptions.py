"""Domain exceptions raised by the forum core.

Permission problems are never raised from here: an item the viewer may not
see is simply left out of the result.
"""

from __future__ import annotations


class ForumError(RuntimeError):
    """Base class for all forum-stage errors."""


class NotFoundError(ForumError):
    """Raised when an id cannot be resolved to a stored record."""

    kind = "object"

    def __init__(self, ident: object | None = None, message: str | None = None) -> None:
        self.ident = ident
        if message is None:
            message = (
                f"{self.kind} {ident} not found" if ident is not None else f"{self.kind} not found"
            )
        super().__init__(message)


class TopicNotFoundError(NotFoundError):
    """No topic exists for the given tid."""

    kind = "topic"


class PostNotFoundError(NotFoundError):
    """No post exists for the given pid."""

    kind = "post"


class CategoryNotFoundError(NotFoundError):
    """No category exists for the given cid."""

    kind = "category"


class InvalidDataError(ForumError):
    """Raised when an operation receives arguments it cannot work with."""

    def __init__(self, message: str = "invalid-data") -> None:
        super().__init__(message)
