# src/forum_stage/models/user.py
"""SQLAlchemy models for forum accounts."""

from __future__ import annotations

from sqlalchemy import Boolean, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from forum_stage.db.session import Base

SORT_OLDEST_TO_NEWEST = "oldest_to_newest"
SORT_NEWEST_TO_OLDEST = "newest_to_oldest"
SORT_MOST_VOTES = "most_votes"


class User(Base):
    """Registered account; uid 0 is reserved for guests and masked authors."""

    __tablename__ = "forum_user"

    uid: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(Text, nullable=False)
    userslug: Mapped[str] = mapped_column(Text, nullable=False, default="")
    fullname: Mapped[str | None] = mapped_column(Text, nullable=True)
    picture: Mapped[str | None] = mapped_column(Text, nullable=True)
    signature: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(Text, nullable=False, default="online")
    reputation: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    postcount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    banned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Group membership collapsed into flags.
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_global_mod: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Per-user settings.
    show_fullname: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    topic_post_sort: Mapped[str] = mapped_column(
        Text, nullable=False, default=SORT_OLDEST_TO_NEWEST
    )

    @property
    def displayname(self) -> str:
        """Name shown in the UI."""
        return self.username
