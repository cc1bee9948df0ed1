# src/forum_stage/models/post.py
"""SQLAlchemy models for posts."""

from sqlalchemy import BigInteger, ForeignKey, Index, Integer, SmallInteger, Text
from sqlalchemy.orm import Mapped, mapped_column

from forum_stage.db.session import Base


class Post(Base):
    """A single message inside a topic.

    The position of a post in its topic is not stored; it is derived from
    timestamp order when the topic is read.
    """

    __tablename__ = "post"
    __table_args__ = (
        Index("ix_post_tid_timestamp", "tid", "timestamp"),
        Index("ix_post_timestamp", "timestamp"),
    )

    pid: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tid: Mapped[int] = mapped_column(
        Integer, ForeignKey("topic.tid", ondelete="CASCADE"), nullable=False
    )
    # 0 for guest posts; ``handle`` then carries the name the guest typed.
    uid: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    handle: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Epoch milliseconds.
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # Copied from the topic at creation; a reply may override it.
    anonymous: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)
    deleted: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)
    votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
