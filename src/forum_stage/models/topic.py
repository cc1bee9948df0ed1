# src/forum_stage/models/topic.py
"""SQLAlchemy models for topics and per-topic attributes."""

from sqlalchemy import BigInteger, ForeignKey, Index, Integer, SmallInteger, Text
from sqlalchemy.orm import Mapped, mapped_column

from forum_stage.db.session import Base


class Topic(Base):
    """A discussion thread inside a category.

    ``private`` and ``anonymous`` are independent 0/1 flags. Lifecycle columns
    are written by the delete/merge/fork flows and only read here.
    """

    __tablename__ = "topic"
    __table_args__ = (Index("ix_topic_cid_lastposttime", "cid", "lastposttime"),)

    tid: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # 0 for topics started by guests.
    uid: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cid: Mapped[int] = mapped_column(Integer, ForeignKey("category.cid"), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, nullable=False, default="")
    main_pid: Mapped[int | None] = mapped_column(Integer, nullable=True)
    postcount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    viewcount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    private: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)
    anonymous: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)
    locked: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)
    pinned: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)
    deleted: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)

    # Epoch milliseconds.
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    lastposttime: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    deleter_uid: Mapped[int | None] = mapped_column(Integer, nullable=True)
    deleted_timestamp: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    merger_uid: Mapped[int | None] = mapped_column(Integer, nullable=True)
    merge_into_tid: Mapped[int | None] = mapped_column(Integer, nullable=True)
    merged_timestamp: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    forker_uid: Mapped[int | None] = mapped_column(Integer, nullable=True)
    forked_from_tid: Mapped[int | None] = mapped_column(Integer, nullable=True)
    fork_timestamp: Mapped[int | None] = mapped_column(BigInteger, nullable=True)


class TopicThumb(Base):
    """Thumbnail image attached to a topic."""

    __tablename__ = "topic_thumb"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tid: Mapped[int] = mapped_column(
        Integer, ForeignKey("topic.tid", ondelete="CASCADE"), nullable=False
    )
    path: Mapped[str] = mapped_column(Text, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class TopicEvent(Base):
    """Timeline event (pin, lock, move, share...) recorded against a topic."""

    __tablename__ = "topic_event"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tid: Mapped[int] = mapped_column(
        Integer, ForeignKey("topic.tid", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(Text, nullable=False)
    uid: Mapped[int | None] = mapped_column(Integer, nullable=True)
    text: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Sharing events name the network they were shared to.
    network: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)


class RelatedTopic(Base):
    """Precomputed link between two topics."""

    __tablename__ = "related_topic"

    tid: Mapped[int] = mapped_column(
        Integer, ForeignKey("topic.tid", ondelete="CASCADE"), primary_key=True
    )
    related_tid: Mapped[int] = mapped_column(
        Integer, ForeignKey("topic.tid", ondelete="CASCADE"), primary_key=True
    )
