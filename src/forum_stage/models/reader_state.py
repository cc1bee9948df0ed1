"""Per-viewer topic state: follow, read markers and bookmarks."""

from sqlalchemy import BigInteger, Boolean, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from forum_stage.db.session import Base

FOLLOW_STATE_FOLLOWING = "following"
FOLLOW_STATE_IGNORING = "ignoring"


class TopicFollow(Base):
    """Watch state of a user on a topic; absence means neither."""

    __tablename__ = "topic_follow"

    tid: Mapped[int] = mapped_column(
        Integer, ForeignKey("topic.tid", ondelete="CASCADE"), primary_key=True
    )
    uid: Mapped[int] = mapped_column(
        Integer, ForeignKey("forum_user.uid", ondelete="CASCADE"), primary_key=True
    )
    state: Mapped[str] = mapped_column(Text, nullable=False, default=FOLLOW_STATE_FOLLOWING)


class TopicRead(Base):
    """Read marker; presence means the user has read the topic."""

    __tablename__ = "topic_read"

    tid: Mapped[int] = mapped_column(
        Integer, ForeignKey("topic.tid", ondelete="CASCADE"), primary_key=True
    )
    uid: Mapped[int] = mapped_column(
        Integer, ForeignKey("forum_user.uid", ondelete="CASCADE"), primary_key=True
    )
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


class TopicBookmark(Base):
    """Last post index the user reached in a topic."""

    __tablename__ = "topic_bookmark"

    tid: Mapped[int] = mapped_column(
        Integer, ForeignKey("topic.tid", ondelete="CASCADE"), primary_key=True
    )
    uid: Mapped[int] = mapped_column(
        Integer, ForeignKey("forum_user.uid", ondelete="CASCADE"), primary_key=True
    )
    post_index: Mapped[int] = mapped_column(Integer, nullable=False)


class PostSharingNetwork(Base):
    """Social network a post can be shared to."""

    __tablename__ = "post_sharing_network"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    icon: Mapped[str] = mapped_column(Text, nullable=False, default="")
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
