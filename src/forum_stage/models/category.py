"""SQLAlchemy models for categories and per-category grants."""
from sqlalchemy import Boolean, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from forum_stage.db.session import Base


class Category(Base):
    """Category metadata used for grouping topics."""

    __tablename__ = "category"

    cid: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, nullable=False, default="")
    icon: Mapped[str | None] = mapped_column(Text, nullable=True)
    background_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_class: Mapped[str] = mapped_column(Text, nullable=False, default="cover")
    bg_color: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str | None] = mapped_column(Text, nullable=True)
    disabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Restricted categories are readable only by staff and explicit readers.
    read_restricted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    min_tags: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_tags: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    # Comma separated; empty means any tag.
    tag_whitelist: Mapped[str] = mapped_column(Text, nullable=False, default="")


class CategoryModerator(Base):
    """Join table granting moderation rights over a category."""

    __tablename__ = "category_moderator"

    cid: Mapped[int] = mapped_column(
        Integer, ForeignKey("category.cid", ondelete="CASCADE"), primary_key=True
    )
    uid: Mapped[int] = mapped_column(
        Integer, ForeignKey("forum_user.uid", ondelete="CASCADE"), primary_key=True
    )


class CategoryReader(Base):
    """Explicit read grant on a restricted category."""

    __tablename__ = "category_reader"

    cid: Mapped[int] = mapped_column(
        Integer, ForeignKey("category.cid", ondelete="CASCADE"), primary_key=True
    )
    uid: Mapped[int] = mapped_column(
        Integer, ForeignKey("forum_user.uid", ondelete="CASCADE"), primary_key=True
    )
