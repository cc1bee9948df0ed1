"""initial forum schema

Revision ID: 5b1e0c7a9d42
Revises:
Create Date: 2026-10-19 09:12:40.318204

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5b1e0c7a9d42"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, categories, topics, posts and per-viewer state."""
    op.create_table(
        "forum_user",
        sa.Column("uid", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("userslug", sa.Text(), nullable=False),
        sa.Column("fullname", sa.Text(), nullable=True),
        sa.Column("picture", sa.Text(), nullable=True),
        sa.Column("signature", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("reputation", sa.Integer(), nullable=False),
        sa.Column("postcount", sa.Integer(), nullable=False),
        sa.Column("banned", sa.Integer(), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False),
        sa.Column("is_global_mod", sa.Boolean(), nullable=False),
        sa.Column("show_fullname", sa.Boolean(), nullable=False),
        sa.Column("topic_post_sort", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("uid"),
    )
    op.create_table(
        "category",
        sa.Column("cid", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("slug", sa.Text(), nullable=False),
        sa.Column("icon", sa.Text(), nullable=True),
        sa.Column("background_image", sa.Text(), nullable=True),
        sa.Column("image_class", sa.Text(), nullable=False),
        sa.Column("bg_color", sa.Text(), nullable=True),
        sa.Column("color", sa.Text(), nullable=True),
        sa.Column("disabled", sa.Boolean(), nullable=False),
        sa.Column("read_restricted", sa.Boolean(), nullable=False),
        sa.Column("min_tags", sa.Integer(), nullable=False),
        sa.Column("max_tags", sa.Integer(), nullable=False),
        sa.Column("tag_whitelist", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("cid"),
    )
    for grant in ("category_moderator", "category_reader"):
        op.create_table(
            grant,
            sa.Column("cid", sa.Integer(), nullable=False),
            sa.Column("uid", sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(["cid"], ["category.cid"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["uid"], ["forum_user.uid"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("cid", "uid"),
        )
    op.create_table(
        "topic",
        sa.Column("tid", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("uid", sa.Integer(), nullable=False),
        sa.Column("cid", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("slug", sa.Text(), nullable=False),
        sa.Column("main_pid", sa.Integer(), nullable=True),
        sa.Column("postcount", sa.Integer(), nullable=False),
        sa.Column("viewcount", sa.Integer(), nullable=False),
        sa.Column("private", sa.SmallInteger(), nullable=False),
        sa.Column("anonymous", sa.SmallInteger(), nullable=False),
        sa.Column("locked", sa.SmallInteger(), nullable=False),
        sa.Column("pinned", sa.SmallInteger(), nullable=False),
        sa.Column("deleted", sa.SmallInteger(), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("lastposttime", sa.BigInteger(), nullable=False),
        sa.Column("deleter_uid", sa.Integer(), nullable=True),
        sa.Column("deleted_timestamp", sa.BigInteger(), nullable=True),
        sa.Column("merger_uid", sa.Integer(), nullable=True),
        sa.Column("merge_into_tid", sa.Integer(), nullable=True),
        sa.Column("merged_timestamp", sa.BigInteger(), nullable=True),
        sa.Column("forker_uid", sa.Integer(), nullable=True),
        sa.Column("forked_from_tid", sa.Integer(), nullable=True),
        sa.Column("fork_timestamp", sa.BigInteger(), nullable=True),
        sa.ForeignKeyConstraint(["cid"], ["category.cid"]),
        sa.PrimaryKeyConstraint("tid"),
    )
    op.create_index("ix_topic_cid_lastposttime", "topic", ["cid", "lastposttime"])
    op.create_table(
        "post",
        sa.Column("pid", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tid", sa.Integer(), nullable=False),
        sa.Column("uid", sa.Integer(), nullable=False),
        sa.Column("handle", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("anonymous", sa.SmallInteger(), nullable=False),
        sa.Column("deleted", sa.SmallInteger(), nullable=False),
        sa.Column("votes", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["tid"], ["topic.tid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("pid"),
    )
    op.create_index("ix_post_tid_timestamp", "post", ["tid", "timestamp"])
    op.create_index("ix_post_timestamp", "post", ["timestamp"])
    op.create_table(
        "topic_thumb",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tid", sa.Integer(), nullable=False),
        sa.Column("path", sa.Text(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["tid"], ["topic.tid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "topic_event",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tid", sa.Integer(), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("uid", sa.Integer(), nullable=True),
        sa.Column("text", sa.Text(), nullable=True),
        sa.Column("network", sa.Text(), nullable=True),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(["tid"], ["topic.tid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "related_topic",
        sa.Column("tid", sa.Integer(), nullable=False),
        sa.Column("related_tid", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["tid"], ["topic.tid"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["related_tid"], ["topic.tid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("tid", "related_tid"),
    )
    op.create_table(
        "topic_follow",
        sa.Column("tid", sa.Integer(), nullable=False),
        sa.Column("uid", sa.Integer(), nullable=False),
        sa.Column("state", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(["tid"], ["topic.tid"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["uid"], ["forum_user.uid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("tid", "uid"),
    )
    op.create_table(
        "topic_read",
        sa.Column("tid", sa.Integer(), nullable=False),
        sa.Column("uid", sa.Integer(), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(["tid"], ["topic.tid"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["uid"], ["forum_user.uid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("tid", "uid"),
    )
    op.create_table(
        "topic_bookmark",
        sa.Column("tid", sa.Integer(), nullable=False),
        sa.Column("uid", sa.Integer(), nullable=False),
        sa.Column("post_index", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["tid"], ["topic.tid"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["uid"], ["forum_user.uid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("tid", "uid"),
    )
    op.create_table(
        "post_sharing_network",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("icon", sa.Text(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    """Drop every forum table."""
    for table in (
        "post_sharing_network",
        "topic_bookmark",
        "topic_read",
        "topic_follow",
        "related_topic",
        "topic_event",
        "topic_thumb",
    ):
        op.drop_table(table)
    op.drop_index("ix_post_timestamp", table_name="post")
    op.drop_index("ix_post_tid_timestamp", table_name="post")
    op.drop_table("post")
    op.drop_index("ix_topic_cid_lastposttime", table_name="topic")
    op.drop_table("topic")
    op.drop_table("category_reader")
    op.drop_table("category_moderator")
    op.drop_table("category")
    op.drop_table("forum_user")
