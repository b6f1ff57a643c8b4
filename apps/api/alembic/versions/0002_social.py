"""posts, comments, likes and notifications

Revision ID: 0002_social
Revises: 0001_initial
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0002_social"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


post_visibility_enum = postgresql.ENUM("PUBLIC", "FAMILY", "SUBFAMILY", name="postvisibilityenum", create_type=False)
notification_type_enum = postgresql.ENUM(
    "NEW_POST", "POST_LIKE", "NEW_COMMENT", "COMMENT_LIKE", name="notificationtypeenum", create_type=False
)


def upgrade() -> None:
    bind = op.get_bind()
    post_visibility_enum.create(bind, checkfirst=True)
    notification_type_enum.create(bind, checkfirst=True)

    op.create_table(
        "posts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("author_id", sa.Integer(), sa.ForeignKey("members.id"), nullable=False),
        sa.Column("family_id", sa.Integer(), sa.ForeignKey("families.id"), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("image_urls", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("video_url", sa.String(length=1024), nullable=True),
        sa.Column("visibility", post_visibility_enum, nullable=False, server_default="FAMILY"),
        sa.Column("likes_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("edit_history", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_posts_created", "posts", ["created_at"], unique=False)

    op.create_table(
        "post_likes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("post_id", sa.Integer(), sa.ForeignKey("posts.id"), nullable=False),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("members.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("post_id", "member_id", name="uq_post_likes_post_member"),
    )

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("post_id", sa.Integer(), sa.ForeignKey("posts.id"), nullable=False),
        sa.Column("author_id", sa.Integer(), sa.ForeignKey("members.id"), nullable=False),
        sa.Column("parent_comment_id", sa.Integer(), sa.ForeignKey("comments.id"), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("image_url", sa.String(length=1024), nullable=True),
        sa.Column("likes_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_comments_post_parent", "comments", ["post_id", "parent_comment_id"], unique=False)

    op.create_table(
        "comment_likes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("comment_id", sa.Integer(), sa.ForeignKey("comments.id"), nullable=False),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("members.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("comment_id", "member_id", name="uq_comment_likes_comment_member"),
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("members.id"), nullable=False),
        sa.Column("type", notification_type_enum, nullable=False),
        sa.Column("message", sa.String(length=255), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("related_post_id", sa.Integer(), sa.ForeignKey("posts.id"), nullable=True),
        sa.Column("related_comment_id", sa.Integer(), sa.ForeignKey("comments.id"), nullable=True),
        sa.Column("related_member_id", sa.Integer(), sa.ForeignKey("members.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_notifications_member_read", "notifications", ["member_id", "is_read"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_notifications_member_read", table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("comment_likes")
    op.drop_index("ix_comments_post_parent", table_name="comments")
    op.drop_table("comments")
    op.drop_table("post_likes")
    op.drop_index("ix_posts_created", table_name="posts")
    op.drop_table("posts")

    bind = op.get_bind()
    notification_type_enum.drop(bind, checkfirst=True)
    post_visibility_enum.drop(bind, checkfirst=True)
