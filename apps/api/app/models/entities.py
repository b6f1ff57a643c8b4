from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GenderEnum(str, Enum):
    male = "MALE"
    female = "FEMALE"
    other = "OTHER"
    prefer_not_to_say = "PREFER_NOT_TO_SAY"


class MemberStatusEnum(str, Enum):
    active = "ACTIVE"
    inactive = "INACTIVE"
    deceased = "DECEASED"
    archived = "ARCHIVED"


class FamilyRoleEnum(str, Enum):
    admin = "ADMIN"
    head = "HEAD"
    member = "MEMBER"
    viewer = "VIEWER"


class MembershipTypeEnum(str, Enum):
    main = "MAIN"
    sub = "SUB"


class PostVisibilityEnum(str, Enum):
    public = "PUBLIC"
    family = "FAMILY"
    subfamily = "SUBFAMILY"


class NotificationTypeEnum(str, Enum):
    new_post = "NEW_POST"
    post_like = "POST_LIKE"
    new_comment = "NEW_COMMENT"
    comment_like = "COMMENT_LIKE"


def _sql_enum(enum_cls: type[Enum], name: str) -> SqlEnum:
    return SqlEnum(enum_cls, name=name, values_callable=lambda cls: [item.value for item in cls])


gender_sql_enum = _sql_enum(GenderEnum, "genderenum")
member_status_sql_enum = _sql_enum(MemberStatusEnum, "memberstatusenum")
family_role_sql_enum = _sql_enum(FamilyRoleEnum, "familyroleenum")
membership_type_sql_enum = _sql_enum(MembershipTypeEnum, "membershiptypeenum")
post_visibility_sql_enum = _sql_enum(PostVisibilityEnum, "postvisibilityenum")
notification_type_sql_enum = _sql_enum(NotificationTypeEnum, "notificationtypeenum")


# One row per parent edge; Member.parents and Member.children read the same rows.
member_parents = Table(
    "member_parents",
    Base.metadata,
    Column("child_id", ForeignKey("members.id"), primary_key=True),
    Column("parent_id", ForeignKey("members.id"), primary_key=True),
)

member_spouses = Table(
    "member_spouses",
    Base.metadata,
    Column("member_id", ForeignKey("members.id"), primary_key=True),
    Column("spouse_id", ForeignKey("members.id"), primary_key=True),
)


class Member(Base):
    __tablename__ = "members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True)
    gender: Mapped[GenderEnum | None] = mapped_column(gender_sql_enum)
    status: Mapped[MemberStatusEnum] = mapped_column(member_status_sql_enum, default=MemberStatusEnum.active)
    personal_info: Mapped[str] = mapped_column(Text, default="{}")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)

    parents: Mapped[list[Member]] = relationship(
        secondary=member_parents,
        primaryjoin=lambda: Member.id == member_parents.c.child_id,
        secondaryjoin=lambda: Member.id == member_parents.c.parent_id,
        back_populates="children",
        order_by=lambda: Member.id,
    )
    children: Mapped[list[Member]] = relationship(
        secondary=member_parents,
        primaryjoin=lambda: Member.id == member_parents.c.parent_id,
        secondaryjoin=lambda: Member.id == member_parents.c.child_id,
        back_populates="parents",
        order_by=lambda: Member.id,
    )
    spouses: Mapped[list[Member]] = relationship(
        secondary=member_spouses,
        primaryjoin=lambda: Member.id == member_spouses.c.member_id,
        secondaryjoin=lambda: Member.id == member_spouses.c.spouse_id,
        back_populates="spouses_reverse",
        order_by=lambda: Member.id,
    )
    spouses_reverse: Mapped[list[Member]] = relationship(
        secondary=member_spouses,
        primaryjoin=lambda: Member.id == member_spouses.c.spouse_id,
        secondaryjoin=lambda: Member.id == member_spouses.c.member_id,
        back_populates="spouses",
        order_by=lambda: Member.id,
    )

    @property
    def all_spouses(self) -> list[Member]:
        # Spouse edges are stored once, from whichever side created them.
        seen: dict[int, Member] = {}
        for spouse in [*self.spouses, *self.spouses_reverse]:
            seen.setdefault(spouse.id, spouse)
        return list(seen.values())


class Family(Base):
    __tablename__ = "families"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    is_sub_family: Mapped[bool] = mapped_column(Boolean, default=False)
    creator_id: Mapped[int] = mapped_column(ForeignKey("members.id"), nullable=False)
    head_of_family_id: Mapped[int | None] = mapped_column(ForeignKey("members.id"))
    parent_family_id: Mapped[int | None] = mapped_column(ForeignKey("families.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)

    head_of_family: Mapped[Member | None] = relationship(foreign_keys=[head_of_family_id])


class FamilyMembership(Base):
    __tablename__ = "family_memberships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    member_id: Mapped[int] = mapped_column(ForeignKey("members.id"), nullable=False)
    family_id: Mapped[int] = mapped_column(ForeignKey("families.id"), nullable=False)
    role: Mapped[FamilyRoleEnum] = mapped_column(family_role_sql_enum, nullable=False, default=FamilyRoleEnum.member)
    type: Mapped[MembershipTypeEnum] = mapped_column(
        membership_type_sql_enum, nullable=False, default=MembershipTypeEnum.main
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    auto_enrolled: Mapped[bool] = mapped_column(Boolean, default=False)
    manually_edited: Mapped[bool] = mapped_column(Boolean, default=False)
    join_date: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    member: Mapped[Member] = relationship()
    family: Mapped[Family] = relationship()

    __table_args__ = (UniqueConstraint("member_id", "family_id", name="uq_family_memberships_member_family"),)


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    author_id: Mapped[int] = mapped_column(ForeignKey("members.id"), nullable=False)
    family_id: Mapped[int | None] = mapped_column(ForeignKey("families.id"))
    content: Mapped[str] = mapped_column(Text, nullable=False)
    image_urls: Mapped[str] = mapped_column(Text, default="[]")
    video_url: Mapped[str | None] = mapped_column(String(1024))
    visibility: Mapped[PostVisibilityEnum] = mapped_column(
        post_visibility_sql_enum, nullable=False, default=PostVisibilityEnum.family
    )
    likes_count: Mapped[int] = mapped_column(Integer, default=0)
    edit_history: Mapped[str] = mapped_column(Text, default="{}")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)

    author: Mapped[Member] = relationship()


class PostLike(Base):
    __tablename__ = "post_likes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    post_id: Mapped[int] = mapped_column(ForeignKey("posts.id"), nullable=False)
    member_id: Mapped[int] = mapped_column(ForeignKey("members.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    __table_args__ = (UniqueConstraint("post_id", "member_id", name="uq_post_likes_post_member"),)


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    post_id: Mapped[int] = mapped_column(ForeignKey("posts.id"), nullable=False)
    author_id: Mapped[int] = mapped_column(ForeignKey("members.id"), nullable=False)
    parent_comment_id: Mapped[int | None] = mapped_column(ForeignKey("comments.id"))
    content: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(1024))
    likes_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)

    author: Mapped[Member] = relationship()


class CommentLike(Base):
    __tablename__ = "comment_likes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    comment_id: Mapped[int] = mapped_column(ForeignKey("comments.id"), nullable=False)
    member_id: Mapped[int] = mapped_column(ForeignKey("members.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    __table_args__ = (UniqueConstraint("comment_id", "member_id", name="uq_comment_likes_comment_member"),)


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    member_id: Mapped[int] = mapped_column(ForeignKey("members.id"), nullable=False)
    type: Mapped[NotificationTypeEnum] = mapped_column(notification_type_sql_enum, nullable=False)
    message: Mapped[str] = mapped_column(String(255), nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    related_post_id: Mapped[int | None] = mapped_column(ForeignKey("posts.id"))
    related_comment_id: Mapped[int | None] = mapped_column(ForeignKey("comments.id"))
    related_member_id: Mapped[int | None] = mapped_column(ForeignKey("members.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    related_member: Mapped[Member | None] = relationship(foreign_keys=[related_member_id])


Index("ix_family_memberships_member_active", FamilyMembership.member_id, FamilyMembership.is_active)
Index("ix_family_memberships_family_active", FamilyMembership.family_id, FamilyMembership.is_active)
Index("ix_families_parent", Family.parent_family_id)
Index("ix_posts_created", Post.created_at)
Index("ix_comments_post_parent", Comment.post_id, Comment.parent_comment_id)
Index("ix_notifications_member_read", Notification.member_id, Notification.is_read)
