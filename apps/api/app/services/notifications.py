from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.entities import Comment, FamilyMembership, Notification, NotificationTypeEnum, Post
from app.services.access import member_family_ids

logger = logging.getLogger(__name__)


def notify(
    db: Session,
    *,
    member_id: int,
    type: NotificationTypeEnum,
    message: str,
    related_member_id: int | None = None,
    related_post_id: int | None = None,
    related_comment_id: int | None = None,
) -> Notification:
    notification = Notification(
        member_id=member_id,
        type=type,
        message=message,
        related_member_id=related_member_id,
        related_post_id=related_post_id,
        related_comment_id=related_comment_id,
    )
    db.add(notification)
    return notification


def _audience_for_post(db: Session, post: Post) -> list[int]:
    if post.family_id is not None:
        family_ids = {post.family_id}
    else:
        family_ids = member_family_ids(db, post.author_id)
    if not family_ids:
        return []
    member_ids = db.execute(
        select(FamilyMembership.member_id)
        .where(
            FamilyMembership.family_id.in_(family_ids),
            FamilyMembership.is_active.is_(True),
            FamilyMembership.member_id != post.author_id,
        )
        .distinct()
    ).scalars()
    return sorted(set(member_ids))


def notify_new_post(db: Session, post: Post) -> int:
    recipients = _audience_for_post(db, post)
    for member_id in recipients:
        notify(
            db,
            member_id=member_id,
            type=NotificationTypeEnum.new_post,
            message="shared a new post",
            related_member_id=post.author_id,
            related_post_id=post.id,
        )
    logger.debug("post %s fanned out to %d members", post.id, len(recipients))
    return len(recipients)


def notify_post_like(db: Session, post: Post, liker_id: int) -> None:
    if post.author_id == liker_id:
        return
    notify(
        db,
        member_id=post.author_id,
        type=NotificationTypeEnum.post_like,
        message="liked your post",
        related_member_id=liker_id,
        related_post_id=post.id,
    )


def notify_new_comment(db: Session, post: Post, comment: Comment) -> None:
    if post.author_id == comment.author_id:
        return
    notify(
        db,
        member_id=post.author_id,
        type=NotificationTypeEnum.new_comment,
        message="commented on your post",
        related_member_id=comment.author_id,
        related_post_id=post.id,
        related_comment_id=comment.id,
    )


def notify_comment_like(db: Session, comment: Comment, liker_id: int) -> None:
    if comment.author_id == liker_id:
        return
    notify(
        db,
        member_id=comment.author_id,
        type=NotificationTypeEnum.comment_like,
        message="liked your comment",
        related_member_id=liker_id,
        related_comment_id=comment.id,
    )
