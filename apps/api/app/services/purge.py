from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.models.entities import (
    Comment,
    CommentLike,
    Family,
    FamilyMembership,
    Notification,
    Post,
    PostLike,
)


def _with_replies(db: Session, comment_ids: Iterable[int]) -> list[int]:
    collected: set[int] = set()
    frontier = set(comment_ids)
    while frontier:
        collected |= frontier
        frontier = set(
            db.execute(select(Comment.id).where(Comment.parent_comment_id.in_(frontier))).scalars()
        ) - collected
    return sorted(collected)


def purge_comments(db: Session, comment_ids: Iterable[int]) -> None:
    """Hard-delete comments together with their replies, likes and notifications."""
    ids = _with_replies(db, comment_ids)
    if not ids:
        return
    db.execute(delete(CommentLike).where(CommentLike.comment_id.in_(ids)))
    db.execute(delete(Notification).where(Notification.related_comment_id.in_(ids)))
    db.execute(delete(Comment).where(Comment.id.in_(ids)))


def purge_posts(db: Session, post_ids: Iterable[int]) -> None:
    ids = list(post_ids)
    if not ids:
        return
    comment_ids = db.execute(select(Comment.id).where(Comment.post_id.in_(ids))).scalars().all()
    purge_comments(db, comment_ids)
    db.execute(delete(PostLike).where(PostLike.post_id.in_(ids)))
    db.execute(delete(Notification).where(Notification.related_post_id.in_(ids)))
    db.execute(delete(Post).where(Post.id.in_(ids)))


def purge_family(db: Session, family_id: int) -> None:
    """
    Hard-delete a family, its memberships and the posts addressed to it.

    Rows are removed child-first with explicit statements, so no ON DELETE CASCADE
    is needed on the foreign keys. Members outlive their families and stay.
    """
    post_ids = db.execute(select(Post.id).where(Post.family_id == family_id)).scalars().all()
    purge_posts(db, post_ids)
    db.execute(delete(FamilyMembership).where(FamilyMembership.family_id == family_id))
    db.execute(delete(Family).where(Family.id == family_id))
