from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.entities import Comment, CommentLike, Post, PostLike
from app.schemas.posts import AuthorResponse, CommentResponse, LikeResponse, PostResponse, ReplyResponse
from app.services.notifications import notify_comment_like, notify_post_like

logger = logging.getLogger(__name__)


def require_post(db: Session, post_id: int) -> Post:
    post = db.get(Post, post_id)
    if post is None:
        raise HTTPException(status_code=404, detail="post not found")
    return post


def require_comment(db: Session, comment_id: int) -> Comment:
    comment = db.get(Comment, comment_id)
    if comment is None:
        raise HTTPException(status_code=404, detail="comment not found")
    return comment


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def initial_edit_history(author_id: int) -> str:
    return json.dumps({"created_at": _now_iso(), "created_by": author_id, "edits": []})


def append_edit(post: Post, changes: dict[str, Any]) -> None:
    history = json.loads(post.edit_history or "{}")
    history.setdefault("edits", []).append({"edited_at": _now_iso(), "fields": sorted(changes)})
    post.edit_history = json.dumps(history)


def _author(comment_or_post: Post | Comment) -> AuthorResponse:
    return AuthorResponse(id=comment_or_post.author.id, name=comment_or_post.author.name)


def post_response(db: Session, post: Post, viewer_id: int, response_cls: type[PostResponse] = PostResponse, **extra):
    comments_count = db.execute(select(func.count(Comment.id)).where(Comment.post_id == post.id)).scalar_one()
    liked = db.execute(
        select(PostLike.id).where(PostLike.post_id == post.id, PostLike.member_id == viewer_id)
    ).scalar_one_or_none()
    return response_cls(
        id=post.id,
        content=post.content,
        image_urls=json.loads(post.image_urls or "[]"),
        video_url=post.video_url,
        visibility=post.visibility.value,
        family_id=post.family_id,
        author=_author(post),
        likes_count=post.likes_count,
        comments_count=comments_count,
        is_liked_by_current_user=liked is not None,
        created_at=post.created_at,
        updated_at=post.updated_at,
        **extra,
    )


def _liked_comment_ids(db: Session, comment_ids: list[int], viewer_id: int) -> set[int]:
    if not comment_ids:
        return set()
    return set(
        db.execute(
            select(CommentLike.comment_id).where(
                CommentLike.comment_id.in_(comment_ids),
                CommentLike.member_id == viewer_id,
            )
        ).scalars()
    )


def _reply_fields(comment: Comment, liked: set[int]) -> dict[str, Any]:
    return dict(
        id=comment.id,
        post_id=comment.post_id,
        parent_comment_id=comment.parent_comment_id,
        content=comment.content,
        image_url=comment.image_url,
        author=_author(comment),
        likes_count=comment.likes_count,
        is_liked_by_current_user=comment.id in liked,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )


def comment_responses(
    db: Session,
    comments: list[Comment],
    viewer_id: int,
    include_replies: bool = True,
) -> list[CommentResponse]:
    """Render top-level comments with their direct replies, oldest first."""
    top_ids = [comment.id for comment in comments]
    replies: dict[int, list[Comment]] = {comment_id: [] for comment_id in top_ids}
    if top_ids:
        for reply in db.execute(
            select(Comment).where(Comment.parent_comment_id.in_(top_ids)).order_by(Comment.created_at.asc(), Comment.id.asc())
        ).scalars():
            replies[reply.parent_comment_id].append(reply)

    all_ids = top_ids + [reply.id for items in replies.values() for reply in items]
    liked = _liked_comment_ids(db, all_ids, viewer_id)
    return [
        CommentResponse(
            **_reply_fields(comment, liked),
            replies_count=len(replies[comment.id]),
            replies=[ReplyResponse(**_reply_fields(reply, liked)) for reply in replies[comment.id]]
            if include_replies
            else None,
        )
        for comment in comments
    ]


def single_comment_response(db: Session, comment: Comment, viewer_id: int) -> CommentResponse:
    return comment_responses(db, [comment], viewer_id, include_replies=False)[0]


def toggle_post_like(db: Session, post: Post, member_id: int) -> LikeResponse:
    """Add or remove the member's like; the counter moves in the same transaction."""
    existing = db.execute(
        select(PostLike).where(PostLike.post_id == post.id, PostLike.member_id == member_id)
    ).scalar_one_or_none()
    if existing is not None:
        db.delete(existing)
        post.likes_count = max(0, post.likes_count - 1)
        liked = False
    else:
        db.add(PostLike(post_id=post.id, member_id=member_id))
        post.likes_count += 1
        notify_post_like(db, post, member_id)
        liked = True
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="like already recorded") from None
    db.refresh(post)
    return LikeResponse(
        liked=liked,
        likes_count=post.likes_count,
        message="post liked successfully" if liked else "post unliked successfully",
    )


def toggle_comment_like(db: Session, comment: Comment, member_id: int) -> LikeResponse:
    existing = db.execute(
        select(CommentLike).where(CommentLike.comment_id == comment.id, CommentLike.member_id == member_id)
    ).scalar_one_or_none()
    if existing is not None:
        db.delete(existing)
        comment.likes_count = max(0, comment.likes_count - 1)
        liked = False
    else:
        db.add(CommentLike(comment_id=comment.id, member_id=member_id))
        comment.likes_count += 1
        notify_comment_like(db, comment, member_id)
        liked = True
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="like already recorded") from None
    db.refresh(comment)
    logger.debug("member %s toggled like on comment %s: %s", member_id, comment.id, liked)
    return LikeResponse(
        liked=liked,
        likes_count=comment.likes_count,
        message="comment liked successfully" if liked else "comment unliked successfully",
    )
