from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.auth import AuthContext, get_auth_context
from app.core.config import settings
from app.core.db import get_db
from app.models.entities import Comment
from app.schemas.comments import CommentCreate, CommentListResponse, CommentUpdate
from app.schemas.posts import CommentResponse, LikeResponse
from app.services.access import current_member
from app.services.notifications import notify_new_comment
from app.services.posts import (
    comment_responses,
    require_comment,
    require_post,
    single_comment_response,
    toggle_comment_like,
)
from app.services.purge import purge_comments
from app.services.visibility import require_post_visible

router = APIRouter(prefix="/v1", tags=["comments"])


def _require_author(comment: Comment, member_id: int) -> None:
    if comment.author_id != member_id:
        raise HTTPException(status_code=403, detail="only the author can modify this comment")


@router.post("/posts/{post_id}/comments", response_model=CommentResponse, status_code=201)
def create_comment(
    post_id: int,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    post = require_post(db, post_id)
    require_post_visible(db, post, actor.id)

    if payload.parent_comment_id is not None:
        parent = db.get(Comment, payload.parent_comment_id)
        if parent is None or parent.post_id != post.id:
            raise HTTPException(status_code=404, detail="parent comment not found")

    comment = Comment(
        post_id=post.id,
        author_id=actor.id,
        parent_comment_id=payload.parent_comment_id,
        content=payload.content,
        image_url=payload.image_url,
    )
    db.add(comment)
    db.flush()
    notify_new_comment(db, post, comment)
    db.commit()
    db.refresh(comment)
    return single_comment_response(db, comment, actor.id)


@router.get("/posts/{post_id}/comments", response_model=CommentListResponse)
def list_comments(
    post_id: int,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=100),
    include_replies: bool = Query(default=True),
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    post = require_post(db, post_id)
    require_post_visible(db, post, actor.id)

    comments = list(
        db.execute(
            select(Comment)
            .where(Comment.post_id == post.id, Comment.parent_comment_id.is_(None))
            .order_by(Comment.created_at.asc(), Comment.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars()
    )
    return CommentListResponse(items=comment_responses(db, comments, actor.id, include_replies=include_replies))


@router.patch("/comments/{comment_id}", response_model=CommentResponse)
def update_comment(
    comment_id: int,
    payload: CommentUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    comment = require_comment(db, comment_id)
    _require_author(comment, actor.id)

    if payload.content is not None:
        comment.content = payload.content
    if "image_url" in payload.model_fields_set:
        comment.image_url = payload.image_url
    db.commit()
    db.refresh(comment)
    return single_comment_response(db, comment, actor.id)


@router.delete("/comments/{comment_id}", status_code=204)
def delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    comment = require_comment(db, comment_id)
    _require_author(comment, actor.id)
    purge_comments(db, [comment.id])
    db.commit()


@router.post("/comments/{comment_id}/like", response_model=LikeResponse)
def like_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    comment = require_comment(db, comment_id)
    require_post_visible(db, require_post(db, comment.post_id), actor.id)
    return toggle_comment_like(db, comment, actor.id)
