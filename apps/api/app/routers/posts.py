from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.auth import AuthContext, get_auth_context
from app.core.config import settings
from app.core.db import get_db
from app.models.entities import Comment, Post, PostVisibilityEnum
from app.schemas.common import paginate
from app.schemas.posts import LikeResponse, PostCreate, PostDetailResponse, PostListResponse, PostResponse, PostUpdate
from app.services.access import current_member, require_family, verify_family_access
from app.services.notifications import notify_new_post
from app.services.posts import (
    append_edit,
    comment_responses,
    initial_edit_history,
    post_response,
    require_post,
    toggle_post_like,
)
from app.services.purge import purge_posts
from app.services.visibility import VisibilityResolver, require_post_visible

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/posts", tags=["posts"])


def _require_author(post: Post, member_id: int) -> None:
    if post.author_id != member_id:
        raise HTTPException(status_code=403, detail="only the author can modify this post")


@router.post("", response_model=PostResponse, status_code=201)
def create_post(
    payload: PostCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    if payload.family_id is not None:
        require_family(db, payload.family_id)
        verify_family_access(db, actor.id, payload.family_id)

    post = Post(
        author_id=actor.id,
        family_id=payload.family_id,
        content=payload.content,
        image_urls=json.dumps(payload.image_urls),
        video_url=payload.video_url,
        visibility=PostVisibilityEnum(payload.visibility),
        edit_history=initial_edit_history(actor.id),
    )
    db.add(post)
    db.flush()
    if post.visibility != PostVisibilityEnum.public:
        notify_new_post(db, post)

    db.commit()
    db.refresh(post)
    return post_response(db, post, actor.id)


@router.get("", response_model=PostListResponse)
def list_posts(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=100),
    family_id: int | None = Query(default=None),
    visibility: str | None = Query(default=None, pattern="^(PUBLIC|FAMILY|SUBFAMILY)$"),
    author_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    """Newest first. Visibility is applied before pagination so totals only count readable posts."""
    actor = current_member(db, ctx)
    query = select(Post)
    if family_id is not None:
        query = query.where(Post.family_id == family_id)
    if visibility is not None:
        query = query.where(Post.visibility == PostVisibilityEnum(visibility))
    if author_id is not None:
        query = query.where(Post.author_id == author_id)

    resolver = VisibilityResolver(db, actor.id)
    posts = [
        post
        for post in db.execute(query.order_by(Post.created_at.desc(), Post.id.desc())).scalars()
        if resolver.can_view(post)
    ]
    start = (page - 1) * limit
    return PostListResponse(
        items=[post_response(db, post, actor.id) for post in posts[start : start + limit]],
        pagination=paginate(page, limit, len(posts)),
    )


@router.get("/{post_id}", response_model=PostDetailResponse)
def get_post(
    post_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    post = require_post(db, post_id)
    require_post_visible(db, post, actor.id)

    top_level = list(
        db.execute(
            select(Comment)
            .where(Comment.post_id == post.id, Comment.parent_comment_id.is_(None))
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        ).scalars()
    )
    return post_response(db, post, actor.id, PostDetailResponse, comments=comment_responses(db, top_level, actor.id))


@router.patch("/{post_id}", response_model=PostResponse)
def update_post(
    post_id: int,
    payload: PostUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    post = require_post(db, post_id)
    _require_author(post, actor.id)

    changes = payload.model_dump(exclude_unset=True)
    if "content" in changes and payload.content is not None:
        post.content = payload.content
    if "image_urls" in changes:
        post.image_urls = json.dumps(payload.image_urls or [])
    if "video_url" in changes:
        post.video_url = payload.video_url
    if "visibility" in changes and payload.visibility is not None:
        post.visibility = PostVisibilityEnum(payload.visibility)
    if changes:
        append_edit(post, changes)

    db.commit()
    db.refresh(post)
    return post_response(db, post, actor.id)


@router.delete("/{post_id}", status_code=204)
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    post = require_post(db, post_id)
    _require_author(post, actor.id)
    purge_posts(db, [post.id])
    db.commit()
    logger.info("member %s deleted post %s", actor.id, post_id)


@router.post("/{post_id}/like", response_model=LikeResponse)
def like_post(
    post_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    post = require_post(db, post_id)
    require_post_visible(db, post, actor.id)
    return toggle_post_like(db, post, actor.id)
