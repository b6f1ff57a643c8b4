from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from app.core.auth import AuthContext, get_auth_context
from app.core.config import settings
from app.core.db import get_db
from app.models.entities import Comment, Notification, NotificationTypeEnum, Post
from app.schemas.common import MessageResponse, paginate
from app.schemas.notifications import (
    NotificationListResponse,
    NotificationReadUpdate,
    NotificationResponse,
    RelatedContent,
    RelatedMember,
    UnreadCountResponse,
)
from app.services.access import current_member

router = APIRouter(prefix="/v1/notifications", tags=["notifications"])


def _unread_count(db: Session, member_id: int) -> int:
    return db.execute(
        select(func.count(Notification.id)).where(Notification.member_id == member_id, Notification.is_read.is_(False))
    ).scalar_one()


def _require_own(db: Session, notification_id: int, member_id: int) -> Notification:
    notification = db.get(Notification, notification_id)
    if notification is None or notification.member_id != member_id:
        raise HTTPException(status_code=404, detail="notification not found")
    return notification


def _response(db: Session, notification: Notification) -> NotificationResponse:
    related_post = db.get(Post, notification.related_post_id) if notification.related_post_id else None
    related_comment = db.get(Comment, notification.related_comment_id) if notification.related_comment_id else None
    sender = notification.related_member
    return NotificationResponse(
        id=notification.id,
        type=notification.type.value,
        message=notification.message,
        is_read=notification.is_read,
        created_at=notification.created_at,
        related_member=RelatedMember(id=sender.id, name=sender.name) if sender else None,
        related_post=RelatedContent(id=related_post.id, content=related_post.content) if related_post else None,
        related_comment=RelatedContent(id=related_comment.id, content=related_comment.content)
        if related_comment
        else None,
    )


@router.get("", response_model=NotificationListResponse)
def list_notifications(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=100),
    is_read: bool | None = Query(default=None),
    type: str | None = Query(default=None, pattern="^(NEW_POST|POST_LIKE|NEW_COMMENT|COMMENT_LIKE)$"),
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    conditions = [Notification.member_id == actor.id]
    if is_read is not None:
        conditions.append(Notification.is_read.is_(is_read))
    if type is not None:
        conditions.append(Notification.type == NotificationTypeEnum(type))

    total = db.execute(select(func.count(Notification.id)).where(*conditions)).scalar_one()
    items = db.execute(
        select(Notification)
        .where(*conditions)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars().all()
    return NotificationListResponse(
        items=[_response(db, item) for item in items],
        pagination=paginate(page, limit, total),
        unread_count=_unread_count(db, actor.id),
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
def unread_count(
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    return UnreadCountResponse(unread_count=_unread_count(db, actor.id))


@router.post("/read-all", response_model=MessageResponse)
def mark_all_read(
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    result = db.execute(
        update(Notification)
        .where(Notification.member_id == actor.id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    db.commit()
    return MessageResponse(message="all notifications marked as read", count=result.rowcount)


@router.delete("/read", response_model=MessageResponse)
def delete_read(
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    result = db.execute(
        delete(Notification).where(Notification.member_id == actor.id, Notification.is_read.is_(True))
    )
    db.commit()
    return MessageResponse(message="read notifications deleted", count=result.rowcount)


@router.patch("/{notification_id}", response_model=NotificationResponse)
def set_read_state(
    notification_id: int,
    payload: NotificationReadUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    notification = _require_own(db, notification_id, actor.id)
    notification.is_read = payload.is_read
    db.commit()
    db.refresh(notification)
    return _response(db, notification)


@router.delete("/{notification_id}", status_code=204)
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    db.delete(_require_own(db, notification_id, actor.id))
    db.commit()
