from datetime import datetime

from pydantic import BaseModel

from app.schemas.common import PaginationResponse


class RelatedMember(BaseModel):
    id: int
    name: str


class RelatedContent(BaseModel):
    id: int
    content: str


class NotificationResponse(BaseModel):
    id: int
    type: str
    message: str
    is_read: bool
    created_at: datetime
    related_member: RelatedMember | None = None
    related_post: RelatedContent | None = None
    related_comment: RelatedContent | None = None


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]
    pagination: PaginationResponse
    unread_count: int


class NotificationReadUpdate(BaseModel):
    is_read: bool


class UnreadCountResponse(BaseModel):
    unread_count: int
