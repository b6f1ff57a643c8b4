from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.common import PaginationResponse

VISIBILITY_PATTERN = "^(PUBLIC|FAMILY|SUBFAMILY)$"


class PostCreate(BaseModel):
    content: str = Field(min_length=1, max_length=5000)
    image_urls: list[str] = Field(default_factory=list)
    video_url: str | None = None
    visibility: str = Field(pattern=VISIBILITY_PATTERN)
    family_id: int | None = None


class PostUpdate(BaseModel):
    content: str | None = Field(default=None, min_length=1, max_length=5000)
    image_urls: list[str] | None = None
    video_url: str | None = None
    visibility: str | None = Field(default=None, pattern=VISIBILITY_PATTERN)


class AuthorResponse(BaseModel):
    id: int
    name: str


class ReplyResponse(BaseModel):
    id: int
    post_id: int
    parent_comment_id: int | None
    content: str
    image_url: str | None
    author: AuthorResponse
    likes_count: int
    is_liked_by_current_user: bool
    created_at: datetime
    updated_at: datetime


class CommentResponse(ReplyResponse):
    replies_count: int = 0
    replies: list[ReplyResponse] | None = None


class PostResponse(BaseModel):
    id: int
    content: str
    image_urls: list[str]
    video_url: str | None
    visibility: str
    family_id: int | None
    author: AuthorResponse
    likes_count: int
    comments_count: int
    is_liked_by_current_user: bool
    created_at: datetime
    updated_at: datetime


class PostDetailResponse(PostResponse):
    comments: list[CommentResponse]


class PostListResponse(BaseModel):
    items: list[PostResponse]
    pagination: PaginationResponse


class LikeResponse(BaseModel):
    liked: bool
    likes_count: int
    message: str
