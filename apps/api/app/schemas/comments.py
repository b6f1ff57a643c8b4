from pydantic import BaseModel, Field

from app.schemas.posts import CommentResponse


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=2000)
    image_url: str | None = None
    parent_comment_id: int | None = None


class CommentUpdate(BaseModel):
    content: str | None = Field(default=None, min_length=1, max_length=2000)
    image_url: str | None = None


class CommentListResponse(BaseModel):
    items: list[CommentResponse]
