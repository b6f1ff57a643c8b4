from __future__ import annotations

from collections.abc import Iterable

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models.entities import Post, PostVisibilityEnum
from app.services.access import member_family_ids


def is_post_visible(
    post: Post,
    viewer_id: int,
    viewer_family_ids: Iterable[int],
    author_family_ids: Iterable[int],
) -> bool:
    """
    Read rule shared by post detail, listing, comments and likes.

    PUBLIC is open to everyone and authors always see their own posts. FAMILY and
    SUBFAMILY posts need the viewer and the author to share a family; a FAMILY post
    addressed to one family is also open to that family's active members.
    """
    if post.visibility == PostVisibilityEnum.public:
        return True
    if post.author_id == viewer_id:
        return True

    viewer_families = set(viewer_family_ids)
    if post.visibility == PostVisibilityEnum.family and post.family_id in viewer_families:
        return True
    return bool(viewer_families & set(author_family_ids))


class VisibilityResolver:
    """Caches family-id sets per member while filtering many posts for one viewer."""

    def __init__(self, db: Session, viewer_id: int) -> None:
        self.db = db
        self.viewer_id = viewer_id
        self._family_ids: dict[int, set[int]] = {}

    def family_ids(self, member_id: int) -> set[int]:
        if member_id not in self._family_ids:
            self._family_ids[member_id] = member_family_ids(self.db, member_id)
        return self._family_ids[member_id]

    def can_view(self, post: Post) -> bool:
        if post.visibility == PostVisibilityEnum.public or post.author_id == self.viewer_id:
            return True
        return is_post_visible(
            post,
            self.viewer_id,
            self.family_ids(self.viewer_id),
            self.family_ids(post.author_id),
        )


def require_post_visible(db: Session, post: Post, viewer_id: int) -> None:
    if not VisibilityResolver(db, viewer_id).can_view(post):
        raise HTTPException(status_code=403, detail="you do not have access to this post")
