from app.routers import (
    admin_families,
    auth,
    comments,
    families,
    health,
    members,
    notifications,
    posts,
    transfer,
    tree,
)

__all__ = [
    "health",
    "auth",
    "families",
    "members",
    "posts",
    "comments",
    "notifications",
    "tree",
    "transfer",
    "admin_families",
]
