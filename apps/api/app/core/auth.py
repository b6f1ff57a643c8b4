from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException

from app.core.config import settings


@dataclass(frozen=True)
class AuthContext:
    email: str


def get_auth_context(
    x_forwarded_user: str | None = Header(default=None, alias="X-Forwarded-User"),
    x_dev_user: str | None = Header(default=None, alias="X-Dev-User"),
) -> AuthContext | None:
    """
    Resolve the caller's identity (an email address) from request headers.

    forwardauth: the edge proxy sets X-Forwarded-User and a request without it is rejected.
    none: X-Dev-User (or X-Forwarded-User) picks the acting member; with neither header
    the request is anonymous and member-scoped routes answer 401.
    """
    if settings.auth_mode == "none":
        email = x_forwarded_user or x_dev_user
        if not email:
            return None
        return AuthContext(email=email.strip().lower())

    if not x_forwarded_user:
        raise HTTPException(status_code=401, detail="missing auth header (X-Forwarded-User)")
    return AuthContext(email=x_forwarded_user.strip().lower())


def require_auth(ctx: AuthContext | None = Depends(get_auth_context)) -> AuthContext:
    if ctx is None:
        raise HTTPException(status_code=401, detail="authentication required")
    return ctx
