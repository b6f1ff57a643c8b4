from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.auth import AuthContext, get_auth_context, require_auth
from app.core.db import get_db
from app.models.entities import Family, FamilyMembership, FamilyRoleEnum, GenderEnum, Member, MembershipTypeEnum
from app.schemas.members import MemberUpdate, ProfileCreate
from app.routers.members import apply_member_update, member_response
from app.services.access import current_member, get_member_by_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["auth"])


@router.get("/me")
def get_me(
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    """
    Returns the authenticated user's member profile.

    If auth is disabled (AUTH_MODE=none) and no identity header is sent, this returns an
    anonymous response so dev/test flows still work.
    """
    if ctx is None:
        return {"authenticated": False, "email": None, "member": None}

    member = get_member_by_email(db, ctx.email)
    return {
        "authenticated": True,
        "email": ctx.email,
        "member": member_response(db, member).model_dump(mode="json") if member is not None else None,
    }


@router.post("/me", status_code=201)
def create_profile(
    payload: ProfileCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_auth),
):
    if get_member_by_email(db, ctx.email) is not None:
        raise HTTPException(status_code=409, detail="member profile already exists")

    member = Member(
        name=payload.name,
        email=ctx.email,
        gender=GenderEnum(payload.gender) if payload.gender else None,
        personal_info=json.dumps(payload.personal_info),
    )
    db.add(member)
    db.flush()

    if payload.family_name:
        family = Family(
            name=payload.family_name,
            description=payload.family_description,
            creator_id=member.id,
            head_of_family_id=member.id,
        )
        db.add(family)
        db.flush()
        # The founder is both creator and head of the new main family.
        db.add(
            FamilyMembership(
                member_id=member.id,
                family_id=family.id,
                role=FamilyRoleEnum.admin,
                type=MembershipTypeEnum.main,
                auto_enrolled=False,
                manually_edited=False,
            )
        )
        logger.info("member %s founded family %s", member.id, family.id)

    db.commit()
    db.refresh(member)
    return member_response(db, member)


@router.patch("/me")
def update_profile(
    payload: MemberUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    member = current_member(db, ctx)
    apply_member_update(member, payload)
    db.commit()
    db.refresh(member)
    return member_response(db, member)


@router.post("/logout")
def logout(_: AuthContext = Depends(require_auth)):
    # Sessions live at the forward-auth proxy; there is nothing to clear here.
    return {"ok": True}
