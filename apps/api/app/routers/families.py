from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.auth import AuthContext, get_auth_context
from app.core.db import get_db
from app.models.entities import Family, FamilyMembership, FamilyRoleEnum, Member, MembershipTypeEnum
from app.schemas.families import (
    FamilyCreate,
    FamilyDetailResponse,
    FamilyListResponse,
    FamilyMemberListResponse,
    FamilyMemberResponse,
    FamilyMembershipCreate,
    FamilyMembershipUpdate,
    FamilyResponse,
    FamilyUpdate,
)
from app.services.access import (
    current_member,
    get_membership,
    require_family,
    require_member,
    verify_family_access,
    verify_family_admin_access,
    verify_member_access,
)
from app.services.purge import purge_family
from app.services.subfamily import recalculate_subfamily_memberships

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/families", tags=["families"])


def _member_row(membership: FamilyMembership, member: Member) -> FamilyMemberResponse:
    return FamilyMemberResponse(
        id=member.id,
        name=member.name,
        role=membership.role.value,
        type=membership.type.value,
        is_active=membership.is_active,
        auto_enrolled=membership.auto_enrolled,
        manually_edited=membership.manually_edited,
        join_date=membership.join_date,
    )


def _active_members(db: Session, family_id: int) -> list[FamilyMemberResponse]:
    rows = db.execute(
        select(FamilyMembership, Member)
        .join(Member, Member.id == FamilyMembership.member_id)
        .where(FamilyMembership.family_id == family_id, FamilyMembership.is_active.is_(True))
        .order_by(FamilyMembership.join_date.asc(), Member.id.asc())
    ).all()
    return [_member_row(membership, member) for membership, member in rows]


def _sub_families(db: Session, family_id: int) -> list[Family]:
    return list(
        db.execute(select(Family).where(Family.parent_family_id == family_id).order_by(Family.id.asc())).scalars()
    )


def _require_row(db: Session, family_id: int, member_id: int) -> FamilyMembership:
    membership = get_membership(db, member_id, family_id)
    if membership is None:
        raise HTTPException(status_code=404, detail="family membership not found")
    return membership


@router.get("", response_model=FamilyListResponse)
def list_families(
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    families = db.execute(
        select(Family)
        .join(FamilyMembership, FamilyMembership.family_id == Family.id)
        .where(FamilyMembership.member_id == actor.id, FamilyMembership.is_active.is_(True))
        .order_by(Family.id.asc())
    ).scalars().all()
    return FamilyListResponse(items=[FamilyResponse.model_validate(item, from_attributes=True) for item in families])


@router.post("", response_model=FamilyResponse, status_code=201)
def create_family(
    payload: FamilyCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    is_sub_family = payload.is_sub_family or payload.parent_family_id is not None
    if payload.parent_family_id is not None:
        require_family(db, payload.parent_family_id)
        verify_family_access(db, actor.id, payload.parent_family_id)

    head_id = payload.head_of_family_id if payload.head_of_family_id is not None else actor.id
    if head_id != actor.id:
        require_member(db, head_id)
        verify_member_access(db, actor.id, head_id)

    family = Family(
        name=payload.name,
        description=payload.description,
        is_sub_family=is_sub_family,
        creator_id=actor.id,
        head_of_family_id=head_id,
        parent_family_id=payload.parent_family_id,
    )
    db.add(family)
    db.flush()

    membership_type = MembershipTypeEnum.sub if is_sub_family else MembershipTypeEnum.main
    db.add(
        FamilyMembership(
            member_id=actor.id,
            family_id=family.id,
            role=FamilyRoleEnum.admin,
            type=membership_type,
            auto_enrolled=False,
            manually_edited=False,
        )
    )
    if head_id != actor.id:
        db.add(
            FamilyMembership(
                member_id=head_id,
                family_id=family.id,
                role=FamilyRoleEnum.head,
                type=membership_type,
                auto_enrolled=True,
                manually_edited=False,
            )
        )
    if is_sub_family:
        recalculate_subfamily_memberships(db, family.id)

    db.commit()
    db.refresh(family)
    logger.info("member %s created family %s (sub-family: %s)", actor.id, family.id, is_sub_family)
    return FamilyResponse.model_validate(family, from_attributes=True)


@router.get("/{family_id}", response_model=FamilyDetailResponse)
def get_family(
    family_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    family = require_family(db, family_id)
    verify_family_access(db, actor.id, family_id)
    return FamilyDetailResponse(
        **FamilyResponse.model_validate(family, from_attributes=True).model_dump(),
        members=_active_members(db, family_id),
        sub_families=[FamilyResponse.model_validate(item, from_attributes=True) for item in _sub_families(db, family_id)],
    )


@router.patch("/{family_id}", response_model=FamilyResponse)
def update_family(
    family_id: int,
    payload: FamilyUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    family = require_family(db, family_id)
    verify_family_admin_access(db, actor.id, family_id)

    if payload.name is not None:
        family.name = payload.name
    if payload.description is not None:
        family.description = payload.description

    head_changed = False
    if payload.head_of_family_id is not None and payload.head_of_family_id != family.head_of_family_id:
        require_member(db, payload.head_of_family_id)
        verify_member_access(db, actor.id, payload.head_of_family_id)
        head_membership = get_membership(db, payload.head_of_family_id, family_id)
        if head_membership is None or not head_membership.is_active:
            raise HTTPException(status_code=400, detail="new head must be an active member of this family")
        family.head_of_family_id = payload.head_of_family_id
        head_changed = True

    db.flush()
    if head_changed and family.is_sub_family:
        db.expire(family, ["head_of_family"])
        recalculate_subfamily_memberships(db, family.id)

    db.commit()
    db.refresh(family)
    return FamilyResponse.model_validate(family, from_attributes=True)


@router.delete("/{family_id}", status_code=204)
def delete_family(
    family_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    family = require_family(db, family_id)
    if family.creator_id != actor.id:
        raise HTTPException(status_code=403, detail="only the family creator can delete this family")

    if _sub_families(db, family_id):
        raise HTTPException(status_code=400, detail="family has sub-families; delete them first")

    purge_family(db, family.id)
    db.commit()
    logger.info("member %s deleted family %s", actor.id, family_id)


@router.get("/{family_id}/members", response_model=FamilyMemberListResponse)
def list_family_members(
    family_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    require_family(db, family_id)
    verify_family_access(db, actor.id, family_id)
    return FamilyMemberListResponse(items=_active_members(db, family_id))


@router.post("/{family_id}/members", response_model=FamilyMemberResponse, status_code=201)
def add_family_member(
    family_id: int,
    payload: FamilyMembershipCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    family = require_family(db, family_id)
    verify_family_admin_access(db, actor.id, family_id)
    member = require_member(db, payload.member_id)
    membership = get_membership(db, member.id, family_id)
    if membership is None:
        verify_member_access(db, actor.id, member.id)
    elif membership.is_active:
        raise HTTPException(status_code=400, detail="member is already in this family")

    default_type = MembershipTypeEnum.sub if family.is_sub_family else MembershipTypeEnum.main
    membership_type = MembershipTypeEnum(payload.type) if payload.type else default_type

    if membership is not None:
        membership.is_active = True
        membership.role = FamilyRoleEnum(payload.role)
        membership.type = membership_type
        membership.manually_edited = True
    else:
        membership = FamilyMembership(
            member_id=member.id,
            family_id=family_id,
            role=FamilyRoleEnum(payload.role),
            type=membership_type,
            auto_enrolled=False,
            manually_edited=True,
        )
        db.add(membership)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="membership already exists") from None

    db.refresh(membership)
    return _member_row(membership, member)


@router.put("/{family_id}/members/{member_id}", response_model=FamilyMemberResponse)
def update_family_member(
    family_id: int,
    member_id: int,
    payload: FamilyMembershipUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    require_family(db, family_id)
    verify_family_admin_access(db, actor.id, family_id)
    membership = _require_row(db, family_id, member_id)

    membership.role = FamilyRoleEnum(payload.role)
    if payload.is_active is not None:
        membership.is_active = payload.is_active
    # Admin edits pin the row so automatic recalculation leaves it alone.
    membership.manually_edited = True if payload.manually_edited is None else payload.manually_edited

    db.commit()
    db.refresh(membership)
    return _member_row(membership, membership.member)


@router.delete("/{family_id}/members/{member_id}", status_code=204)
def remove_family_member(
    family_id: int,
    member_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    family = require_family(db, family_id)
    verify_family_admin_access(db, actor.id, family_id)
    if member_id == family.creator_id:
        raise HTTPException(status_code=400, detail="cannot remove the family creator")
    membership = _require_row(db, family_id, member_id)

    membership.is_active = False
    membership.manually_edited = True
    db.commit()
