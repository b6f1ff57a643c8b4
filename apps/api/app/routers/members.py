from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.auth import AuthContext, get_auth_context
from app.core.db import get_db
from app.models.entities import (
    Family,
    FamilyMembership,
    FamilyRoleEnum,
    GenderEnum,
    Member,
    MemberStatusEnum,
    MembershipTypeEnum,
)
from app.schemas.members import (
    BulkRelationshipRequest,
    BulkRelationshipResponse,
    MemberCreate,
    MemberMembershipResponse,
    MemberResponse,
    MemberSummary,
    MemberUpdate,
    RelationshipPayload,
    RelationshipResponse,
    RelationshipResult,
)
from app.services.access import current_member, require_family, require_member, verify_family_access, verify_member_access
from app.services.relationships import RelationshipTypeEnum, add_relationship, remove_relationship

router = APIRouter(prefix="/v1/members", tags=["members"])


def _summary(member: Member) -> MemberSummary:
    return MemberSummary(id=member.id, name=member.name, gender=member.gender.value if member.gender else None)


def member_response(db: Session, member: Member) -> MemberResponse:
    rows = db.execute(
        select(FamilyMembership, Family)
        .join(Family, Family.id == FamilyMembership.family_id)
        .where(FamilyMembership.member_id == member.id, FamilyMembership.is_active.is_(True))
        .order_by(Family.id.asc())
    ).all()
    return MemberResponse(
        id=member.id,
        name=member.name,
        email=member.email,
        gender=member.gender.value if member.gender else None,
        status=member.status.value,
        personal_info=json.loads(member.personal_info or "{}"),
        created_at=member.created_at,
        updated_at=member.updated_at,
        parents=[_summary(item) for item in member.parents],
        children=[_summary(item) for item in member.children],
        spouses=[_summary(item) for item in member.all_spouses],
        family_memberships=[
            MemberMembershipResponse(
                id=membership.id,
                family_id=family.id,
                family_name=family.name,
                role=membership.role.value,
                type=membership.type.value,
                auto_enrolled=membership.auto_enrolled,
                manually_edited=membership.manually_edited,
                is_active=membership.is_active,
                join_date=membership.join_date,
            )
            for membership, family in rows
        ],
    )


def apply_member_update(member: Member, payload: MemberUpdate) -> None:
    if payload.name is not None:
        member.name = payload.name
    if payload.gender is not None:
        member.gender = GenderEnum(payload.gender)
    if payload.status is not None:
        member.status = MemberStatusEnum(payload.status)
    if payload.personal_info is not None:
        member.personal_info = json.dumps(payload.personal_info)


@router.post("", response_model=MemberResponse, status_code=201)
def create_member(
    payload: MemberCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    family = require_family(db, payload.family_id)
    verify_family_access(db, actor.id, family.id)

    member = Member(
        name=payload.name,
        email=str(payload.email).lower() if payload.email else None,
        gender=GenderEnum(payload.gender) if payload.gender else None,
        status=MemberStatusEnum(payload.status) if payload.status else MemberStatusEnum.active,
        personal_info=json.dumps(payload.personal_info),
    )
    db.add(member)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="email already belongs to a member") from None

    db.add(
        FamilyMembership(
            member_id=member.id,
            family_id=family.id,
            role=FamilyRoleEnum.member,
            type=MembershipTypeEnum.sub if family.is_sub_family else MembershipTypeEnum.main,
            auto_enrolled=False,
            manually_edited=True,
        )
    )
    db.flush()

    for item in payload.initial_relationships:
        add_relationship(db, actor.id, member.id, item.related_member_id, RelationshipTypeEnum(item.relationship_type))

    db.commit()
    db.refresh(member)
    return member_response(db, member)


@router.get("/{member_id}", response_model=MemberResponse)
def get_member(
    member_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    member = require_member(db, member_id)
    verify_member_access(db, actor.id, member.id)
    return member_response(db, member)


@router.patch("/{member_id}", response_model=MemberResponse)
def update_member(
    member_id: int,
    payload: MemberUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    member = require_member(db, member_id)
    verify_member_access(db, actor.id, member.id)
    apply_member_update(member, payload)
    db.commit()
    db.refresh(member)
    return member_response(db, member)


@router.post("/{member_id}/relationships", response_model=RelationshipResponse)
def create_relationship(
    member_id: int,
    payload: RelationshipPayload,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    message = add_relationship(
        db, actor.id, member_id, payload.related_member_id, RelationshipTypeEnum(payload.relationship_type)
    )
    db.commit()
    return RelationshipResponse(success=True, message=message)


@router.delete("/{member_id}/relationships/{relationship_type}/{related_member_id}", response_model=RelationshipResponse)
def delete_relationship(
    member_id: int,
    relationship_type: RelationshipTypeEnum,
    related_member_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    message = remove_relationship(db, actor.id, member_id, related_member_id, relationship_type)
    db.commit()
    return RelationshipResponse(success=True, message=message)


@router.post("/{member_id}/relationships/bulk", response_model=BulkRelationshipResponse)
def create_relationships_bulk(
    member_id: int,
    payload: BulkRelationshipRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    """Each item succeeds or fails on its own; successful edges are committed together."""
    actor = current_member(db, ctx)
    results: list[RelationshipResult] = []
    for item in payload.relationships:
        try:
            message = add_relationship(
                db, actor.id, member_id, item.related_member_id, RelationshipTypeEnum(item.relationship_type)
            )
        except HTTPException as exc:
            results.append(
                RelationshipResult(
                    related_member_id=item.related_member_id,
                    relationship_type=item.relationship_type,
                    success=False,
                    message=str(exc.detail),
                )
            )
            continue
        results.append(
            RelationshipResult(
                related_member_id=item.related_member_id,
                relationship_type=item.relationship_type,
                success=True,
                message=message,
            )
        )

    db.commit()
    succeeded = sum(1 for item in results if item.success)
    return BulkRelationshipResponse(
        success=succeeded > 0,
        message=f"{succeeded} of {len(results)} relationships added",
        results=results,
    )
