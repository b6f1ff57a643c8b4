from __future__ import annotations

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.auth import AuthContext
from app.models.entities import Family, FamilyMembership, FamilyRoleEnum, Member

ADMIN_ROLES = (FamilyRoleEnum.admin, FamilyRoleEnum.head)


def get_membership(db: Session, member_id: int, family_id: int) -> FamilyMembership | None:
    return db.execute(
        select(FamilyMembership).where(
            FamilyMembership.member_id == member_id,
            FamilyMembership.family_id == family_id,
        )
    ).scalar_one_or_none()


def require_family(db: Session, family_id: int) -> Family:
    family = db.get(Family, family_id)
    if family is None:
        raise HTTPException(status_code=404, detail="family not found")
    return family


def require_member(db: Session, member_id: int) -> Member:
    member = db.get(Member, member_id)
    if member is None:
        raise HTTPException(status_code=404, detail="member not found")
    return member


def get_member_by_email(db: Session, email: str) -> Member | None:
    return db.execute(select(Member).where(Member.email == email)).scalar_one_or_none()


def current_member(db: Session, ctx: AuthContext | None) -> Member:
    """Resolve the authenticated identity to its member profile."""
    if ctx is None:
        raise HTTPException(status_code=401, detail="authentication required")
    member = get_member_by_email(db, ctx.email)
    if member is None:
        raise HTTPException(status_code=404, detail="member profile not found")
    return member


def member_family_ids(db: Session, member_id: int) -> set[int]:
    return set(
        db.execute(
            select(FamilyMembership.family_id).where(
                FamilyMembership.member_id == member_id,
                FamilyMembership.is_active.is_(True),
            )
        ).scalars()
    )


def verify_family_access(db: Session, member_id: int, family_id: int) -> FamilyMembership:
    membership = get_membership(db, member_id, family_id)
    if membership is None or not membership.is_active:
        raise HTTPException(status_code=403, detail="access denied to this family")
    return membership


def verify_family_admin_access(db: Session, member_id: int, family_id: int) -> FamilyMembership:
    membership = get_membership(db, member_id, family_id)
    if membership is None or not membership.is_active or membership.role not in ADMIN_ROLES:
        raise HTTPException(status_code=403, detail="admin access required for this family")
    return membership


def shares_family(db: Session, member_a_id: int, member_b_id: int) -> bool:
    if member_a_id == member_b_id:
        return True
    return bool(member_family_ids(db, member_a_id) & member_family_ids(db, member_b_id))


def verify_member_access(db: Session, actor_id: int, target_id: int) -> None:
    if not shares_family(db, actor_id, target_id):
        raise HTTPException(status_code=403, detail="access denied to this member")
