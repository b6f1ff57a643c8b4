from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.entities import Family, FamilyMembership, FamilyRoleEnum, Member, MembershipTypeEnum

logger = logging.getLogger(__name__)

PRUNE_KEEP = "keep"
PRUNE_DEACTIVATE = "deactivate"
PRUNE_POLICIES = (PRUNE_KEEP, PRUNE_DEACTIVATE)


@dataclass(frozen=True)
class SubFamilySyncStats:
    family_id: int
    member_ids: frozenset[int] = frozenset()
    created: int = 0
    reactivated: int = 0
    unchanged: int = 0
    skipped_manual: int = 0
    deactivated: int = 0

    @property
    def writes(self) -> int:
        return self.created + self.reactivated + self.deactivated


def _require_subfamily(db: Session, family_id: int) -> Family:
    family = db.get(Family, family_id)
    if family is None or not family.is_sub_family or family.head_of_family is None:
        raise HTTPException(status_code=400, detail="invalid sub-family for membership calculation")
    return family


def compute_auto_members(head: Member) -> set[int]:
    """
    Head, the head's spouses, every descendant of the head and every descendant's spouse.

    Parent/child edges are user-editable, so the walk tracks visited members and
    treats a repeat visit as a no-op instead of assuming the data is acyclic.
    """
    auto_ids = {head.id}
    auto_ids.update(spouse.id for spouse in head.all_spouses)

    visited = {head.id}
    stack = [head]
    while stack:
        member = stack.pop()
        for child in member.children:
            auto_ids.add(child.id)
            auto_ids.update(spouse.id for spouse in child.all_spouses)
            if child.id not in visited:
                visited.add(child.id)
                stack.append(child)
    return auto_ids


def recalculate_subfamily_memberships(
    db: Session,
    family_id: int,
    *,
    prune_policy: str | None = None,
) -> SubFamilySyncStats:
    """
    Reconcile a sub-family's roster with the lineage of its head.

    Rows flagged manually_edited are never touched. Missing rows are created as
    SUB memberships (HEAD for the head, MEMBER otherwise); existing automatic rows
    are re-activated. With the "deactivate" prune policy, active auto-enrolled rows
    whose member left the lineage are deactivated; "keep" leaves them as they are.

    Changes are flushed, not committed: the caller owns the transaction so that a
    failure part-way through leaves nothing behind.
    """
    policy = prune_policy or settings.subfamily_prune_policy
    if policy not in PRUNE_POLICIES:
        raise ValueError(f"unknown sub-family prune policy: {policy}")

    # Sessions run with autoflush off; pending rows must be visible to the roster query.
    db.flush()
    family = _require_subfamily(db, family_id)
    head = family.head_of_family
    auto_ids = compute_auto_members(head)
    created = reactivated = unchanged = skipped_manual = deactivated = 0

    existing = {
        item.member_id: item
        for item in db.execute(select(FamilyMembership).where(FamilyMembership.family_id == family.id)).scalars()
    }

    for member_id in sorted(auto_ids):
        membership = existing.get(member_id)
        if membership is None:
            db.add(
                FamilyMembership(
                    member_id=member_id,
                    family_id=family.id,
                    role=FamilyRoleEnum.head if member_id == head.id else FamilyRoleEnum.member,
                    type=MembershipTypeEnum.sub,
                    is_active=True,
                    auto_enrolled=True,
                    manually_edited=False,
                )
            )
            created += 1
        elif membership.manually_edited:
            skipped_manual += 1
        elif membership.is_active and membership.auto_enrolled:
            unchanged += 1
        else:
            membership.is_active = True
            membership.auto_enrolled = True
            reactivated += 1

    if policy == PRUNE_DEACTIVATE:
        for member_id, membership in existing.items():
            if member_id in auto_ids or member_id == family.creator_id:
                continue
            if membership.manually_edited or not membership.auto_enrolled or not membership.is_active:
                continue
            membership.is_active = False
            deactivated += 1

    db.flush()
    logger.info(
        "recalculated sub-family %s: %d in lineage, %d created, %d reactivated, %d manual, %d deactivated",
        family.id,
        len(auto_ids),
        created,
        reactivated,
        skipped_manual,
        deactivated,
    )
    return SubFamilySyncStats(
        family_id=family.id,
        member_ids=frozenset(auto_ids),
        created=created,
        reactivated=reactivated,
        unchanged=unchanged,
        skipped_manual=skipped_manual,
        deactivated=deactivated,
    )


def _ancestors_and_self(db: Session, member_ids: Iterable[int]) -> set[int]:
    seen: set[int] = set()
    stack = [member_id for member_id in member_ids if member_id is not None]
    while stack:
        member_id = stack.pop()
        if member_id in seen:
            continue
        seen.add(member_id)
        member = db.get(Member, member_id)
        if member is not None:
            stack.extend(parent.id for parent in member.parents)
    return seen


def subfamilies_affected_by(db: Session, member_ids: Iterable[int]) -> list[Family]:
    """Sub-families headed by one of the members or by one of their ancestors."""
    db.flush()
    lineage = _ancestors_and_self(db, member_ids)
    if not lineage:
        return []
    return list(
        db.execute(
            select(Family)
            .where(Family.is_sub_family.is_(True), Family.head_of_family_id.in_(lineage))
            .order_by(Family.id.asc())
        ).scalars()
    )


def resync_affected_subfamilies(db: Session, member_ids: Iterable[int]) -> list[SubFamilySyncStats]:
    return [recalculate_subfamily_memberships(db, family.id) for family in subfamilies_affected_by(db, member_ids)]
