from __future__ import annotations

import json
from collections import deque

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.entities import Family, FamilyMembership, GenderEnum, Member, MemberStatusEnum
from app.schemas.tree import (
    FamilyTreeResponse,
    MemberBirthYear,
    TreeConnectionResponse,
    TreeNodeResponse,
    TreeStatisticsResponse,
)


def family_members(db: Session, family_id: int) -> list[Member]:
    return list(
        db.execute(
            select(Member)
            .join(FamilyMembership, FamilyMembership.member_id == Member.id)
            .where(FamilyMembership.family_id == family_id, FamilyMembership.is_active.is_(True))
            .order_by(Member.id.asc())
        ).scalars()
    )


def assign_levels(members: list[Member], center_id: int | None) -> dict[int, int]:
    """Breadth-first from the center: children one level down, parents one up, spouses alongside."""
    in_tree = {member.id: member for member in members}
    levels: dict[int, int] = {}
    if center_id not in in_tree:
        return levels

    queue = deque([(center_id, 0)])
    while queue:
        member_id, level = queue.popleft()
        if member_id in levels:
            continue
        levels[member_id] = level
        member = in_tree[member_id]
        for child in member.children:
            if child.id in in_tree and child.id not in levels:
                queue.append((child.id, level + 1))
        for parent in member.parents:
            if parent.id in in_tree and parent.id not in levels:
                queue.append((parent.id, level - 1))
        for spouse in member.all_spouses:
            if spouse.id in in_tree and spouse.id not in levels:
                queue.append((spouse.id, level))
    return levels


def _generations(levels: list[int]) -> int:
    if not levels:
        return 0
    return max(levels) - min(levels) + 1


def build_family_tree(db: Session, family: Family, center_member_id: int | None) -> FamilyTreeResponse:
    members = family_members(db, family.id)
    in_tree = {member.id for member in members}
    if center_member_id not in in_tree:
        center_member_id = members[0].id if members else None

    levels = assign_levels(members, center_member_id)
    nodes: list[TreeNodeResponse] = []
    connections: list[TreeConnectionResponse] = []
    seen_couples: set[tuple[int, int]] = set()

    for member in members:
        parent_ids = [parent.id for parent in member.parents if parent.id in in_tree]
        child_ids = [child.id for child in member.children if child.id in in_tree]
        spouse_ids = [spouse.id for spouse in member.all_spouses if spouse.id in in_tree]
        nodes.append(
            TreeNodeResponse(
                id=member.id,
                name=member.name,
                gender=member.gender.value if member.gender else None,
                status=member.status.value,
                level=levels.get(member.id, 0),
                parent_ids=parent_ids,
                child_ids=child_ids,
                spouse_ids=spouse_ids,
            )
        )
        for parent_id in parent_ids:
            connections.append(TreeConnectionResponse(from_id=parent_id, to_id=member.id, type="parent"))
        for child_id in child_ids:
            connections.append(TreeConnectionResponse(from_id=member.id, to_id=child_id, type="child"))
        for spouse_id in spouse_ids:
            couple = (min(member.id, spouse_id), max(member.id, spouse_id))
            if couple not in seen_couples:
                seen_couples.add(couple)
                connections.append(TreeConnectionResponse(from_id=member.id, to_id=spouse_id, type="spouse"))

    return FamilyTreeResponse(
        family_id=family.id,
        family_name=family.name,
        center_member_id=center_member_id,
        total_members=len(members),
        generations=_generations([node.level for node in nodes]),
        nodes=nodes,
        connections=connections,
    )


def _birth_year(member: Member) -> int | None:
    try:
        info = json.loads(member.personal_info or "{}")
    except json.JSONDecodeError:
        return None
    value = info.get("birthYear") if isinstance(info, dict) else None
    return value if isinstance(value, int) else None


def tree_statistics(db: Session, family: Family, center_member_id: int | None) -> TreeStatisticsResponse:
    members = family_members(db, family.id)
    sub_family_count = db.execute(
        select(func.count(Family.id)).where(Family.parent_family_id == family.id)
    ).scalar_one()

    gender_distribution = {"male": 0, "female": 0, "other": 0, "unspecified": 0}
    status_distribution = {status.value.lower(): 0 for status in MemberStatusEnum}
    oldest: MemberBirthYear | None = None
    youngest: MemberBirthYear | None = None
    total_children = 0

    for member in members:
        if member.gender in (None, GenderEnum.prefer_not_to_say):
            gender_distribution["unspecified"] += 1
        else:
            gender_distribution[member.gender.value.lower()] += 1
        status_distribution[member.status.value.lower()] += 1
        total_children += len(member.children)

        year = _birth_year(member)
        if year is None:
            continue
        if oldest is None or year < oldest.birth_year:
            oldest = MemberBirthYear(id=member.id, name=member.name, birth_year=year)
        if youngest is None or year > youngest.birth_year:
            youngest = MemberBirthYear(id=member.id, name=member.name, birth_year=year)

    tree = build_family_tree(db, family, center_member_id)
    return TreeStatisticsResponse(
        total_members=len(members),
        total_families=1 + sub_family_count,
        total_generations=tree.generations,
        average_children_per_member=round(total_children / len(members), 2) if members else 0.0,
        oldest_member=oldest,
        youngest_member=youngest,
        gender_distribution=gender_distribution,
        status_distribution=status_distribution,
    )
