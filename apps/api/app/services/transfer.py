from __future__ import annotations

import csv
import io
import json
import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.entities import (
    Family,
    FamilyMembership,
    FamilyRoleEnum,
    GenderEnum,
    Member,
    MemberStatusEnum,
    MembershipTypeEnum,
)
from app.schemas.transfer import (
    ExportMemberResponse,
    FamilyExportResponse,
    ImportIssue,
    ImportMemberPayload,
    ImportResultResponse,
)
from app.services.relationships import RelationshipTypeEnum, connect
from app.services.subfamily import resync_affected_subfamilies

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["id", "name", "gender", "status", "role", "parents", "spouses"]


def map_family_role(role: str | None) -> FamilyRoleEnum:
    try:
        return FamilyRoleEnum((role or "").upper())
    except ValueError:
        return FamilyRoleEnum.member


def export_family(db: Session, family: Family, include_personal_info: bool = False) -> FamilyExportResponse:
    rows = db.execute(
        select(Member, FamilyMembership)
        .join(FamilyMembership, FamilyMembership.member_id == Member.id)
        .where(FamilyMembership.family_id == family.id, FamilyMembership.is_active.is_(True))
        .order_by(Member.id.asc())
    ).all()
    in_family = {member.id for member, _ in rows}

    members = []
    for member, membership in rows:
        members.append(
            ExportMemberResponse(
                id=member.id,
                name=member.name,
                gender=member.gender.value if member.gender else None,
                status=member.status.value,
                role=membership.role.value,
                personal_info=json.loads(member.personal_info or "{}") if include_personal_info else None,
                parent_names=[parent.name for parent in member.parents if parent.id in in_family],
                spouse_names=[spouse.name for spouse in member.all_spouses if spouse.id in in_family],
            )
        )
    return FamilyExportResponse(
        family_id=family.id,
        family_name=family.name,
        exported_at=datetime.now(timezone.utc),
        members=members,
    )


def export_family_csv(export: FamilyExportResponse) -> str:
    buffer = io.StringIO()
    columns = CSV_COLUMNS + (["personal_info"] if any(m.personal_info is not None for m in export.members) else [])
    writer = csv.writer(buffer)
    writer.writerow(columns)
    for member in export.members:
        row = [
            member.id,
            member.name,
            member.gender or "",
            member.status,
            member.role,
            ";".join(member.parent_names),
            ";".join(member.spouse_names),
        ]
        if "personal_info" in columns:
            row.append(json.dumps(member.personal_info or {}))
        writer.writerow(row)
    return buffer.getvalue()


def import_members(db: Session, family: Family, items: list[ImportMemberPayload]) -> ImportResultResponse:
    """
    Create members inside a family and link them by name.

    Names are matched case-insensitively within the batch only. The caller commits,
    so the batch lands as one transaction.
    """
    errors: list[ImportIssue] = []
    warnings: list[ImportIssue] = []
    by_name: dict[str, Member] = {}
    row_members: dict[int, Member] = {}

    for row, item in enumerate(items, start=1):
        key = item.name.strip().lower()
        if not key:
            errors.append(ImportIssue(row=row, field="name", message="name must not be blank"))
            continue
        if key in by_name:
            errors.append(ImportIssue(row=row, field="name", message=f"duplicate name in import: {item.name}"))
            continue
        member = Member(
            name=item.name.strip(),
            gender=GenderEnum(item.gender) if item.gender else None,
            status=MemberStatusEnum(item.status) if item.status else MemberStatusEnum.active,
            personal_info=json.dumps(item.personal_info),
        )
        db.add(member)
        db.flush()
        db.add(
            FamilyMembership(
                member_id=member.id,
                family_id=family.id,
                role=map_family_role(item.family_role),
                type=MembershipTypeEnum.sub if family.is_sub_family else MembershipTypeEnum.main,
                auto_enrolled=False,
                manually_edited=False,
            )
        )
        by_name[key] = member
        row_members[row] = member

    for row, item in enumerate(items, start=1):
        member = row_members.get(row)
        if member is None:
            continue
        for field, names, relationship_type in (
            ("parent_names", item.parent_names, RelationshipTypeEnum.parent),
            ("spouse_names", item.spouse_names, RelationshipTypeEnum.spouse),
        ):
            for name in names:
                related = by_name.get(name.strip().lower())
                if related is None:
                    warnings.append(ImportIssue(row=row, field=field, message=f"unknown member name: {name}"))
                elif related is member:
                    warnings.append(ImportIssue(row=row, field=field, message="cannot relate a member to itself"))
                else:
                    connect(member, related, relationship_type)

    created_ids = [member.id for member in by_name.values()]
    resync_affected_subfamilies(db, created_ids)
    logger.info(
        "imported %d members into family %s (%d errors, %d warnings)",
        len(created_ids),
        family.id,
        len(errors),
        len(warnings),
    )
    return ImportResultResponse(
        success=not errors,
        total_records=len(items),
        successful_imports=len(created_ids),
        failed_imports=len(errors),
        errors=errors,
        warnings=warnings,
        member_ids={member.name: member.id for member in by_name.values()},
    )
