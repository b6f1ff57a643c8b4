from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db import get_db
from app.models.entities import Family, FamilyMembership
from app.services.access import require_family
from app.services.purge import purge_family
from app.services.subfamily import recalculate_subfamily_memberships

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/admin/families", tags=["admin"])


def _require_internal_token(x_internal_admin_token: str | None) -> None:
    if not x_internal_admin_token or x_internal_admin_token != settings.internal_admin_token:
        raise HTTPException(status_code=401, detail="invalid internal admin token")


@router.get("")
def list_families_admin(
    db: Session = Depends(get_db),
    x_internal_admin_token: str | None = Header(default=None, alias="X-Internal-Admin-Token"),
):
    _require_internal_token(x_internal_admin_token)
    active_counts = dict(
        db.execute(
            select(FamilyMembership.family_id, func.count(FamilyMembership.id))
            .where(FamilyMembership.is_active.is_(True))
            .group_by(FamilyMembership.family_id)
        ).all()
    )
    families = db.execute(select(Family).order_by(Family.id.asc())).scalars().all()
    return {
        "items": [
            {
                "id": fam.id,
                "name": fam.name,
                "is_sub_family": fam.is_sub_family,
                "parent_family_id": fam.parent_family_id,
                "head_of_family_id": fam.head_of_family_id,
                "active_members": active_counts.get(fam.id, 0),
            }
            for fam in families
        ]
    }


@router.post("/{family_id}/recalculate")
def recalculate_family_admin(
    family_id: int,
    prune_policy: str | None = None,
    db: Session = Depends(get_db),
    x_internal_admin_token: str | None = Header(default=None, alias="X-Internal-Admin-Token"),
):
    _require_internal_token(x_internal_admin_token)
    require_family(db, family_id)
    try:
        stats = recalculate_subfamily_memberships(db, family_id, prune_policy=prune_policy)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from None
    db.commit()
    return {
        "family_id": stats.family_id,
        "member_ids": sorted(stats.member_ids),
        "created": stats.created,
        "reactivated": stats.reactivated,
        "unchanged": stats.unchanged,
        "skipped_manual": stats.skipped_manual,
        "deactivated": stats.deactivated,
    }


@router.delete("/{family_id}", status_code=204)
def delete_family_admin(
    family_id: int,
    db: Session = Depends(get_db),
    x_internal_admin_token: str | None = Header(default=None, alias="X-Internal-Admin-Token"),
):
    _require_internal_token(x_internal_admin_token)

    family = require_family(db, family_id)
    has_sub_families = db.execute(
        select(Family.id).where(Family.parent_family_id == family.id).limit(1)
    ).scalar_one_or_none()
    if has_sub_families is not None:
        raise HTTPException(status_code=400, detail="family has sub-families; delete them first")
    purge_family(db, family.id)
    db.commit()
    logger.warning("family %s purged via internal admin endpoint", family_id)
