from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import AuthContext, get_auth_context
from app.core.db import get_db
from app.schemas.tree import FamilyTreeResponse, TreeStatisticsResponse
from app.services.access import current_member, require_family, verify_family_access
from app.services.tree import build_family_tree, tree_statistics

router = APIRouter(prefix="/v1/families", tags=["tree"])


@router.get("/{family_id}/tree", response_model=FamilyTreeResponse)
def get_family_tree(
    family_id: int,
    center_member_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    family = require_family(db, family_id)
    verify_family_access(db, actor.id, family_id)
    return build_family_tree(db, family, center_member_id)


@router.get("/{family_id}/tree/statistics", response_model=TreeStatisticsResponse)
def get_family_tree_statistics(
    family_id: int,
    center_member_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    family = require_family(db, family_id)
    verify_family_access(db, actor.id, family_id)
    return tree_statistics(db, family, center_member_id)
