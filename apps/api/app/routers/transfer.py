from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.core.auth import AuthContext, get_auth_context
from app.core.db import get_db
from app.schemas.transfer import FamilyExportResponse, ImportRequest, ImportResultResponse
from app.services.access import current_member, require_family, verify_family_access, verify_family_admin_access
from app.services.transfer import export_family, export_family_csv, import_members

router = APIRouter(prefix="/v1/families", tags=["transfer"])


@router.get("/{family_id}/export", response_model=FamilyExportResponse)
def export_family_data(
    family_id: int,
    format: str = Query(default="json", pattern="^(json|csv)$"),
    include_personal_info: bool = Query(default=False),
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    family = require_family(db, family_id)
    verify_family_access(db, actor.id, family_id)

    export = export_family(db, family, include_personal_info)
    if format == "csv":
        return Response(
            content=export_family_csv(export),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="family-{family_id}.csv"'},
        )
    return export


@router.post("/{family_id}/import", response_model=ImportResultResponse)
def import_family_data(
    family_id: int,
    payload: ImportRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    actor = current_member(db, ctx)
    family = require_family(db, family_id)
    verify_family_admin_access(db, actor.id, family_id)

    result = import_members(db, family, payload.members)
    db.commit()
    return result
