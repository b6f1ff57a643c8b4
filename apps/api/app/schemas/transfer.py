from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ImportMemberPayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    gender: str | None = Field(default=None, pattern="^(MALE|FEMALE|OTHER|PREFER_NOT_TO_SAY)$")
    status: str | None = Field(default=None, pattern="^(ACTIVE|INACTIVE|DECEASED|ARCHIVED)$")
    personal_info: dict[str, Any] = Field(default_factory=dict)
    parent_names: list[str] = Field(default_factory=list)
    spouse_names: list[str] = Field(default_factory=list)
    family_role: str | None = None


class ImportRequest(BaseModel):
    members: list[ImportMemberPayload] = Field(min_length=1)


class ImportIssue(BaseModel):
    row: int
    field: str | None = None
    message: str


class ImportResultResponse(BaseModel):
    success: bool
    total_records: int
    successful_imports: int
    failed_imports: int
    errors: list[ImportIssue]
    warnings: list[ImportIssue]
    member_ids: dict[str, int]


class ExportMemberResponse(BaseModel):
    id: int
    name: str
    gender: str | None
    status: str
    role: str
    personal_info: dict[str, Any] | None = None
    parent_names: list[str]
    spouse_names: list[str]


class FamilyExportResponse(BaseModel):
    family_id: int
    family_name: str
    exported_at: datetime
    members: list[ExportMemberResponse]
