from datetime import datetime
from typing import Any

from pydantic import BaseModel, EmailStr, Field

GENDER_PATTERN = "^(MALE|FEMALE|OTHER|PREFER_NOT_TO_SAY)$"
STATUS_PATTERN = "^(ACTIVE|INACTIVE|DECEASED|ARCHIVED)$"
RELATIONSHIP_PATTERN = "^(PARENT|CHILD|SPOUSE)$"


class ProfileCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    gender: str | None = Field(default=None, pattern=GENDER_PATTERN)
    personal_info: dict[str, Any] = Field(default_factory=dict)
    family_name: str | None = Field(default=None, min_length=1, max_length=255)
    family_description: str | None = None


class MemberUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    gender: str | None = Field(default=None, pattern=GENDER_PATTERN)
    status: str | None = Field(default=None, pattern=STATUS_PATTERN)
    personal_info: dict[str, Any] | None = None


class RelationshipPayload(BaseModel):
    related_member_id: int
    relationship_type: str = Field(pattern=RELATIONSHIP_PATTERN)


class MemberCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    family_id: int
    email: EmailStr | None = None
    gender: str | None = Field(default=None, pattern=GENDER_PATTERN)
    status: str | None = Field(default=None, pattern=STATUS_PATTERN)
    personal_info: dict[str, Any] = Field(default_factory=dict)
    initial_relationships: list[RelationshipPayload] = Field(default_factory=list)


class BulkRelationshipRequest(BaseModel):
    relationships: list[RelationshipPayload] = Field(min_length=1)


class RelationshipResult(BaseModel):
    related_member_id: int
    relationship_type: str
    success: bool
    message: str


class RelationshipResponse(BaseModel):
    success: bool
    message: str


class BulkRelationshipResponse(BaseModel):
    success: bool
    message: str
    results: list[RelationshipResult]


class MemberSummary(BaseModel):
    id: int
    name: str
    gender: str | None


class MemberMembershipResponse(BaseModel):
    id: int
    family_id: int
    family_name: str
    role: str
    type: str
    auto_enrolled: bool
    manually_edited: bool
    is_active: bool
    join_date: datetime


class MemberResponse(BaseModel):
    id: int
    name: str
    email: str | None
    gender: str | None
    status: str
    personal_info: dict[str, Any]
    created_at: datetime
    updated_at: datetime
    parents: list[MemberSummary]
    children: list[MemberSummary]
    spouses: list[MemberSummary]
    family_memberships: list[MemberMembershipResponse]
