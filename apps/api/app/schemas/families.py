from datetime import datetime

from pydantic import BaseModel, Field

ROLE_PATTERN = "^(ADMIN|HEAD|MEMBER|VIEWER)$"
MEMBERSHIP_TYPE_PATTERN = "^(MAIN|SUB)$"


class FamilyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    is_sub_family: bool = False
    parent_family_id: int | None = None
    head_of_family_id: int | None = None


class FamilyUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    head_of_family_id: int | None = None


class FamilyResponse(BaseModel):
    id: int
    name: str
    description: str | None
    is_sub_family: bool
    creator_id: int
    head_of_family_id: int | None
    parent_family_id: int | None
    created_at: datetime
    updated_at: datetime


class FamilyListResponse(BaseModel):
    items: list[FamilyResponse]


class FamilyMembershipCreate(BaseModel):
    member_id: int
    role: str = Field(default="MEMBER", pattern=ROLE_PATTERN)
    type: str | None = Field(default=None, pattern=MEMBERSHIP_TYPE_PATTERN)


class FamilyMembershipUpdate(BaseModel):
    role: str = Field(pattern=ROLE_PATTERN)
    is_active: bool | None = None
    manually_edited: bool | None = None


class FamilyMemberResponse(BaseModel):
    id: int
    name: str
    role: str
    type: str
    is_active: bool
    auto_enrolled: bool
    manually_edited: bool
    join_date: datetime


class FamilyMemberListResponse(BaseModel):
    items: list[FamilyMemberResponse]


class FamilyDetailResponse(FamilyResponse):
    members: list[FamilyMemberResponse]
    sub_families: list[FamilyResponse]
