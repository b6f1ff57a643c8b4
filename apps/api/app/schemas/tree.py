from pydantic import BaseModel


class TreeNodeResponse(BaseModel):
    id: int
    name: str
    gender: str | None
    status: str
    level: int
    parent_ids: list[int]
    child_ids: list[int]
    spouse_ids: list[int]


class TreeConnectionResponse(BaseModel):
    from_id: int
    to_id: int
    type: str  # parent | child | spouse


class FamilyTreeResponse(BaseModel):
    family_id: int
    family_name: str
    center_member_id: int | None
    total_members: int
    generations: int
    nodes: list[TreeNodeResponse]
    connections: list[TreeConnectionResponse]


class MemberBirthYear(BaseModel):
    id: int
    name: str
    birth_year: int


class TreeStatisticsResponse(BaseModel):
    total_members: int
    total_families: int
    total_generations: int
    average_children_per_member: float
    oldest_member: MemberBirthYear | None = None
    youngest_member: MemberBirthYear | None = None
    gender_distribution: dict[str, int]
    status_distribution: dict[str, int]
