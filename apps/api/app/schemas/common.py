from pydantic import BaseModel


class PaginationResponse(BaseModel):
    current: int
    limit: int
    total: int
    pages: int


def paginate(page: int, limit: int, total: int) -> PaginationResponse:
    return PaginationResponse(current=page, limit=limit, total=total, pages=-(-total // limit) if limit else 0)


class MessageResponse(BaseModel):
    message: str
    count: int | None = None
