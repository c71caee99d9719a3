from typing import Generic, List, TypeVar
from pydantic import BaseModel, Field

T = TypeVar("T")

# 00:00 .. 23:59
HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
POSTAL_CODE_PATTERN = r"^\d{5}$"


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T] = Field(default_factory=list)  # type: ignore[assignment]
    pagination: PaginationMeta


def build_pagination(page: int, limit: int, total: int) -> PaginationMeta:
    total_pages = max(1, (total + limit - 1) // limit)
    return PaginationMeta(
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


def to_orm_fields(data: dict) -> dict:
    """Payload keys to ORM attribute names ("metadata" is reserved on models)."""
    if "metadata" in data:
        data = dict(data)
        data["extra_metadata"] = data.pop("metadata")
    return data
