from datetime import timezone
from typing import Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base des schémas exposés en camelCase (entrée acceptée en camelCase ou snake_case)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class MessageResponse(BaseModel):
    message: str


class Page(CamelModel, Generic[T]):
    data: List[T]
    total: int
    page: int
    limit: int
    total_pages: int
    has_more: bool


def paginate_meta(total: int, page: int, limit: int, returned: int) -> dict:
    skip = (page - 1) * limit
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": (total + limit - 1) // limit,
        "has_more": skip + returned < total,
    }


def naive_utc(value):
    """Les dates sont stockées en UTC sans fuseau."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
