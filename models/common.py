from pydantic import BaseModel, Field
from typing import Generic, List, Literal, TypeVar
import math

T = TypeVar("T")


class PaginationModel(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationModel":
        return cls(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit) if limit else 0)


class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T] = Field(default_factory=list)
    pagination: PaginationModel


SortOrder = Literal['asc', 'desc']
