# users_api/models/pagination.py
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Generic, List, TypeVar

from .enums import SortOrder

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """One page of results plus the requested paging parameters. No total count."""
    data: List[T]
    limit: int
    page: int
    sort: SortOrder
    sort_by: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
