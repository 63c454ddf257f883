"""Shared response schemas: the pagination envelope."""
from typing import Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PageResponse(BaseModel, Generic[T]):
    items: List[T]
    page: int
    size: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool
