"""Paging and sorting for list queries."""
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

from sqlalchemy.orm import Query

from eventhub.schemas.common import PageResponse
from eventhub.services.exceptions import BadRequestError

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class PageRequest:
    page: int = 0
    size: int = 10
    sort_by: str = "start_time"
    sort_dir: str = "asc"

    def __post_init__(self):
        if self.page < 0:
            raise BadRequestError("Page index must not be negative", field="page")
        if not 1 <= self.size <= MAX_PAGE_SIZE:
            raise BadRequestError(f"Page size must be between 1 and {MAX_PAGE_SIZE}", field="size")
        if self.sort_dir.lower() not in ("asc", "desc"):
            raise BadRequestError("Sort direction must be 'asc' or 'desc'", field="sort_dir")

    @property
    def descending(self) -> bool:
        return self.sort_dir.lower() == "desc"


def apply_sort(query: Query, page_request: PageRequest, sortable: Dict[str, Any]) -> Query:
    column = sortable.get(page_request.sort_by)
    if column is None:
        raise BadRequestError(
            f"Cannot sort by '{page_request.sort_by}'; allowed: {', '.join(sorted(sortable))}",
            field="sort_by",
        )
    return query.order_by(column.desc() if page_request.descending else column.asc())


def paginate(query: Query, page_request: PageRequest, to_item: Callable[[Any], Any]) -> PageResponse:
    """Run ``query`` for one page; ``query`` must already be sorted."""
    total = query.order_by(None).count()
    rows: List[Any] = query.offset(page_request.page * page_request.size).limit(page_request.size).all()
    total_pages = math.ceil(total / page_request.size) if total else 0
    return PageResponse(
        items=[to_item(row) for row in rows],
        page=page_request.page,
        size=page_request.size,
        total=total,
        total_pages=total_pages,
        has_next=page_request.page + 1 < total_pages,
        has_prev=page_request.page > 0,
    )
