"""Row-visibility filter for soft-deleted rows.

The filter is a plain value passed into every read. Each request builds its
own through the ``get_soft_delete_filter`` dependency, so there is no session
state to arm or forget to re-arm.
"""
from dataclasses import dataclass
from typing import Callable, TypeVar

from sqlalchemy.orm import Query

T = TypeVar("T")


@dataclass(frozen=True)
class SoftDeleteFilter:
    include_deleted: bool = False

    def apply(self, query: Query, *models) -> Query:
        """Add ``deleted_at IS NULL`` for each model unless deleted rows are included."""
        if self.include_deleted:
            return query
        for model in models:
            query = query.filter(model.deleted_at.is_(None))
        return query


ACTIVE = SoftDeleteFilter(include_deleted=False)
UNFILTERED = SoftDeleteFilter(include_deleted=True)


def enable() -> SoftDeleteFilter:
    """Filter that excludes soft-deleted rows."""
    return ACTIVE


def without_filter(operation: Callable[[SoftDeleteFilter], T]) -> T:
    """Run ``operation`` with soft-deleted rows visible and return its result."""
    return operation(UNFILTERED)
