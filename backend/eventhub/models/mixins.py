"""Column mixins shared by every table: timestamps and the soft-delete marker."""
from sqlalchemy import Column, DateTime
from sqlalchemy.sql import func

from eventhub.dates import utcnow


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )


class SoftDeleteMixin:
    """A nullable ``deleted_at`` timestamp; null means the row is active.

    Nothing in the ORM hides deleted rows on its own. Reads go through
    ``SoftDeleteFilter.apply`` (see ``eventhub.services.soft_delete``).
    """

    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self) -> None:
        self.deleted_at = utcnow()

    def restore(self) -> None:
        self.deleted_at = None
