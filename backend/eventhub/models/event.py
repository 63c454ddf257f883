"""Event ORM model."""
import enum
import uuid

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import relationship

from eventhub.database import Base
from eventhub.models.mixins import SoftDeleteMixin, TimestampMixin


class Visibility(str, enum.Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


class Event(SoftDeleteMixin, TimestampMixin, Base):
    __tablename__ = "events"

    event_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    host_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(500), nullable=True)
    visibility = Column(SAEnum(Visibility), nullable=False, default=Visibility.PUBLIC)

    host = relationship("User", back_populates="hosted_events")
    # Physical deletes cascade in the database; soft deletes never cascade here.
    attendances = relationship("Attendance", back_populates="event", passive_deletes=True)

    @property
    def host_name(self):
        return self.host.name if self.host else None
