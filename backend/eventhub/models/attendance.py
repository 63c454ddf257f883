"""Attendance ORM model, one row per (event, user)."""
import enum

from sqlalchemy import Column, String, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import relationship

from eventhub.database import Base
from eventhub.models.mixins import SoftDeleteMixin, TimestampMixin


class AttendanceStatus(str, enum.Enum):
    GOING = "GOING"
    MAYBE = "MAYBE"
    DECLINED = "DECLINED"
    # Never stored: reported when no active row exists.
    NONE = "NONE"


class Attendance(SoftDeleteMixin, TimestampMixin, Base):
    __tablename__ = "attendances"

    event_id = Column(String(36), ForeignKey("events.event_id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), primary_key=True)
    status = Column(SAEnum(AttendanceStatus), nullable=False)
    responded_at = Column(DateTime(timezone=True), nullable=False)

    event = relationship("Event", back_populates="attendances")
    user = relationship("User", back_populates="attendances")
