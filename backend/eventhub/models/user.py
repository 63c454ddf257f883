"""User ORM model."""
import enum
import uuid

from sqlalchemy import Column, String, Enum as SAEnum
from sqlalchemy.orm import relationship

from eventhub.database import Base
from eventhub.models.mixins import SoftDeleteMixin, TimestampMixin


class Role(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(SoftDeleteMixin, TimestampMixin, Base):
    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(SAEnum(Role), nullable=False, default=Role.USER)

    hosted_events = relationship("Event", back_populates="host")
    attendances = relationship("Attendance", back_populates="user")
