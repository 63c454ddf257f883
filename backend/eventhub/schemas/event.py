"""Pydantic schemas for Events and Attendance."""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from eventhub.dates import as_utc
from eventhub.models.attendance import AttendanceStatus
from eventhub.models.event import Visibility


class EventCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    start_time: datetime
    end_time: datetime
    location: Optional[str] = None
    visibility: Visibility = Visibility.PUBLIC

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_utc(cls, value):
        return as_utc(value)


class EventUpdate(BaseModel):
    """Partial update: fields left unset (or null) keep their current value."""

    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    location: Optional[str] = Field(None, min_length=3, max_length=500)
    visibility: Optional[Visibility] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_utc(cls, value):
        return as_utc(value)


class EventOut(BaseModel):
    event_id: str
    title: str
    description: Optional[str] = None
    host_id: str
    host_name: Optional[str] = None
    start_time: datetime
    end_time: datetime
    location: Optional[str] = None
    visibility: Visibility
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("start_time", "end_time", "created_at", "updated_at", "deleted_at")
    @classmethod
    def normalize_utc(cls, value):
        return as_utc(value)


class AttendeeOut(BaseModel):
    user_id: str
    user_name: str
    status: AttendanceStatus
    responded_at: datetime

    @field_validator("responded_at")
    @classmethod
    def normalize_utc(cls, value):
        return as_utc(value)


class EventDetailOut(EventOut):
    attendee_count: int = 0
    attendance_breakdown: Dict[AttendanceStatus, int] = {}
    attendees: List[AttendeeOut] = []


class AttendanceRequest(BaseModel):
    event_id: str
    status: AttendanceStatus
    # Host or admin may respond on someone else's behalf; defaults to the caller.
    user_id: Optional[str] = None


class AttendanceStatusOut(BaseModel):
    event_id: str
    user_id: str
    status: AttendanceStatus


class AttendanceOut(BaseModel):
    event_id: str
    user_id: str
    status: AttendanceStatus
    responded_at: datetime
    deleted_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("responded_at", "deleted_at")
    @classmethod
    def normalize_utc(cls, value):
        return as_utc(value)
