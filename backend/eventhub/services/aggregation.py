"""Attendance counts for event detail views, computed from active rows on every call."""
from typing import Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from eventhub.models.attendance import Attendance, AttendanceStatus
from eventhub.services import soft_delete


def attendance_breakdown(db: Session, event_id: str) -> Dict[AttendanceStatus, int]:
    """Map each status present on the event to its number of active rows."""
    query = soft_delete.enable().apply(
        db.query(Attendance.status, func.count()).filter(Attendance.event_id == event_id),
        Attendance,
    )
    return {status: count for status, count in query.group_by(Attendance.status).all()}


def count_from(breakdown: Dict[AttendanceStatus, int]) -> int:
    return sum(breakdown.values())


def attendee_count(db: Session, event_id: str) -> int:
    return count_from(attendance_breakdown(db, event_id))
