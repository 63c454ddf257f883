"""RSVP state per (event, user).

A pair with no active row reads as NONE. ``set_attendance`` is an upsert on
the composite key: it inserts inside a savepoint and, if a concurrent request
inserted the same pair first, updates that row instead. Every call stamps
``responded_at``, even when the status does not change.

Callers are expected to have run the attend policy check already.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from eventhub.dates import utcnow
from eventhub.models.attendance import Attendance, AttendanceStatus
from eventhub.models.event import Event
from eventhub.services import soft_delete
from eventhub.services.cache import evict_events
from eventhub.services.exceptions import BadRequestError, NotFoundError
from eventhub.services.soft_delete import SoftDeleteFilter

logger = logging.getLogger(__name__)


def find_attendance(
    db: Session, event_id: str, user_id: str, sd_filter: SoftDeleteFilter = soft_delete.ACTIVE
) -> Optional[Attendance]:
    query = sd_filter.apply(db.query(Attendance), Attendance)
    return query.filter(Attendance.event_id == event_id, Attendance.user_id == user_id).first()


def is_attendee(db: Session, event_id: str, user_id: Optional[str]) -> bool:
    if user_id is None:
        return False
    return find_attendance(db, event_id, user_id) is not None


def get_attendance_status(db: Session, event_id: str, user_id: str) -> AttendanceStatus:
    attendance = find_attendance(db, event_id, user_id)
    return attendance.status if attendance else AttendanceStatus.NONE


def _respond(attendance: Attendance, status: AttendanceStatus, now: datetime) -> None:
    attendance.status = status
    attendance.responded_at = now
    if attendance.is_deleted:
        attendance.restore()


def set_attendance(db: Session, event_id: str, user_id: str, status: AttendanceStatus) -> Attendance:
    if status == AttendanceStatus.NONE:
        raise BadRequestError("NONE cannot be set; withdraw the attendance instead", field="status")

    now = utcnow()
    # A withdrawn row still owns the key, so look past the filter and revive it.
    attendance = soft_delete.without_filter(lambda f: find_attendance(db, event_id, user_id, f))
    if attendance is None:
        try:
            with db.begin_nested():
                attendance = Attendance(event_id=event_id, user_id=user_id, status=status, responded_at=now)
                db.add(attendance)
        except IntegrityError:
            logger.info("RSVP for event %s by user %s raced an insert; updating existing row", event_id, user_id)
            attendance = soft_delete.without_filter(lambda f: find_attendance(db, event_id, user_id, f))
            if attendance is None:
                raise
            _respond(attendance, status, now)
    else:
        _respond(attendance, status, now)

    db.commit()
    db.refresh(attendance)
    evict_events()
    logger.info("User %s responded %s to event %s", user_id, status.value, event_id)
    return attendance


def withdraw_attendance(db: Session, event_id: str, user_id: str) -> None:
    attendance = find_attendance(db, event_id, user_id)
    if attendance is None:
        raise NotFoundError("Attendance", f"{event_id}/{user_id}")
    attendance.soft_delete()
    db.commit()
    evict_events()
    logger.info("User %s withdrew from event %s", user_id, event_id)


def restore_attendance(db: Session, event_id: str, user_id: str) -> Attendance:
    attendance = soft_delete.without_filter(lambda f: find_attendance(db, event_id, user_id, f))
    if attendance is None:
        raise NotFoundError("Attendance", f"{event_id}/{user_id}")
    if attendance.is_deleted:
        attendance.restore()
        db.commit()
        db.refresh(attendance)
        evict_events()
        logger.info("Restored attendance of user %s on event %s", user_id, event_id)
    return attendance


def find_attendances(
    db: Session, event_id: str, sd_filter: SoftDeleteFilter = soft_delete.ACTIVE
) -> List[Attendance]:
    query = sd_filter.apply(db.query(Attendance).options(joinedload(Attendance.user)), Attendance)
    return query.filter(Attendance.event_id == event_id).order_by(Attendance.responded_at).all()


def find_active_attendances(db: Session, event_id: str) -> List[Attendance]:
    return find_attendances(db, event_id)


def find_all_attendances_including_deleted(db: Session, event_id: str) -> List[Attendance]:
    return soft_delete.without_filter(lambda f: find_attendances(db, event_id, f))


def soft_delete_event_attendances(db: Session, event_id: str) -> int:
    """Mark every active attendance of the event deleted. The caller commits."""
    attendances = find_active_attendances(db, event_id)
    for attendance in attendances:
        attendance.soft_delete()
    return len(attendances)


def upcoming_attendances_for_user(db: Session, user_id: str, now: Optional[datetime] = None) -> List[Attendance]:
    """GOING responses on active events that have not started yet, soonest first."""
    query = soft_delete.enable().apply(db.query(Attendance).join(Event), Attendance, Event)
    return (
        query.filter(
            Attendance.user_id == user_id,
            Attendance.status == AttendanceStatus.GOING,
            Event.start_time > (now or utcnow()),
        )
        .order_by(Event.start_time)
        .all()
    )
