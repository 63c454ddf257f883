"""Core event service: event lifecycle, visibility and cached reads.

Responsibilities:
- Time-range validation: start strictly in the future at creation, end >= start always
- Authorization hook: only the host or an admin may update/delete
- Visibility: PRIVATE events readable by host, admin and attendees only
- Soft delete: deletion sets ``deleted_at``; attendances are kept unless the
  caller asks for the cascade explicitly
- Cache invalidation: every mutation evicts the whole ``events`` namespace
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Query, Session, joinedload

from eventhub.dates import as_utc, is_in_future, utcnow
from eventhub.models.attendance import Attendance, AttendanceStatus
from eventhub.models.event import Event, Visibility
from eventhub.schemas.common import PageResponse
from eventhub.schemas.event import AttendanceRequest, AttendeeOut, EventCreate, EventDetailOut, EventOut, EventUpdate
from eventhub.services import aggregation, attendance_service, soft_delete, user_service
from eventhub.services.cache import EVENTS, cache_key, evict_events, get_cache
from eventhub.services.exceptions import BadRequestError, NotFoundError
from eventhub.services.pagination import PageRequest, apply_sort, paginate
from eventhub.services.policy import Actor, require_actor, require_admin, require_attend, require_mutate, require_view
from eventhub.services.soft_delete import SoftDeleteFilter

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "start_time": Event.start_time,
    "end_time": Event.end_time,
    "title": Event.title,
    "location": Event.location,
    "created_at": Event.created_at,
}


@dataclass(frozen=True)
class EventFilters:
    """Optional, AND-combined list filters; None matches everything."""

    title: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    visibility: Optional[Visibility] = None
    host_id: Optional[str] = None


def _validate_time_range(start: datetime, end: datetime) -> None:
    if as_utc(end) < as_utc(start):
        raise BadRequestError("End time must be after start time", field="end_time")


def get_event(db: Session, event_id: str, sd_filter: SoftDeleteFilter = soft_delete.ACTIVE) -> Event:
    query = sd_filter.apply(db.query(Event).options(joinedload(Event.host)), Event)
    event = query.filter(Event.event_id == event_id).first()
    if not event:
        raise NotFoundError("Event", event_id)
    return event


def create_event(db: Session, request: EventCreate, host_id: str) -> Event:
    if not is_in_future(request.start_time):
        raise BadRequestError("Start time must be in the future", field="start_time")
    _validate_time_range(request.start_time, request.end_time)

    host = user_service.get_user(db, host_id)
    event = Event(
        title=request.title,
        description=request.description,
        host_id=host.user_id,
        start_time=request.start_time,
        end_time=request.end_time,
        location=request.location,
        visibility=request.visibility or Visibility.PUBLIC,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    evict_events()
    logger.info("Created event '%s' (%s) hosted by %s", event.title, event.event_id, host_id)
    return event


def update_event(db: Session, event_id: str, request: EventUpdate, actor: Optional[Actor]) -> Event:
    """Apply the non-null fields of ``request``; the resulting range must still be valid."""
    event = get_event(db, event_id)
    require_mutate(actor, event)

    updates = {field: value for field, value in request.model_dump(exclude_unset=True).items() if value is not None}
    _validate_time_range(
        updates.get("start_time", event.start_time),
        updates.get("end_time", event.end_time),
    )

    for field, value in updates.items():
        setattr(event, field, value)

    db.commit()
    db.refresh(event)
    evict_events()
    logger.info("Updated event %s (%s) by %s", event_id, ", ".join(sorted(updates)) or "no changes", actor.id)
    return event


def delete_event(db: Session, event_id: str, actor: Optional[Actor], cascade_attendances: bool = False) -> Event:
    """Soft-delete the event; its attendances are only soft-deleted when asked to."""
    event = get_event(db, event_id)
    require_mutate(actor, event)

    event.soft_delete()
    withdrawn = 0
    if cascade_attendances:
        withdrawn = attendance_service.soft_delete_event_attendances(db, event_id)

    db.commit()
    evict_events()
    logger.info("Deleted event %s by %s (%d attendances soft-deleted)", event_id, actor.id, withdrawn)
    return event


def restore_event(db: Session, event_id: str, actor: Optional[Actor]) -> Event:
    require_admin(actor)
    event = soft_delete.without_filter(lambda f: get_event(db, event_id, f))
    if event.is_deleted:
        event.restore()
        db.commit()
        db.refresh(event)
        evict_events()
        logger.info("Restored event %s by %s", event_id, actor.id)
    return event


def get_event_details(
    db: Session,
    event_id: str,
    actor: Optional[Actor],
    sd_filter: SoftDeleteFilter = soft_delete.ACTIVE,
) -> EventDetailOut:
    """Event with attendance breakdown and attendee list, cached per viewer."""
    actor_id = actor.id if actor else None
    key = cache_key("detail", event_id, actor_id or "anonymous", sd_filter.include_deleted)
    cache = get_cache()
    cached = cache.get(EVENTS, key)
    if cached is not None:
        return cached

    event = get_event(db, event_id, sd_filter)
    require_view(actor, event, attendance_service.is_attendee(db, event_id, actor_id))

    breakdown = aggregation.attendance_breakdown(db, event_id)
    attendees = [
        AttendeeOut(
            user_id=a.user_id,
            user_name=a.user.name,
            status=a.status,
            responded_at=a.responded_at,
        )
        for a in attendance_service.find_active_attendances(db, event_id)
    ]
    detail = EventDetailOut(
        **EventOut.model_validate(event).model_dump(),
        attendee_count=aggregation.count_from(breakdown),
        attendance_breakdown=breakdown,
        attendees=attendees,
    )
    cache.put(EVENTS, key, detail)
    return detail


def _visible_to(query: Query, actor: Optional[Actor]) -> Query:
    """Restrict a listing to events the actor may view."""
    if actor is None:
        return query.filter(Event.visibility == Visibility.PUBLIC)
    if actor.is_admin:
        return query
    attending = select(Attendance.event_id).where(
        Attendance.user_id == actor.id,
        Attendance.deleted_at.is_(None),
    )
    return query.filter(
        or_(
            Event.visibility == Visibility.PUBLIC,
            Event.host_id == actor.id,
            Event.event_id.in_(attending),
        )
    )


def _apply_filters(query: Query, filters: EventFilters) -> Query:
    if filters.title:
        query = query.filter(func.lower(Event.title).contains(filters.title.lower(), autoescape=True))
    if filters.location:
        query = query.filter(func.lower(Event.location).contains(filters.location.lower(), autoescape=True))
    if filters.start_date:
        query = query.filter(Event.start_time >= as_utc(filters.start_date))
    if filters.end_date:
        query = query.filter(Event.end_time <= as_utc(filters.end_date))
    if filters.visibility:
        query = query.filter(Event.visibility == filters.visibility)
    if filters.host_id:
        query = query.filter(Event.host_id == filters.host_id)
    return query


def _events_query(db: Session, sd_filter: SoftDeleteFilter = soft_delete.ACTIVE) -> Query:
    return sd_filter.apply(db.query(Event).options(joinedload(Event.host)), Event)


def list_events(
    db: Session,
    filters: EventFilters,
    page_request: PageRequest,
    actor: Optional[Actor],
    sd_filter: SoftDeleteFilter = soft_delete.ACTIVE,
) -> PageResponse:
    key = cache_key(
        "list",
        actor.id if actor else "anonymous",
        actor.role if actor else None,
        filters.title,
        filters.location,
        filters.start_date.isoformat() if filters.start_date else None,
        filters.end_date.isoformat() if filters.end_date else None,
        filters.visibility,
        filters.host_id,
        page_request.page,
        page_request.size,
        page_request.sort_by,
        page_request.sort_dir.lower(),
        sd_filter.include_deleted,
    )
    cache = get_cache()
    cached = cache.get(EVENTS, key)
    if cached is not None:
        return cached

    query = _apply_filters(_visible_to(_events_query(db, sd_filter), actor), filters)
    page = paginate(apply_sort(query, page_request, SORTABLE_FIELDS), page_request, EventOut.model_validate)
    cache.put(EVENTS, key, page)
    return page


def upcoming_events(db: Session, page_request: PageRequest, now: Optional[datetime] = None) -> PageResponse:
    """Public events that have not started yet, soonest first.

    Only reads relative to the current time are cached; an explicit ``now``
    always queries.
    """
    cache = get_cache()
    key = cache_key("upcoming", page_request.page, page_request.size)
    if now is None:
        cached = cache.get(EVENTS, key)
        if cached is not None:
            return cached

    query = _events_query(db).filter(
        Event.visibility == Visibility.PUBLIC,
        Event.start_time > (now or utcnow()),
    )
    page = paginate(query.order_by(Event.start_time.asc()), page_request, EventOut.model_validate)
    if now is None:
        cache.put(EVENTS, key, page)
    return page


def hosted_events(db: Session, host_id: str, page_request: PageRequest) -> PageResponse:
    query = _events_query(db).filter(Event.host_id == host_id)
    return paginate(apply_sort(query, page_request, SORTABLE_FIELDS), page_request, EventOut.model_validate)


def attending_events(db: Session, user_id: str, page_request: PageRequest) -> PageResponse:
    query = soft_delete.enable().apply(
        _events_query(db).join(Attendance, Attendance.event_id == Event.event_id),
        Attendance,
    )
    query = query.filter(Attendance.user_id == user_id)
    return paginate(apply_sort(query, page_request, SORTABLE_FIELDS), page_request, EventOut.model_validate)


def events_ending_soon(db: Session, within: timedelta, now: Optional[datetime] = None) -> List[Event]:
    """Active events whose end falls in the next ``within``."""
    now = now or utcnow()
    return (
        _events_query(db)
        .filter(Event.end_time >= now, Event.end_time <= now + within)
        .order_by(Event.end_time)
        .all()
    )


def update_attendance(db: Session, request: AttendanceRequest, actor: Optional[Actor]) -> Attendance:
    """RSVP to an event, for the actor or, as host/admin, for another user."""
    actor = require_actor(actor)
    event = get_event(db, request.event_id)
    user_id = request.user_id or actor.id
    if user_id != actor.id:
        require_mutate(actor, event)
        user_service.get_user(db, user_id)
    else:
        require_attend(actor, event, attendance_service.is_attendee(db, event.event_id, actor.id))
    return attendance_service.set_attendance(db, event.event_id, user_id, request.status)


def get_attendance_status(db: Session, event_id: str, actor: Optional[Actor]) -> AttendanceStatus:
    actor = require_actor(actor)
    event = get_event(db, event_id)
    require_view(actor, event, attendance_service.is_attendee(db, event_id, actor.id))
    return attendance_service.get_attendance_status(db, event_id, actor.id)


def withdraw_attendance(db: Session, event_id: str, actor: Optional[Actor]) -> None:
    actor = require_actor(actor)
    get_event(db, event_id)
    attendance_service.withdraw_attendance(db, event_id, actor.id)


def restore_attendance(db: Session, event_id: str, actor: Optional[Actor]) -> Attendance:
    actor = require_actor(actor)
    get_event(db, event_id)
    return attendance_service.restore_attendance(db, event_id, actor.id)
