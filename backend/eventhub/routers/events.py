"""Event API routes: delegates to event_service for policy and cache handling."""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from eventhub.database import get_db
from eventhub.models.event import Visibility
from eventhub.schemas.common import PageResponse
from eventhub.schemas.event import (
    AttendanceOut,
    AttendanceRequest,
    AttendanceStatusOut,
    EventCreate,
    EventDetailOut,
    EventOut,
    EventUpdate,
)
from eventhub.security import get_current_actor, get_optional_actor, get_soft_delete_filter
from eventhub.services import event_service
from eventhub.services.event_service import EventFilters
from eventhub.services.pagination import PageRequest
from eventhub.services.policy import Actor
from eventhub.services.soft_delete import SoftDeleteFilter

logger = logging.getLogger(__name__)
router = APIRouter()


def page_params(
    page: int = Query(0, description="Zero-based page index"),
    size: int = Query(10, description="Page size (1-100)"),
    sort_by: str = Query("start_time"),
    sort_dir: str = Query("asc"),
) -> PageRequest:
    return PageRequest(page=page, size=size, sort_by=sort_by, sort_dir=sort_dir)


@router.post("", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    """Create an event hosted by the caller."""
    return event_service.create_event(db, payload, actor.id)


@router.get("", response_model=PageResponse[EventOut])
def list_events(
    title: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None, description="Events starting at or after"),
    end_date: Optional[datetime] = Query(None, description="Events ending at or before"),
    visibility: Optional[Visibility] = Query(None),
    host_id: Optional[str] = Query(None),
    page_request: PageRequest = Depends(page_params),
    actor: Optional[Actor] = Depends(get_optional_actor),
    sd_filter: SoftDeleteFilter = Depends(get_soft_delete_filter),
    db: Session = Depends(get_db),
):
    """List events visible to the caller, filtered, sorted and paginated."""
    filters = EventFilters(
        title=title,
        location=location,
        start_date=start_date,
        end_date=end_date,
        visibility=visibility,
        host_id=host_id,
    )
    return event_service.list_events(db, filters, page_request, actor, sd_filter)


@router.get("/upcoming", response_model=PageResponse[EventOut])
def upcoming_events(
    page: int = Query(0),
    size: int = Query(10),
    db: Session = Depends(get_db),
):
    """Public events that have not started yet."""
    return event_service.upcoming_events(db, PageRequest(page=page, size=size))


@router.get("/my-events", response_model=PageResponse[EventOut])
def my_events(
    page: int = Query(0),
    size: int = Query(10),
    sort_by: str = Query("created_at"),
    sort_dir: str = Query("desc"),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    page_request = PageRequest(page=page, size=size, sort_by=sort_by, sort_dir=sort_dir)
    return event_service.hosted_events(db, actor.id, page_request)


@router.get("/attending", response_model=PageResponse[EventOut])
def attending_events(
    page_request: PageRequest = Depends(page_params),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return event_service.attending_events(db, actor.id, page_request)


@router.post("/attendance", response_model=AttendanceOut)
def update_attendance(
    payload: AttendanceRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Set the RSVP status for the caller (or, as host/admin, for another user)."""
    return event_service.update_attendance(db, payload, actor)


@router.get("/{event_id}", response_model=EventDetailOut)
def get_event(
    event_id: str,
    actor: Optional[Actor] = Depends(get_optional_actor),
    sd_filter: SoftDeleteFilter = Depends(get_soft_delete_filter),
    db: Session = Depends(get_db),
):
    """Event details with attendance breakdown."""
    return event_service.get_event_details(db, event_id, actor, sd_filter)


@router.put("/{event_id}", response_model=EventOut)
def update_event(
    event_id: str,
    payload: EventUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Update an event (host or admin only)."""
    return event_service.update_event(db, event_id, payload, actor)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    event_id: str,
    cascade: bool = Query(False, description="Also soft-delete the event's attendances"),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Soft-delete an event (host or admin only)."""
    event_service.delete_event(db, event_id, actor, cascade_attendances=cascade)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{event_id}/restore", response_model=EventOut)
def restore_event(event_id: str, actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return event_service.restore_event(db, event_id, actor)


@router.get("/{event_id}/attendance-status", response_model=AttendanceStatusOut)
def attendance_status(event_id: str, actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return AttendanceStatusOut(
        event_id=event_id,
        user_id=actor.id,
        status=event_service.get_attendance_status(db, event_id, actor),
    )


@router.delete("/{event_id}/attendance", status_code=status.HTTP_204_NO_CONTENT)
def withdraw_attendance(event_id: str, actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    event_service.withdraw_attendance(db, event_id, actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{event_id}/attendance/restore", response_model=AttendanceOut)
def restore_attendance(event_id: str, actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return event_service.restore_attendance(db, event_id, actor)
