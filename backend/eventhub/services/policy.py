"""Authorization policy for events and attendance.

The ``can_*`` functions are pure: they look only at data the caller already
loaded. The ``require_*`` helpers turn a failed check into the right error:
``UnauthenticatedError`` when there is no actor, ``UnauthorizedError`` when
there is one without permission.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from eventhub.models.event import Event, Visibility
from eventhub.models.user import Role, User
from eventhub.services.exceptions import UnauthenticatedError, UnauthorizedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """Identity making a request."""

    id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(id=user.user_id, role=user.role)


def can_mutate_event(actor: Optional[Actor], event: Event) -> bool:
    if actor is None:
        return False
    return actor.is_admin or actor.id == event.host_id


def can_view_event(actor: Optional[Actor], event: Event, is_attendee: bool) -> bool:
    if event.visibility == Visibility.PUBLIC:
        return True
    if actor is None:
        return False
    return can_mutate_event(actor, event) or is_attendee


def can_attend_event(actor: Optional[Actor], event: Event, is_attendee: bool) -> bool:
    if actor is None:
        return False
    if event.visibility == Visibility.PUBLIC:
        return True
    return can_view_event(actor, event, is_attendee)


def require_actor(actor: Optional[Actor]) -> Actor:
    if actor is None:
        raise UnauthenticatedError()
    return actor


def require_admin(actor: Optional[Actor]) -> Actor:
    actor = require_actor(actor)
    if not actor.is_admin:
        logger.warning("User %s denied admin-only operation", actor.id)
        raise UnauthorizedError("Administrator role required")
    return actor


def require_mutate(actor: Optional[Actor], event: Event) -> Actor:
    actor = require_actor(actor)
    if not can_mutate_event(actor, event):
        logger.warning("User %s denied mutation of event %s", actor.id, event.event_id)
        raise UnauthorizedError("You can only modify events you are hosting")
    return actor


def require_view(actor: Optional[Actor], event: Event, is_attendee: bool) -> None:
    if can_view_event(actor, event, is_attendee):
        return
    if actor is None:
        raise UnauthenticatedError("Authentication is required to view this private event")
    logger.warning("User %s denied access to private event %s", actor.id, event.event_id)
    raise UnauthorizedError("You don't have access to this private event")


def require_attend(actor: Optional[Actor], event: Event, is_attendee: bool) -> Actor:
    actor = require_actor(actor)
    if not can_attend_event(actor, event, is_attendee):
        logger.warning("User %s denied attendance on private event %s", actor.id, event.event_id)
        raise UnauthorizedError("You cannot attend this private event")
    return actor
