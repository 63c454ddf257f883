"""Tests for the authorization policy.

Covers:
- can_mutate_event / can_view_event / can_attend_event decision tables
- require_* helpers: 401-style error without an actor, 403-style with one
"""
import pytest

from eventhub.models.event import Event, Visibility
from eventhub.models.user import Role
from eventhub.services.exceptions import UnauthenticatedError, UnauthorizedError
from eventhub.services.policy import (
    Actor,
    can_attend_event,
    can_mutate_event,
    can_view_event,
    require_admin,
    require_attend,
    require_mutate,
    require_view,
)

HOST = Actor(id="host", role=Role.USER)
OTHER = Actor(id="other", role=Role.USER)
ADMIN = Actor(id="admin", role=Role.ADMIN)


def _event(visibility: Visibility = Visibility.PUBLIC) -> Event:
    return Event(event_id="e1", title="Board games", host_id="host", visibility=visibility)


class TestCanMutate:
    def test_host_and_admin_may_mutate(self):
        event = _event()
        assert can_mutate_event(HOST, event)
        assert can_mutate_event(ADMIN, event)

    def test_other_user_and_anonymous_may_not(self):
        event = _event()
        assert not can_mutate_event(OTHER, event)
        assert not can_mutate_event(None, event)


class TestCanView:
    def test_public_visible_to_everyone(self):
        event = _event(Visibility.PUBLIC)
        for actor in (None, OTHER, HOST, ADMIN):
            assert can_view_event(actor, event, is_attendee=False)

    def test_private_hidden_from_anonymous(self):
        assert not can_view_event(None, _event(Visibility.PRIVATE), is_attendee=False)

    def test_private_visible_to_host_admin_and_attendee(self):
        event = _event(Visibility.PRIVATE)
        assert can_view_event(HOST, event, is_attendee=False)
        assert can_view_event(ADMIN, event, is_attendee=False)
        assert can_view_event(OTHER, event, is_attendee=True)
        assert not can_view_event(OTHER, event, is_attendee=False)


class TestCanAttend:
    def test_anonymous_never_attends(self):
        assert not can_attend_event(None, _event(Visibility.PUBLIC), is_attendee=False)
        assert not can_attend_event(None, _event(Visibility.PRIVATE), is_attendee=True)

    def test_public_open_to_any_user(self):
        assert can_attend_event(OTHER, _event(Visibility.PUBLIC), is_attendee=False)

    def test_private_follows_view_rule(self):
        event = _event(Visibility.PRIVATE)
        assert not can_attend_event(OTHER, event, is_attendee=False)
        assert can_attend_event(OTHER, event, is_attendee=True)
        assert can_attend_event(HOST, event, is_attendee=False)


class TestRequireHelpers:
    def test_require_mutate_without_actor_is_unauthenticated(self):
        with pytest.raises(UnauthenticatedError):
            require_mutate(None, _event())

    def test_require_mutate_non_host_is_unauthorized(self):
        with pytest.raises(UnauthorizedError):
            require_mutate(OTHER, _event())

    def test_require_mutate_returns_actor(self):
        assert require_mutate(ADMIN, _event()) is ADMIN

    def test_require_view_private_anonymous_vs_user(self):
        event = _event(Visibility.PRIVATE)
        with pytest.raises(UnauthenticatedError):
            require_view(None, event, is_attendee=False)
        with pytest.raises(UnauthorizedError):
            require_view(OTHER, event, is_attendee=False)
        require_view(OTHER, event, is_attendee=True)

    def test_require_attend_private_non_attendee(self):
        with pytest.raises(UnauthorizedError):
            require_attend(OTHER, _event(Visibility.PRIVATE), is_attendee=False)

    def test_require_admin(self):
        with pytest.raises(UnauthenticatedError):
            require_admin(None)
        with pytest.raises(UnauthorizedError):
            require_admin(HOST)
        assert require_admin(ADMIN) is ADMIN
