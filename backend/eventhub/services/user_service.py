"""User lookups, registration and administration.

Users are never hard-deleted: deactivation sets the soft-delete marker and
restore clears it.
"""
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eventhub.models.user import Role, User
from eventhub.schemas.common import PageResponse
from eventhub.schemas.user import UserOut
from eventhub.services import soft_delete
from eventhub.services.cache import evict_events
from eventhub.services.exceptions import BadRequestError, NotFoundError
from eventhub.services.pagination import PageRequest, apply_sort, paginate
from eventhub.services.soft_delete import SoftDeleteFilter

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "created_at": User.created_at,
    "name": User.name,
    "email": User.email,
}


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user(db: Session, user_id: str, sd_filter: SoftDeleteFilter = soft_delete.ACTIVE) -> User:
    user = sd_filter.apply(db.query(User), User).filter(User.user_id == user_id).first()
    if not user:
        raise NotFoundError("User", user_id)
    return user


def get_user_by_email(
    db: Session, email: str, sd_filter: SoftDeleteFilter = soft_delete.ACTIVE
) -> Optional[User]:
    query = sd_filter.apply(db.query(User), User)
    return query.filter(func.lower(User.email) == normalize_email(email)).first()


def create_user(db: Session, name: str, email: str, password_hash: str, role: Role = Role.USER) -> User:
    """Insert a user; email must be unused, including by deactivated accounts."""
    if soft_delete.without_filter(lambda f: get_user_by_email(db, email, f)):
        raise BadRequestError("Email is already registered", field="email")

    user = User(name=name.strip(), email=normalize_email(email), password_hash=password_hash, role=role)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent registration took the email between the check and the insert.
        db.rollback()
        logger.info("Registration for %s lost a race on the email", normalize_email(email))
        raise BadRequestError("Email is already registered", field="email")
    db.refresh(user)
    logger.info("Registered user %s (%s)", user.user_id, user.email)
    return user


def list_users(
    db: Session, page_request: PageRequest, sd_filter: SoftDeleteFilter = soft_delete.ACTIVE
) -> PageResponse:
    query = apply_sort(sd_filter.apply(db.query(User), User), page_request, SORTABLE_FIELDS)
    return paginate(query, page_request, UserOut.model_validate)


def deactivate_user(db: Session, user_id: str) -> User:
    user = get_user(db, user_id)
    user.soft_delete()
    db.commit()
    db.refresh(user)
    evict_events()
    logger.info("Deactivated user %s", user_id)
    return user


def restore_user(db: Session, user_id: str) -> User:
    user = soft_delete.without_filter(lambda f: get_user(db, user_id, f))
    if user.is_deleted:
        user.restore()
        db.commit()
        db.refresh(user)
        evict_events()
        logger.info("Restored user %s", user_id)
    return user


def set_role(db: Session, user_id: str, role: Role) -> User:
    user = get_user(db, user_id)
    user.role = role
    db.commit()
    db.refresh(user)
    evict_events()
    logger.info("Set role of user %s to %s", user_id, role.value)
    return user


def make_user_admin(db: Session, user_id: str) -> User:
    return set_role(db, user_id, Role.ADMIN)
