"""User API routes: profile and administration."""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from eventhub.database import get_db
from eventhub.schemas.common import PageResponse
from eventhub.schemas.user import RoleUpdate, UserOut
from eventhub.security import get_admin_actor, get_current_actor, get_soft_delete_filter
from eventhub.services import user_service
from eventhub.services.pagination import PageRequest
from eventhub.services.policy import Actor
from eventhub.services.soft_delete import SoftDeleteFilter

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/me", response_model=UserOut)
def get_me(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return user_service.get_user(db, actor.id)


@router.get("", response_model=PageResponse[UserOut])
def list_users(
    page: int = Query(0),
    size: int = Query(10),
    sort_by: str = Query("created_at"),
    sort_dir: str = Query("asc"),
    actor: Actor = Depends(get_admin_actor),
    sd_filter: SoftDeleteFilter = Depends(get_soft_delete_filter),
    db: Session = Depends(get_db),
):
    """List users (admin only); deactivated accounts with ``include_deleted=true``."""
    page_request = PageRequest(page=page, size=size, sort_by=sort_by, sort_dir=sort_dir)
    return user_service.list_users(db, page_request, sd_filter)


@router.get("/{user_id}", response_model=UserOut)
def get_user(
    user_id: str,
    actor: Actor = Depends(get_admin_actor),
    sd_filter: SoftDeleteFilter = Depends(get_soft_delete_filter),
    db: Session = Depends(get_db),
):
    return user_service.get_user(db, user_id, sd_filter)


@router.delete("/{user_id}", response_model=UserOut)
def deactivate_user(user_id: str, actor: Actor = Depends(get_admin_actor), db: Session = Depends(get_db)):
    """Deactivate (soft-delete) a user account."""
    logger.info("Admin %s deactivating user %s", actor.id, user_id)
    return user_service.deactivate_user(db, user_id)


@router.post("/{user_id}/restore", response_model=UserOut)
def restore_user(user_id: str, actor: Actor = Depends(get_admin_actor), db: Session = Depends(get_db)):
    return user_service.restore_user(db, user_id)


@router.patch("/{user_id}/role", response_model=UserOut)
def set_role(
    user_id: str,
    payload: RoleUpdate,
    actor: Actor = Depends(get_admin_actor),
    db: Session = Depends(get_db),
):
    logger.info("Admin %s setting role of user %s to %s", actor.id, user_id, payload.role.value)
    return user_service.set_role(db, user_id, payload.role)
