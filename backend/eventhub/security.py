"""Password hashing, JWT access tokens and request identity resolution."""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Query
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from eventhub.config import settings
from eventhub.database import get_db
from eventhub.models.user import User
from eventhub.services import cache as cache_module
from eventhub.services import soft_delete
from eventhub.services.exceptions import UnauthenticatedError
from eventhub.services.policy import Actor, require_actor, require_admin
from eventhub.services.soft_delete import SoftDeleteFilter

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# Password hashing
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# Token generation
def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    claims = {
        "sub": user.user_id,
        "role": user.role.value,
        "iat": now,
        "exp": expire,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


# Token verification
def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise UnauthenticatedError("Invalid or expired token")


def seconds_until_expiry(payload: dict) -> int:
    exp = payload.get("exp")
    if exp is None:
        return 0
    return max(0, int(exp - datetime.now(timezone.utc).timestamp()))


def blacklist_token(token: str) -> None:
    """Reject ``token`` for the rest of its lifetime."""
    payload = decode_token(token)
    ttl = seconds_until_expiry(payload)
    if ttl > 0:
        cache_module.get_cache().put(cache_module.TOKEN_BLACKLIST, token, True, ttl_seconds=ttl)


def is_token_blacklisted(token: str) -> bool:
    return bool(cache_module.get_cache().get(cache_module.TOKEN_BLACKLIST, token))


# Request identity
def get_optional_actor(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Optional[Actor]:
    """Actor for the bearer token, or None when the request carries no token."""
    if not token:
        return None
    if is_token_blacklisted(token):
        logger.warning("Blocked blacklisted token")
        raise UnauthenticatedError("Token has been invalidated, please login again")

    payload = decode_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise UnauthenticatedError("Invalid token payload")

    user = soft_delete.enable().apply(db.query(User), User).filter(User.user_id == user_id).first()
    if not user:
        raise UnauthenticatedError("User account is not active")
    return Actor.from_user(user)


def get_current_actor(actor: Optional[Actor] = Depends(get_optional_actor)) -> Actor:
    return require_actor(actor)


def get_admin_actor(actor: Optional[Actor] = Depends(get_optional_actor)) -> Actor:
    return require_admin(actor)


def get_soft_delete_filter(
    include_deleted: bool = Query(False, description="Include soft-deleted rows (admin only)"),
    actor: Optional[Actor] = Depends(get_optional_actor),
) -> SoftDeleteFilter:
    """Per-request soft-delete filter; only admins may lift it."""
    if not include_deleted:
        return soft_delete.enable()
    require_admin(actor)
    return soft_delete.UNFILTERED