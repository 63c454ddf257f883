"""Registration, login and logout."""
import logging

from sqlalchemy.orm import Session

from eventhub.models.user import User
from eventhub.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from eventhub.security import blacklist_token, create_access_token, hash_password, verify_password
from eventhub.services import user_service
from eventhub.services.exceptions import UnauthenticatedError

logger = logging.getLogger(__name__)


def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        access_token=create_access_token(user),
        user_id=user.user_id,
        name=user.name,
        email=user.email,
        role=user.role,
    )


def register(db: Session, request: RegisterRequest) -> AuthResponse:
    """Create the account and log it straight in."""
    user = user_service.create_user(
        db,
        name=request.name,
        email=request.email,
        password_hash=hash_password(request.password),
    )
    return _auth_response(user)


def login(db: Session, request: LoginRequest) -> AuthResponse:
    user = user_service.get_user_by_email(db, request.email)
    if not user or not verify_password(request.password, user.password_hash):
        logger.warning("Failed login for %s", request.email)
        raise UnauthenticatedError("Invalid email or password")
    logger.info("User %s logged in", user.user_id)
    return _auth_response(user)


def logout(token: str) -> None:
    blacklist_token(token)
    logger.info("Token invalidated by logout")
