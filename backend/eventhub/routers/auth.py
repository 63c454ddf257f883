"""Auth API routes: registration, login and logout (rate limited)."""
import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from eventhub.config import settings
from eventhub.database import get_db
from eventhub.rate_limit import limiter
from eventhub.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from eventhub.security import get_current_actor, oauth2_scheme
from eventhub.services import auth_service
from eventhub.services.policy import Actor

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def register(request: Request, payload: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account and return an access token for it."""
    return auth_service.register(db, payload)


@router.post("/login", response_model=AuthResponse)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def login(request: Request, payload: LoginRequest, db: Session = Depends(get_db)):
    return auth_service.login(db, payload)


@router.post("/logout")
@limiter.limit(settings.AUTH_RATE_LIMIT)
def logout(
    request: Request,
    token: str = Depends(oauth2_scheme),
    actor: Actor = Depends(get_current_actor),
):
    """Invalidate the presented bearer token until it expires."""
    auth_service.logout(token)
    return {"message": "Logged out successfully"}
