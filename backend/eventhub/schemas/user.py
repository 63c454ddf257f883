"""Pydantic schemas for Users."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from eventhub.models.user import Role


class UserOut(BaseModel):
    user_id: str
    name: str
    email: str
    role: Role
    created_at: datetime
    deleted_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RoleUpdate(BaseModel):
    role: Role
