from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from taskboard.schemas.base import CamelModel


class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    MEMBER = "member"
    VIEWER = "viewer"


class UserSummary(CamelModel):
    id: int
    name: str
    email: str
    avatar: Optional[str] = None


class MemberUserSummary(UserSummary):
    role: UserRole


class UserResponse(CamelModel):
    """Non-sensitive projection of a user row."""

    id: int = Field(..., description="User unique ID")
    email: str
    name: str
    role: UserRole
    avatar: Optional[str] = None


class UserMeResponse(UserResponse):
    created_at: Optional[datetime] = None
