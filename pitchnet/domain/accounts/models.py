"""Account domain models."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr


class UserRole(str, Enum):
    """Platform role of a user."""
    ADMIN = "admin"
    COHORT_ADMIN = "cohort-admin"
    FOUNDER = "founder"
    INVESTOR = "investor"
    JUDGE = "judge"
    MENTOR = "mentor"


class User(BaseModel):
    """User domain model."""

    id: str
    email: EmailStr
    name: Optional[str] = None
    surname: Optional[str] = None
    role: UserRole = UserRole.FOUNDER
    language: str = "en"
    scheduling_url: Optional[str] = None  # Calendly-style booking link, required to accept meetings
    avatar_url: Optional[str] = None
    push_notifications_enabled: bool = True
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class UserSummary(BaseModel):
    """Public projection of a user embedded in notifications and connections."""

    id: str
    name: Optional[str] = None
    surname: Optional[str] = None
    role: UserRole
    avatar_url: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(
            id=user.id,
            name=user.name,
            surname=user.surname,
            role=user.role,
            avatar_url=user.avatar_url,
        )
