"""User database model."""
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime

from pitchnet.infra.db.base import Base
from pitchnet.domain.accounts.models import User as UserEntity, UserRole


class UserModel(Base):
    """User database model."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    surname = Column(String, nullable=True)
    role = Column(String, nullable=False, default=UserRole.FOUNDER.value)
    language = Column(String, nullable=False, default="en")
    scheduling_url = Column(String, nullable=True)  # Calendly link
    avatar_url = Column(String, nullable=True)
    push_notifications_enabled = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_entity(self) -> UserEntity:
        """Convert to domain entity."""
        return UserEntity(
            id=self.id,
            email=self.email,
            name=self.name,
            surname=self.surname,
            role=UserRole(self.role),
            language=self.language or "en",
            scheduling_url=self.scheduling_url,
            avatar_url=self.avatar_url,
            push_notifications_enabled=self.push_notifications_enabled,
            is_active=self.is_active,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_entity(cls, entity: UserEntity) -> "UserModel":
        """Create from domain entity."""
        return cls(
            id=entity.id,
            email=entity.email,
            name=entity.name,
            surname=entity.surname,
            role=entity.role.value,
            language=entity.language,
            scheduling_url=entity.scheduling_url,
            avatar_url=entity.avatar_url,
            push_notifications_enabled=entity.push_notifications_enabled,
            is_active=entity.is_active,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
