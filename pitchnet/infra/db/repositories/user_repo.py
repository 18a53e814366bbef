"""User repository implementation."""
from datetime import datetime
from typing import Iterable, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from pitchnet.domain.accounts.models import User
from pitchnet.domain.notifications.repositories import UserRepository
from pitchnet.infra.db.models.user import UserModel


class UserRepositoryImpl(UserRepository):
    """User repository implementation."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, user: User) -> User:
        """Create a new user."""
        model = UserModel.from_entity(user)
        self.session.add(model)
        await self.session.commit()
        await self.session.refresh(model)
        return model.to_entity()

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        result = await self.session.execute(select(UserModel).where(UserModel.id == user_id))
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def get_many(self, user_ids: Iterable[str]) -> dict[str, User]:
        """Get users by ID, keyed by ID."""
        ids = list(set(user_ids))
        if not ids:
            return {}
        result = await self.session.execute(select(UserModel).where(UserModel.id.in_(ids)))
        return {m.id: m.to_entity() for m in result.scalars().all()}

    async def update_preferences(
        self,
        user_id: str,
        push_notifications_enabled: Optional[bool] = None,
        language: Optional[str] = None,
        scheduling_url: Optional[str] = None,
    ) -> Optional[User]:
        """Update notification-related preferences. Only given fields change."""
        update_values = {}
        if push_notifications_enabled is not None:
            update_values["push_notifications_enabled"] = push_notifications_enabled
        if language is not None:
            update_values["language"] = language
        if scheduling_url is not None:
            update_values["scheduling_url"] = scheduling_url or None

        if update_values:
            update_values["updated_at"] = datetime.utcnow()
            await self.session.execute(
                update(UserModel)
                .where(UserModel.id == user_id)
                .values(**update_values)
            )
            await self.session.commit()

        return await self.get_by_id(user_id)
