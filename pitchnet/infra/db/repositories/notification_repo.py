"""Notification repository."""
from datetime import datetime
from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from sqlalchemy.orm import selectinload

from pitchnet.domain.common.types import participants_key
from pitchnet.domain.notifications.models import (
    ActionStatus,
    Decision,
    Notification,
    NotificationStatus,
    RequestFamily,
)
from pitchnet.domain.notifications.repositories import NotificationRepository
from pitchnet.infra.db.models.notification import NotificationModel


class NotificationRepositoryImpl(NotificationRepository):
    """Notification repository."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _visible(self, user_id: str, since: datetime):
        return (
            NotificationModel.user_id == user_id,
            NotificationModel.deleted.is_(False),
            NotificationModel.created_at >= since,
        )

    async def add_many(self, notifications: List[Notification]) -> None:
        """Stage notifications and flush so constraint violations surface now. Caller commits."""
        self.session.add_all([NotificationModel.from_entity(n) for n in notifications])
        await self.session.flush()

    async def get_by_id(self, notification_id: str) -> Optional[Notification]:
        """Get a notification by ID regardless of owner. Expired (deleted) rows are not returned."""
        result = await self.session.execute(
            select(NotificationModel)
            .where(NotificationModel.id == notification_id, NotificationModel.deleted.is_(False))
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def find_pending(
        self, user_a: str, user_b: str, family: RequestFamily, reference_key: str
    ) -> Optional[Notification]:
        """Pending request between the two users in either direction."""
        result = await self.session.execute(
            select(NotificationModel).where(
                NotificationModel.participants_key == participants_key(user_a, user_b),
                NotificationModel.family == RequestFamily(family).value,
                NotificationModel.reference_key == reference_key,
                NotificationModel.action_status == ActionStatus.REQUIRED.value,
                NotificationModel.deleted.is_(False),
            )
        )
        model = result.scalars().first()
        return model.to_entity() if model else None

    async def complete_action(self, notification_id: str, user_id: str, decision: Decision) -> bool:
        """Conditionally complete a pending request. Only one concurrent caller can win."""
        now = datetime.utcnow()
        result = await self.session.execute(
            update(NotificationModel)
            .where(
                NotificationModel.id == notification_id,
                NotificationModel.user_id == user_id,
                NotificationModel.action_status == ActionStatus.REQUIRED.value,
                NotificationModel.deleted.is_(False),
            )
            .values(
                action_status=ActionStatus.COMPLETED.value,
                status=NotificationStatus.READ.value,
                decision=Decision(decision).value,
                responded_at=now,
                updated_at=now,
            )
        )
        return (result.rowcount or 0) > 0

    async def list_for_user(
        self, user_id: str, since: datetime, offset: int = 0, limit: int = 20
    ) -> List[Notification]:
        """List visible notifications for a user, newest first, with the actor loaded."""
        q = (
            select(NotificationModel)
            .options(selectinload(NotificationModel.actor))
            .where(*self._visible(user_id, since))
            .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(q)
        return [m.to_entity(with_actor=True) for m in result.scalars().all()]

    async def count_for_user(self, user_id: str, since: datetime) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(NotificationModel).where(*self._visible(user_id, since))
        )
        return result.scalar() or 0

    async def count_unread(self, user_id: str, since: datetime) -> int:
        """Count unread notifications for a user (the badge count)."""
        result = await self.session.execute(
            select(func.count()).select_from(NotificationModel).where(
                *self._visible(user_id, since),
                NotificationModel.status == NotificationStatus.UNREAD.value,
            )
        )
        return result.scalar() or 0

    async def mark_read_through(self, user_id: str, created_at: datetime) -> int:
        """Mark the user's unread notifications created at or before created_at as read."""
        result = await self.session.execute(
            update(NotificationModel)
            .where(
                NotificationModel.user_id == user_id,
                NotificationModel.status == NotificationStatus.UNREAD.value,
                NotificationModel.deleted.is_(False),
                NotificationModel.created_at <= created_at,
            )
            .values(status=NotificationStatus.READ.value, updated_at=datetime.utcnow())
        )
        await self.session.commit()
        return result.rowcount or 0

    async def mark_all_read(self, user_id: str) -> int:
        """Mark all unread notifications as read for a user. Returns count updated."""
        result = await self.session.execute(
            update(NotificationModel)
            .where(
                NotificationModel.user_id == user_id,
                NotificationModel.status == NotificationStatus.UNREAD.value,
                NotificationModel.deleted.is_(False),
            )
            .values(status=NotificationStatus.READ.value, updated_at=datetime.utcnow())
        )
        await self.session.commit()
        return result.rowcount or 0

    async def expire_older_than(self, cutoff: datetime) -> int:
        """Soft-delete notifications created before cutoff. Returns count expired."""
        result = await self.session.execute(
            update(NotificationModel)
            .where(
                NotificationModel.created_at < cutoff,
                NotificationModel.deleted.is_(False),
            )
            .values(deleted=True, updated_at=datetime.utcnow())
        )
        await self.session.commit()
        return result.rowcount or 0

    async def expire_pending(
        self, user_a: str, user_b: str, family: RequestFamily, reference_key: str, cutoff: datetime
    ) -> int:
        """Soft-delete a pending request between the users that is older than cutoff. Does not commit."""
        result = await self.session.execute(
            update(NotificationModel)
            .where(
                NotificationModel.participants_key == participants_key(user_a, user_b),
                NotificationModel.family == RequestFamily(family).value,
                NotificationModel.reference_key == reference_key,
                NotificationModel.action_status == ActionStatus.REQUIRED.value,
                NotificationModel.deleted.is_(False),
                NotificationModel.created_at < cutoff,
            )
            .values(deleted=True, updated_at=datetime.utcnow())
        )
        return result.rowcount or 0
