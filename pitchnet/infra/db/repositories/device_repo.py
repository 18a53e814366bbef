"""Push device repository."""
from datetime import datetime
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete

from pitchnet.infra.db.models.device import DeviceModel
from pitchnet.domain.common.types import generate_id


class DeviceRepository:
    """Devices registered for push notifications, keyed by FCM token."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert_by_token(self, user_id: str, push_token: str, platform: str) -> DeviceModel:
        """Register a token. A token already on file moves to the user who registered it last
        (a phone that signs in with another account)."""
        result = await self.session.execute(
            select(DeviceModel).where(DeviceModel.push_token == push_token)
        )
        device = result.scalar_one_or_none()
        if device is None:
            device = DeviceModel(id=generate_id(), push_token=push_token)
            self.session.add(device)
        device.user_id = user_id
        device.platform = platform
        device.updated_at = datetime.utcnow()
        await self.session.commit()
        return device

    async def delete_token(self, user_id: str, push_token: str) -> bool:
        """Unregister one of the user's tokens. Returns False when the user had no such token."""
        result = await self.session.execute(
            delete(DeviceModel).where(
                DeviceModel.user_id == user_id,
                DeviceModel.push_token == push_token,
            )
        )
        await self.session.commit()
        return (result.rowcount or 0) > 0

    async def list_tokens_by_user(self, user_id: str) -> List[str]:
        result = await self.session.execute(
            select(DeviceModel.push_token)
            .where(DeviceModel.user_id == user_id)
            .order_by(DeviceModel.updated_at.desc())
        )
        return list(result.scalars().all())
