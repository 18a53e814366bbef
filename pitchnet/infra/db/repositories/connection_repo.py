"""User connection repository."""
from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, or_
from sqlalchemy.dialects import postgresql, sqlite

from pitchnet.domain.common.types import generate_id
from pitchnet.domain.notifications.models import Connection, ConnectionType
from pitchnet.domain.notifications.repositories import ConnectionRepository
from pitchnet.infra.db.models.connection import UserConnectionModel

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class ConnectionRepositoryImpl(ConnectionRepository):
    """User connection repository."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _pair(self, user_a: str, user_b: str, type: ConnectionType):
        low, high = sorted((user_a, user_b))
        return (
            UserConnectionModel.user_low_id == low,
            UserConnectionModel.user_high_id == high,
            UserConnectionModel.type == ConnectionType(type).value,
        )

    async def get_or_create(self, user_a: str, user_b: str, type: ConnectionType) -> Connection:
        """Insert the connection, ignoring a concurrent duplicate, and return the stored row."""
        low, high = sorted((user_a, user_b))
        dialect = self.session.get_bind().dialect.name
        insert = _INSERTS.get(dialect)
        if insert is None:
            raise RuntimeError(f"Unsupported database dialect for connections: {dialect}")
        stmt = (
            insert(UserConnectionModel)
            .values(
                id=generate_id(),
                user_low_id=low,
                user_high_id=high,
                type=ConnectionType(type).value,
            )
            .on_conflict_do_nothing(index_elements=["user_low_id", "user_high_id", "type"])
        )
        await self.session.execute(stmt)
        return await self.find_between(user_a, user_b, type)

    async def find_between(self, user_a: str, user_b: str, type: ConnectionType) -> Optional[Connection]:
        result = await self.session.execute(
            select(UserConnectionModel).where(*self._pair(user_a, user_b, type))
        )
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def get_by_id(self, connection_id: str) -> Optional[Connection]:
        result = await self.session.execute(
            select(UserConnectionModel).where(UserConnectionModel.id == connection_id)
        )
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def list_for_user(
        self,
        user_id: str,
        type: Optional[ConnectionType] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[Connection]:
        """List connections the user takes part in, newest first. Optional filter by type."""
        q = (
            select(UserConnectionModel)
            .where(
                or_(
                    UserConnectionModel.user_low_id == user_id,
                    UserConnectionModel.user_high_id == user_id,
                )
            )
            .order_by(UserConnectionModel.created_at.desc(), UserConnectionModel.id.desc())
            .offset(offset)
        )
        if type is not None:
            q = q.where(UserConnectionModel.type == ConnectionType(type).value)
        if limit is not None:
            q = q.limit(limit)
        result = await self.session.execute(q)
        return [m.to_entity() for m in result.scalars().all()]

    async def delete(self, connection_id: str) -> bool:
        result = await self.session.execute(
            delete(UserConnectionModel).where(UserConnectionModel.id == connection_id)
        )
        await self.session.commit()
        return (result.rowcount or 0) > 0
