"""Request-scoped database sessions."""
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from pitchnet.infra.db.base import AsyncSessionLocal


async def get_db() -> AsyncIterator[AsyncSession]:
    """Yield one session per request; roll back whatever the handler left uncommitted."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
