"""Connection queries. Connections are created only by accepted requests."""
import logging
from typing import Optional

from pitchnet.domain.accounts.models import User, UserSummary
from pitchnet.domain.common.errors import NotFoundError
from pitchnet.domain.notifications.models import Connection, ConnectionType
from pitchnet.domain.notifications.repositories import ConnectionRepository, UserRepository

logger = logging.getLogger(__name__)


class ConnectionService:
    """Lists and removes user connections."""

    def __init__(
        self,
        connections: ConnectionRepository,
        users: UserRepository,
        *,
        page_size: int = 20,
        max_page_size: int = 100,
    ):
        self.connections = connections
        self.users = users
        self.page_size = page_size
        self.max_page_size = max_page_size

    async def list_for_user(
        self,
        user_id: str,
        type: Optional[ConnectionType] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> list[Connection]:
        """One page of user_id's connections, each with both participants' summaries attached."""
        page = max(page, 1)
        page_size = min(max(page_size or self.page_size, 1), self.max_page_size)
        connections = await self.connections.list_for_user(
            user_id, type, offset=(page - 1) * page_size, limit=page_size
        )
        people = await self.users.get_many(uid for c in connections for uid in c.user_ids)
        for connection in connections:
            connection.users = [UserSummary.from_user(people[uid]) for uid in connection.user_ids if uid in people]
        return connections

    async def delete(self, connection_id: str, user: User) -> None:
        """Remove a connection the user takes part in."""
        connection = await self.connections.get_by_id(connection_id)
        if connection is None or not connection.includes(user.id):
            raise NotFoundError("UserConnection", connection_id)
        await self.connections.delete(connection_id)
        logger.info("Connection %s (%s) removed by user %s", connection_id, connection.type.value, user.id)
