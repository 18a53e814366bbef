"""Repository protocols used by the notification workflow."""
from datetime import datetime
from typing import Iterable, Optional, Protocol

from pitchnet.domain.accounts.models import User
from pitchnet.domain.notifications.models import (
    Connection,
    ConnectionType,
    Decision,
    Notification,
    RequestFamily,
)
from pitchnet.domain.pitch.models import Pitch, PitchReview


class UserRepository(Protocol):
    """User repository protocol."""

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        ...

    async def get_many(self, user_ids: Iterable[str]) -> dict[str, User]:
        """Get users by ID, keyed by ID. Unknown IDs are left out."""
        ...


class NotificationRepository(Protocol):
    """Notification repository protocol.

    Methods that write as part of a request/response exchange only flush; the
    caller commits so the whole exchange lands in one transaction.
    """

    async def add_many(self, notifications: list[Notification]) -> None:
        ...

    async def get_by_id(self, notification_id: str) -> Optional[Notification]:
        ...

    async def find_pending(
        self, user_a: str, user_b: str, family: RequestFamily, reference_key: str
    ) -> Optional[Notification]:
        """Pending request between the two users (either direction) for family and reference."""
        ...

    async def complete_action(self, notification_id: str, user_id: str, decision: Decision) -> bool:
        """Move a pending request to completed. False if it was no longer pending."""
        ...

    async def list_for_user(
        self, user_id: str, since: datetime, offset: int, limit: int
    ) -> list[Notification]:
        ...

    async def count_for_user(self, user_id: str, since: datetime) -> int:
        ...

    async def count_unread(self, user_id: str, since: datetime) -> int:
        ...

    async def mark_read_through(self, user_id: str, created_at: datetime) -> int:
        """Read the user's unread notifications up to and including created_at."""
        ...

    async def mark_all_read(self, user_id: str) -> int:
        ...

    async def expire_older_than(self, cutoff: datetime) -> int:
        ...

    async def expire_pending(
        self, user_a: str, user_b: str, family: RequestFamily, reference_key: str, cutoff: datetime
    ) -> int:
        """Expire a stale pending request between the users so the pair can ask again."""
        ...


class ConnectionRepository(Protocol):
    """Connection repository protocol."""

    async def get_or_create(self, user_a: str, user_b: str, type: ConnectionType) -> Connection:
        """Create the connection unless it exists; return the stored one. Does not commit."""
        ...

    async def find_between(self, user_a: str, user_b: str, type: ConnectionType) -> Optional[Connection]:
        ...

    async def get_by_id(self, connection_id: str) -> Optional[Connection]:
        ...

    async def list_for_user(
        self, user_id: str, type: Optional[ConnectionType] = None, offset: int = 0, limit: Optional[int] = None
    ) -> list[Connection]:
        ...

    async def delete(self, connection_id: str) -> bool:
        ...


class PitchRepository(Protocol):
    """Pitch repository protocol."""

    async def get_by_id(self, pitch_id: str) -> Optional[Pitch]:
        ...

    async def get_review(self, review_id: str) -> Optional[PitchReview]:
        ...

    async def record_deck_share(self, pitch_id: str) -> None:
        """Count one more shared deck. Does not commit."""
        ...
