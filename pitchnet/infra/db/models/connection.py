"""User connection database model."""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, CheckConstraint

from pitchnet.infra.db.base import Base
from pitchnet.domain.notifications.models import Connection, ConnectionType


class UserConnectionModel(Base):
    """Symmetric relationship between two users. The pair is stored sorted so (a, b) and (b, a) collide."""

    __tablename__ = "user_connections"
    __table_args__ = (
        UniqueConstraint("user_low_id", "user_high_id", "type", name="uq_user_connection_pair_type"),
        CheckConstraint("user_low_id < user_high_id", name="ck_user_connection_ordered_pair"),
    )

    id = Column(String, primary_key=True)
    user_low_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    user_high_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def to_entity(self) -> Connection:
        return Connection(
            id=self.id,
            user_ids=(self.user_low_id, self.user_high_id),
            type=ConnectionType(self.type),
            created_at=self.created_at,
        )
