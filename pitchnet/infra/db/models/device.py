"""Device database model (push tokens)."""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey

from pitchnet.infra.db.base import Base


class DeviceModel(Base):
    """User device registered for push notifications."""

    __tablename__ = "devices"

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    push_token = Column(String, nullable=False, unique=True)
    platform = Column(String, nullable=False)  # 'ios', 'android' or 'web'
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
