"""Notification database model."""
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import relationship

from pitchnet.infra.db.base import Base
from pitchnet.domain.accounts.models import UserSummary
from pitchnet.domain.common.types import participants_key
from pitchnet.domain.notifications.models import (
    ActionStatus,
    Decision,
    Notification,
    NotificationStatus,
    NotificationType,
    ReferenceModel,
    ReferenceObject,
    RequestFamily,
)

_PENDING = text("action_status = 'required' AND NOT deleted")


class NotificationModel(Base):
    """User notification; request/response records carry family, action status and reference."""

    __tablename__ = "notifications"
    __table_args__ = (
        # One live pending request per user pair, family and referenced object.
        Index(
            "uq_notifications_pending_request",
            "participants_key",
            "family",
            "reference_key",
            unique=True,
            postgresql_where=_PENDING,
            sqlite_where=_PENDING,
        ),
        Index("ix_notifications_user_created", "user_id", "created_at"),
    )

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    actor_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    type = Column(String, nullable=False)
    template_key = Column(String, nullable=True)
    status = Column(String, nullable=False, default=NotificationStatus.UNREAD.value)
    action_status = Column(String, nullable=True)  # required | completed
    decision = Column(String, nullable=True)  # accepted | rejected
    family = Column(String, nullable=True)
    reference_model = Column(String, nullable=True)
    reference_id = Column(String, nullable=True)
    reference_key = Column(String, nullable=False, default="")  # "Model:id" or ""
    participants_key = Column(String, nullable=True)  # sorted "low:high" user ids
    payload_value = Column(String, nullable=True)
    deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    responded_at = Column(DateTime, nullable=True)

    actor = relationship("UserModel", foreign_keys=[actor_id], lazy="raise")

    def to_entity(self, with_actor: bool = False) -> Notification:
        """Convert to domain entity. with_actor requires the actor relationship to be loaded."""
        reference = None
        if self.reference_model and self.reference_id:
            reference = ReferenceObject(
                reference_model=ReferenceModel(self.reference_model),
                reference=self.reference_id,
            )
        actor = None
        if with_actor and self.actor is not None:
            actor = UserSummary.from_user(self.actor.to_entity())
        return Notification(
            id=self.id,
            user_id=self.user_id,
            actor_id=self.actor_id,
            type=NotificationType(self.type),
            template_key=NotificationType(self.template_key) if self.template_key else None,
            status=NotificationStatus(self.status),
            action_status=ActionStatus(self.action_status) if self.action_status else None,
            decision=Decision(self.decision) if self.decision else None,
            family=RequestFamily(self.family) if self.family else None,
            reference=reference,
            payload_value=self.payload_value,
            created_at=self.created_at,
            updated_at=self.updated_at,
            responded_at=self.responded_at,
            actor=actor,
        )

    @classmethod
    def from_entity(cls, entity: Notification) -> "NotificationModel":
        """Create from domain entity. Pending requests get the participants key used by the unique index."""
        pair_key = None
        if entity.action_status == ActionStatus.REQUIRED and entity.actor_id:
            pair_key = participants_key(entity.user_id, entity.actor_id)
        return cls(
            id=entity.id,
            user_id=entity.user_id,
            actor_id=entity.actor_id,
            type=entity.type.value,
            template_key=entity.template_key.value if entity.template_key else None,
            status=entity.status.value,
            action_status=entity.action_status.value if entity.action_status else None,
            decision=entity.decision.value if entity.decision else None,
            family=entity.family.value if entity.family else None,
            reference_model=entity.reference.reference_model.value if entity.reference else None,
            reference_id=entity.reference.reference if entity.reference else None,
            reference_key=entity.reference.key if entity.reference else "",
            participants_key=pair_key,
            payload_value=entity.payload_value,
            deleted=False,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            responded_at=entity.responded_at,
        )
