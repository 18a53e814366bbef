"""Response models shared by the API routers.

Responses use camelCase field names and the platform envelope:
{"payload": ...} on success, {"errors": [...]} on failure.
"""
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from pitchnet.domain.accounts.models import UserSummary
from pitchnet.domain.notifications.models import Connection, Notification, NotificationPage


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserSummaryResponse(CamelModel):
    id: str
    name: Optional[str] = None
    surname: Optional[str] = None
    role: str
    avatar_url: Optional[str] = None

    @classmethod
    def from_entity(cls, user: UserSummary) -> "UserSummaryResponse":
        return cls(
            id=user.id,
            name=user.name,
            surname=user.surname,
            role=user.role.value,
            avatar_url=user.avatar_url,
        )


class ReferenceObjectResponse(CamelModel):
    reference: str
    reference_model: str


class PayloadResponse(CamelModel):
    value: str


class NotificationResponse(CamelModel):
    """Notification as shown to its owner."""
    id: str
    user_id: str
    created_by: Optional[UserSummaryResponse] = None  # the other party
    type: str
    template_key: Optional[str] = None
    status: str
    action_status: Optional[str] = None
    decision: Optional[str] = None
    reference_object: Optional[ReferenceObjectResponse] = None
    payload: Optional[PayloadResponse] = None
    message: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, n: Notification) -> "NotificationResponse":
        return cls(
            id=n.id,
            user_id=n.user_id,
            created_by=UserSummaryResponse.from_entity(n.actor) if n.actor else None,
            type=n.type.value,
            template_key=n.template_key.value if n.template_key else None,
            status=n.status.value,
            action_status=n.action_status.value if n.action_status else None,
            decision=n.decision.value if n.decision else None,
            reference_object=ReferenceObjectResponse(
                reference=n.reference.reference,
                reference_model=n.reference.reference_model.value,
            ) if n.reference else None,
            payload=PayloadResponse(value=n.payload_value) if n.payload_value else None,
            message=n.message,
            created_at=n.created_at,
        )


class NotificationEnvelope(CamelModel):
    payload: NotificationResponse


class PagingResponse(CamelModel):
    page: int
    page_size: int
    total: int


class NotificationListEnvelope(CamelModel):
    payload: List[NotificationResponse]
    paging: PagingResponse
    badge_count: int

    @classmethod
    def from_page(cls, page: NotificationPage) -> "NotificationListEnvelope":
        return cls(
            payload=[NotificationResponse.from_entity(n) for n in page.items],
            paging=PagingResponse(page=page.page, page_size=page.page_size, total=page.total),
            badge_count=page.badge_count,
        )


class ConnectionResponse(CamelModel):
    id: str
    type: str
    users: List[UserSummaryResponse]
    user: Optional[UserSummaryResponse] = None  # the participant other than the listed user
    created_at: datetime

    @classmethod
    def from_entity(cls, connection: Connection, subject_user_id: str) -> "ConnectionResponse":
        users = [UserSummaryResponse.from_entity(u) for u in connection.users]
        other_id = connection.other_user_id(subject_user_id)
        return cls(
            id=connection.id,
            type=connection.type.value,
            users=users,
            user=next((u for u in users if u.id == other_id), None),
            created_at=connection.created_at,
        )


class ConnectionListEnvelope(CamelModel):
    payload: List[ConnectionResponse]


class OkEnvelope(CamelModel):
    payload: dict
