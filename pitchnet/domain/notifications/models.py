"""Notification and connection domain models."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pitchnet.domain.accounts.models import UserSummary


class NotificationType(str, Enum):
    """Closed set of notification types. Values double as template keys."""
    # Mentor connection request flow
    CONNECTION_REQUEST_MENTOR = "connection-request-mentor"
    CONNECTION_REQUEST_MENTOR_SENT = "connection-request-mentor-sent"
    CONNECTION_REQUEST_MENTOR_ACCEPTED = "connection-request-mentor-accepted"
    CONNECTION_REQUEST_MENTOR_REJECTED = "connection-request-mentor-rejected"
    CONNECTION_MENTOR_ACCEPTED_CONFIRMATION = "connection-mentor-accepted-confirmation"
    CONNECTION_MENTOR_REJECTED_CONFIRMATION = "connection-mentor-rejected-confirmation"
    CONNECTION_REQUEST_MENTEE = "connection-request-mentee"
    CONNECTION_REQUEST_MENTEE_SENT = "connection-request-mentee-sent"
    CONNECTION_REQUEST_MENTEE_ACCEPTED = "connection-request-mentee-accepted"
    CONNECTION_REQUEST_MENTEE_REJECTED = "connection-request-mentee-rejected"
    CONNECTION_MENTEE_ACCEPTED_CONFIRMATION = "connection-mentee-accepted-confirmation"
    CONNECTION_MENTEE_REJECTED_CONFIRMATION = "connection-mentee-rejected-confirmation"

    # Pitch deck request flow
    PITCH_DECK_REQUEST = "pitch-deck-request"
    PITCH_DECK_REQUEST_SENT = "pitch-deck-request-sent"
    PITCH_DECK_REQUEST_ACCEPTED = "pitch-deck-request-accepted"
    PITCH_DECK_REQUEST_REJECTED = "pitch-deck-request-rejected"
    PITCH_DECK_REQUEST_ACCEPTED_CONFIRMATION = "pitch-deck-request-accepted-confirmation"
    PITCH_DECK_REQUEST_REJECTED_CONFIRMATION = "pitch-deck-request-rejected-confirmation"

    # Meeting request flow
    MEETING_REQUEST = "meeting-request"
    MEETING_REQUEST_SENT = "meeting-request-sent"
    MEETING_REQUEST_ACCEPTED = "meeting-request-accepted"
    MEETING_REQUEST_REJECTED = "meeting-request-rejected"
    MEETING_REQUEST_ACCEPTED_CONFIRMATION = "meeting-request-accepted-confirmation"
    MEETING_REQUEST_REJECTED_CONFIRMATION = "meeting-request-rejected-confirmation"


class NotificationStatus(str, Enum):
    UNREAD = "unread"
    READ = "read"


class ActionStatus(str, Enum):
    REQUIRED = "required"
    COMPLETED = "completed"


class Decision(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class RequestFamily(str, Enum):
    """Kinds of interaction modelled as a request/response exchange."""
    CONNECTION_MENTOR = "connection-mentor"
    PITCH_DECK = "pitch-deck"
    MEETING = "meeting"


class ReferenceModel(str, Enum):
    """Kinds of domain object a notification can point at."""
    PITCH = "Pitch"
    PITCH_REVIEW = "PitchReview"
    USER_CONNECTION = "UserConnection"


class ConnectionType(str, Enum):
    MENTOR = "mentor"
    INVESTOR = "investor"


@dataclass(frozen=True)
class ReferenceObject:
    """Pointer from a notification to the domain object it is about."""
    reference_model: ReferenceModel
    reference: str

    @property
    def key(self) -> str:
        return f"{self.reference_model.value}:{self.reference}"


@dataclass(frozen=True)
class DomainRef:
    """A resolved reference: the object exists and these are the facts the engine needs."""
    kind: ReferenceModel
    id: str
    owner_id: Optional[str] = None
    label: Optional[str] = None
    attributes: dict[str, Any] = field(default_factory=dict)

    def as_reference(self) -> ReferenceObject:
        return ReferenceObject(reference_model=self.kind, reference=self.id)


@dataclass
class Notification:
    """Notification domain model."""
    id: str
    user_id: str
    actor_id: Optional[str]
    type: NotificationType
    template_key: Optional[NotificationType]
    status: NotificationStatus
    action_status: Optional[ActionStatus]
    decision: Optional[Decision]
    family: Optional[RequestFamily]
    reference: Optional[ReferenceObject]
    payload_value: Optional[str]
    created_at: datetime
    updated_at: datetime
    responded_at: Optional[datetime] = None
    actor: Optional[UserSummary] = None
    message: Optional[str] = None  # rendered for the viewer, not stored

    @property
    def display_key(self) -> NotificationType:
        """Template key used for rendering: the alternate wording when set."""
        return self.template_key or self.type

    @property
    def requires_action(self) -> bool:
        return self.action_status == ActionStatus.REQUIRED


@dataclass
class Connection:
    """Symmetric relationship between two users."""
    id: str
    user_ids: tuple[str, str]
    type: ConnectionType
    created_at: datetime
    users: list[UserSummary] = field(default_factory=list)

    def other_user_id(self, user_id: str) -> str:
        low, high = self.user_ids
        return high if user_id == low else low

    def includes(self, user_id: str) -> bool:
        return user_id in self.user_ids


@dataclass
class RequestPair:
    """Records created by a new request: the recipient's actionable one and the actor's confirmation."""
    request: Notification
    sent: Notification


@dataclass
class NotificationPage:
    """One page of a user's notifications plus the unread badge count."""
    items: list[Notification]
    badge_count: int
    total: int
    page: int
    page_size: int


@dataclass
class PushPayload:
    """What the push dispatcher sends. No body means a silent data-only update."""
    title: str
    body: Optional[str]
    data: dict[str, Any]
