"""Request family registry.

Each family describes one real-world interaction (mentor connection, pitch deck,
meeting) in terms of the same request/response exchange: which notification
types are produced at each step, what the request must reference, which roles
may take part, and what accepting it requires or produces.
"""
from dataclasses import dataclass
from itertools import product
from types import MappingProxyType
from typing import Mapping, Optional

from pitchnet.domain.accounts.models import UserRole
from pitchnet.domain.common.errors import ValidationError
from pitchnet.domain.notifications.models import (
    ConnectionType,
    Decision,
    NotificationType as T,
    ReferenceModel,
    RequestFamily,
)


@dataclass(frozen=True)
class Wording:
    """Notification type for every step of one exchange."""
    request: T
    sent: T
    accepted: T
    rejected: T
    accepted_confirmation: T
    rejected_confirmation: T

    def outcome(self, decision: Decision) -> tuple[T, T]:
        """(result for the requester, confirmation for the responder)."""
        if decision == Decision.ACCEPTED:
            return self.accepted, self.accepted_confirmation
        return self.rejected, self.rejected_confirmation


@dataclass(frozen=True)
class RequestFamilyConfig:
    family: RequestFamily
    types: Wording
    reference_model: Optional[ReferenceModel] = None
    # Recipient is the owner of the referenced object rather than a user picked by the actor.
    recipient_from_reference: bool = False
    connection_type: Optional[ConnectionType] = None
    # (actor role, recipient role) pairs allowed to start this exchange; None allows any.
    allowed_roles: Optional[frozenset[tuple[UserRole, UserRole]]] = None
    # Alternate template keys, used when the requester has this role.
    alternate_wording: Optional[Wording] = None
    alternate_wording_role: Optional[UserRole] = None
    accept_requires_scheduling_url: bool = False
    accept_requires_payload: bool = False

    def wording_for(self, requester_role: UserRole) -> Optional[Wording]:
        """Template keys for an exchange started by a user with this role, or None for the defaults."""
        if self.alternate_wording is not None and requester_role == self.alternate_wording_role:
            return self.alternate_wording
        return None

    def roles_allowed(self, actor_role: UserRole, recipient_role: UserRole) -> bool:
        if self.allowed_roles is None:
            return True
        return (actor_role, recipient_role) in self.allowed_roles


_MEETING_ROLES = (UserRole.FOUNDER, UserRole.MENTOR, UserRole.INVESTOR)

REQUEST_FAMILIES: Mapping[RequestFamily, RequestFamilyConfig] = MappingProxyType({
    RequestFamily.CONNECTION_MENTOR: RequestFamilyConfig(
        family=RequestFamily.CONNECTION_MENTOR,
        types=Wording(
            request=T.CONNECTION_REQUEST_MENTOR,
            sent=T.CONNECTION_REQUEST_MENTOR_SENT,
            accepted=T.CONNECTION_REQUEST_MENTOR_ACCEPTED,
            rejected=T.CONNECTION_REQUEST_MENTOR_REJECTED,
            accepted_confirmation=T.CONNECTION_MENTOR_ACCEPTED_CONFIRMATION,
            rejected_confirmation=T.CONNECTION_MENTOR_REJECTED_CONFIRMATION,
        ),
        connection_type=ConnectionType.MENTOR,
        allowed_roles=frozenset({
            (UserRole.FOUNDER, UserRole.MENTOR),
            (UserRole.MENTOR, UserRole.FOUNDER),
        }),
        # A founder asking a mentor is asking to be their mentee.
        alternate_wording=Wording(
            request=T.CONNECTION_REQUEST_MENTEE,
            sent=T.CONNECTION_REQUEST_MENTEE_SENT,
            accepted=T.CONNECTION_REQUEST_MENTEE_ACCEPTED,
            rejected=T.CONNECTION_REQUEST_MENTEE_REJECTED,
            accepted_confirmation=T.CONNECTION_MENTEE_ACCEPTED_CONFIRMATION,
            rejected_confirmation=T.CONNECTION_MENTEE_REJECTED_CONFIRMATION,
        ),
        alternate_wording_role=UserRole.FOUNDER,
    ),
    RequestFamily.PITCH_DECK: RequestFamilyConfig(
        family=RequestFamily.PITCH_DECK,
        types=Wording(
            request=T.PITCH_DECK_REQUEST,
            sent=T.PITCH_DECK_REQUEST_SENT,
            accepted=T.PITCH_DECK_REQUEST_ACCEPTED,
            rejected=T.PITCH_DECK_REQUEST_REJECTED,
            accepted_confirmation=T.PITCH_DECK_REQUEST_ACCEPTED_CONFIRMATION,
            rejected_confirmation=T.PITCH_DECK_REQUEST_REJECTED_CONFIRMATION,
        ),
        reference_model=ReferenceModel.PITCH,
        recipient_from_reference=True,
        accept_requires_payload=True,
    ),
    RequestFamily.MEETING: RequestFamilyConfig(
        family=RequestFamily.MEETING,
        types=Wording(
            request=T.MEETING_REQUEST,
            sent=T.MEETING_REQUEST_SENT,
            accepted=T.MEETING_REQUEST_ACCEPTED,
            rejected=T.MEETING_REQUEST_REJECTED,
            accepted_confirmation=T.MEETING_REQUEST_ACCEPTED_CONFIRMATION,
            rejected_confirmation=T.MEETING_REQUEST_REJECTED_CONFIRMATION,
        ),
        allowed_roles=frozenset(product(_MEETING_ROLES, _MEETING_ROLES)),
        accept_requires_scheduling_url=True,
    ),
})

# Connection types that can be requested, and the family handling each.
CONNECTION_FAMILIES: Mapping[ConnectionType, RequestFamily] = MappingProxyType({
    ConnectionType.MENTOR: RequestFamily.CONNECTION_MENTOR,
})


def get_family(family: RequestFamily) -> RequestFamilyConfig:
    try:
        return REQUEST_FAMILIES[RequestFamily(family)]
    except (KeyError, ValueError):
        raise ValidationError(f"Unsupported request family: {family}")


def family_for_connection_type(connection_type: ConnectionType) -> RequestFamilyConfig:
    """Family that handles requests for this connection type."""
    family = CONNECTION_FAMILIES.get(connection_type)
    if family is None:
        raise ValidationError(f"Connection type '{connection_type.value}' cannot be requested")
    return REQUEST_FAMILIES[family]
