"""Resolvers for the domain objects a notification can reference.

A request may point at a Pitch, a PitchReview or a UserConnection. The engine
never looks at those objects directly; it asks the registry to resolve a
reference into a DomainRef and to run the per-kind hooks.
"""
from typing import Iterable, Mapping

from pitchnet.domain.accounts.models import User
from pitchnet.domain.common.errors import IllegalStateError, NotFoundError, ValidationError
from pitchnet.domain.notifications.models import DomainRef, ReferenceModel, ReferenceObject
from pitchnet.domain.notifications.repositories import ConnectionRepository, PitchRepository
from pitchnet.domain.pitch.models import PitchStatus


class ReferenceResolver:
    """Base resolver. Hooks default to no-ops."""

    kind: ReferenceModel

    async def resolve(self, reference_id: str, viewer: User) -> DomainRef:
        """Load the object as seen by viewer. Raises NotFoundError if missing or not visible."""
        raise NotImplementedError

    async def ensure_requestable(self, ref: DomainRef) -> None:
        """Raise IllegalStateError if a new request may no longer target this object."""
        return None

    async def on_accepted(self, ref: DomainRef) -> None:
        """Side effect of an accepted request on the referenced object. Runs inside the caller's transaction."""
        return None


class PitchReferenceResolver(ReferenceResolver):
    kind = ReferenceModel.PITCH

    def __init__(self, pitches: PitchRepository):
        self.pitches = pitches

    async def resolve(self, reference_id: str, viewer: User) -> DomainRef:
        pitch = await self.pitches.get_by_id(reference_id)
        if pitch is None or not pitch.is_visible_to(viewer.id):
            raise NotFoundError("Pitch", reference_id)
        return DomainRef(
            kind=self.kind,
            id=pitch.id,
            owner_id=pitch.owner_id,
            label=pitch.title,
            attributes={"status": pitch.status, "pitch_deck_url": pitch.pitch_deck_url},
        )

    async def ensure_requestable(self, ref: DomainRef) -> None:
        if ref.attributes.get("status") == PitchStatus.ARCHIVED:
            raise IllegalStateError(f"Pitch {ref.id} is archived")

    async def on_accepted(self, ref: DomainRef) -> None:
        await self.pitches.record_deck_share(ref.id)


class PitchReviewReferenceResolver(ReferenceResolver):
    kind = ReferenceModel.PITCH_REVIEW

    def __init__(self, pitches: PitchRepository):
        self.pitches = pitches

    async def resolve(self, reference_id: str, viewer: User) -> DomainRef:
        review = await self.pitches.get_review(reference_id)
        if review is None:
            raise NotFoundError("PitchReview", reference_id)
        return DomainRef(
            kind=self.kind,
            id=review.id,
            owner_id=review.reviewer_id,
            attributes={"pitch_id": review.pitch_id},
        )


class UserConnectionReferenceResolver(ReferenceResolver):
    kind = ReferenceModel.USER_CONNECTION

    def __init__(self, connections: ConnectionRepository):
        self.connections = connections

    async def resolve(self, reference_id: str, viewer: User) -> DomainRef:
        connection = await self.connections.get_by_id(reference_id)
        # Connections are private to their participants.
        if connection is None or not connection.includes(viewer.id):
            raise NotFoundError("UserConnection", reference_id)
        return DomainRef(
            kind=self.kind,
            id=connection.id,
            attributes={"type": connection.type, "user_ids": connection.user_ids},
        )


class ReferenceResolverRegistry:
    """Looks up the resolver for a reference kind."""

    def __init__(self, resolvers: Iterable[ReferenceResolver]):
        self._resolvers: Mapping[ReferenceModel, ReferenceResolver] = {r.kind: r for r in resolvers}

    def for_kind(self, kind: ReferenceModel) -> ReferenceResolver:
        resolver = self._resolvers.get(kind)
        if resolver is None:
            raise ValidationError(f"Unsupported reference model: {kind}")
        return resolver

    async def resolve(self, reference: ReferenceObject, viewer: User) -> DomainRef:
        return await self.for_kind(reference.reference_model).resolve(reference.reference, viewer)


def build_reference_registry(pitches: PitchRepository, connections: ConnectionRepository) -> ReferenceResolverRegistry:
    return ReferenceResolverRegistry([
        PitchReferenceResolver(pitches),
        PitchReviewReferenceResolver(pitches),
        UserConnectionReferenceResolver(connections),
    ])
