"""Tests for resolving the objects a notification can point at."""
from datetime import datetime

import pytest

from pitchnet.domain.accounts.models import UserRole
from pitchnet.domain.common.errors import IllegalStateError, NotFoundError
from pitchnet.domain.common.types import generate_id
from pitchnet.domain.notifications.models import ConnectionType, ReferenceModel, ReferenceObject
from pitchnet.domain.pitch.models import PitchStatus
from pitchnet.infra.db.models import PitchReviewModel


@pytest.fixture
def registry(engine):
    return engine.references


async def test_pitch_resolves_owner_and_deck(registry, make_user, make_pitch):
    founder = await make_user(UserRole.FOUNDER)
    investor = await make_user(UserRole.INVESTOR)
    pitch_id = await make_pitch(founder.id, pitch_deck_url="https://decks.pitchnet.io/seed.pdf")

    ref = await registry.resolve(ReferenceObject(ReferenceModel.PITCH, pitch_id), investor)

    assert ref.owner_id == founder.id
    assert ref.label == "Seed round"
    assert ref.attributes["pitch_deck_url"] == "https://decks.pitchnet.io/seed.pdf"
    assert ref.as_reference().key == f"Pitch:{pitch_id}"


async def test_draft_pitch_is_only_visible_to_its_owner(registry, make_user, make_pitch):
    founder = await make_user(UserRole.FOUNDER)
    investor = await make_user(UserRole.INVESTOR)
    pitch_id = await make_pitch(founder.id, status=PitchStatus.DRAFT)

    assert (await registry.resolve(ReferenceObject(ReferenceModel.PITCH, pitch_id), founder)).id == pitch_id
    with pytest.raises(NotFoundError):
        await registry.resolve(ReferenceObject(ReferenceModel.PITCH, pitch_id), investor)
    with pytest.raises(NotFoundError):
        await registry.resolve(ReferenceObject(ReferenceModel.PITCH, "missing"), investor)


async def test_archived_pitch_is_not_requestable(registry, make_user, make_pitch):
    founder = await make_user(UserRole.FOUNDER)
    pitch_id = await make_pitch(founder.id, status=PitchStatus.ARCHIVED)

    ref = await registry.resolve(ReferenceObject(ReferenceModel.PITCH, pitch_id), founder)

    with pytest.raises(IllegalStateError):
        await registry.for_kind(ReferenceModel.PITCH).ensure_requestable(ref)


async def test_pitch_review_resolves_to_its_reviewer(registry, db_session, make_user, make_pitch):
    founder = await make_user(UserRole.FOUNDER)
    judge = await make_user(UserRole.JUDGE)
    pitch_id = await make_pitch(founder.id)
    review = PitchReviewModel(
        id=generate_id(), pitch_id=pitch_id, reviewer_id=judge.id, rating=4.5, created_at=datetime.utcnow()
    )
    db_session.add(review)
    await db_session.commit()

    ref = await registry.resolve(ReferenceObject(ReferenceModel.PITCH_REVIEW, review.id), founder)

    assert ref.kind == ReferenceModel.PITCH_REVIEW
    assert ref.owner_id == judge.id
    assert ref.attributes == {"pitch_id": pitch_id}
    with pytest.raises(NotFoundError):
        await registry.resolve(ReferenceObject(ReferenceModel.PITCH_REVIEW, "missing"), founder)


async def test_user_connection_is_private_to_its_participants(registry, engine, db_session, make_user):
    founder = await make_user(UserRole.FOUNDER)
    mentor = await make_user(UserRole.MENTOR)
    outsider = await make_user(UserRole.INVESTOR)
    connection = await engine.connections.get_or_create(founder.id, mentor.id, ConnectionType.MENTOR)
    await db_session.commit()
    reference = ReferenceObject(ReferenceModel.USER_CONNECTION, connection.id)

    for participant in (founder, mentor):
        ref = await registry.resolve(reference, participant)
        assert ref.id == connection.id
        assert ref.attributes["type"] == ConnectionType.MENTOR

    with pytest.raises(NotFoundError):
        await registry.resolve(reference, outsider)
    with pytest.raises(NotFoundError):
        await registry.resolve(ReferenceObject(ReferenceModel.USER_CONNECTION, "missing"), founder)
