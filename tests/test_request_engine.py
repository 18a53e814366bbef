"""Tests for the request/response engine (mentor connection, pitch deck, meeting)."""
import pytest
from sqlalchemy import func, select

from pitchnet.domain.accounts.models import UserRole
from pitchnet.domain.common.errors import (
    AuthorizationError,
    DuplicateRequestError,
    IllegalStateError,
    InvalidDecisionError,
    NotFoundError,
    UnprocessableEntityError,
    ValidationError,
)
from pitchnet.domain.notifications.models import (
    ActionStatus,
    ConnectionType,
    Decision,
    NotificationType as T,
    ReferenceModel,
    RequestFamily,
)
from pitchnet.domain.pitch.models import PitchStatus
from pitchnet.infra.db.models import NotificationModel, PitchModel, UserConnectionModel


async def count_rows(session, model, *where) -> int:
    result = await session.execute(select(func.count()).select_from(model).where(*where))
    return result.scalar()


async def pending_count(session) -> int:
    return await count_rows(session, NotificationModel, NotificationModel.action_status == "required")


@pytest.fixture
async def founder(make_user):
    return await make_user(UserRole.FOUNDER, name="Ada", surname="Lovelace")


@pytest.fixture
async def mentor(make_user):
    return await make_user(UserRole.MENTOR, name="Grace", surname="Hopper")


@pytest.fixture
async def investor(make_user):
    return await make_user(UserRole.INVESTOR, name="Ivy")


class TestMentorConnection:
    async def test_founder_request_uses_mentee_wording(self, engine, founder, mentor):
        pair = await engine.request_connection(founder, ConnectionType.MENTOR, mentor.id)

        assert pair.request.user_id == mentor.id
        assert pair.request.actor_id == founder.id
        assert pair.request.type == T.CONNECTION_REQUEST_MENTOR
        assert pair.request.template_key == T.CONNECTION_REQUEST_MENTEE
        assert pair.request.action_status == ActionStatus.REQUIRED
        assert pair.request.message == "wants to be your mentee"

        assert pair.sent.user_id == founder.id
        assert pair.sent.actor_id == mentor.id
        assert pair.sent.type == T.CONNECTION_REQUEST_MENTOR_SENT
        assert pair.sent.template_key == T.CONNECTION_REQUEST_MENTEE_SENT
        assert pair.sent.action_status is None

    async def test_mentor_request_uses_default_wording(self, engine, founder, mentor):
        pair = await engine.request_connection(mentor, ConnectionType.MENTOR, founder.id)

        assert pair.request.type == T.CONNECTION_REQUEST_MENTOR
        assert pair.request.template_key is None
        assert pair.request.message == "wants to be your mentor!"

    async def test_accept_creates_one_symmetric_connection(self, engine, db_session, founder, mentor):
        pair = await engine.request_connection(founder, ConnectionType.MENTOR, mentor.id)

        confirmation = await engine.respond(pair.request.id, mentor, Decision.ACCEPTED)

        assert confirmation.user_id == mentor.id
        assert confirmation.type == T.CONNECTION_MENTOR_ACCEPTED_CONFIRMATION
        assert confirmation.template_key == T.CONNECTION_MENTEE_ACCEPTED_CONFIRMATION
        assert confirmation.message == "You have accepted a mentee request from Ada Lovelace"
        assert confirmation.reference.reference_model == ReferenceModel.USER_CONNECTION

        from_founder = await engine.connections.find_between(founder.id, mentor.id, ConnectionType.MENTOR)
        from_mentor = await engine.connections.find_between(mentor.id, founder.id, ConnectionType.MENTOR)
        assert from_founder is not None
        assert from_founder.id == from_mentor.id == confirmation.reference.reference
        assert await count_rows(db_session, UserConnectionModel) == 1

        founder_page = await engine.list_for_user(founder)
        result = next(n for n in founder_page.items if n.type == T.CONNECTION_REQUEST_MENTOR_ACCEPTED)
        assert result.template_key == T.CONNECTION_REQUEST_MENTEE_ACCEPTED
        assert result.actor.id == mentor.id

    async def test_second_response_is_refused(self, engine, db_session, founder, mentor):
        pair = await engine.request_connection(founder, ConnectionType.MENTOR, mentor.id)
        await engine.respond(pair.request.id, mentor, Decision.ACCEPTED)

        with pytest.raises(IllegalStateError):
            await engine.respond(pair.request.id, mentor, Decision.ACCEPTED)
        with pytest.raises(IllegalStateError):
            await engine.respond(pair.request.id, mentor, Decision.REJECTED)

        # request + sent + result + confirmation
        assert await count_rows(db_session, NotificationModel) == 4
        assert await count_rows(db_session, UserConnectionModel) == 1

    async def test_rejection_creates_no_connection(self, engine, db_session, founder, mentor):
        pair = await engine.request_connection(mentor, ConnectionType.MENTOR, founder.id)

        confirmation = await engine.respond(pair.request.id, founder, Decision.REJECTED)

        assert confirmation.type == T.CONNECTION_MENTOR_REJECTED_CONFIRMATION
        assert confirmation.reference is None
        assert await count_rows(db_session, UserConnectionModel) == 0
        assert await pending_count(db_session) == 0

    async def test_duplicate_pending_request_is_refused(self, engine, db_session, founder, mentor):
        await engine.request_connection(founder, ConnectionType.MENTOR, mentor.id)

        with pytest.raises(DuplicateRequestError):
            await engine.request_connection(founder, ConnectionType.MENTOR, mentor.id)
        # Either direction counts as the same pending request
        with pytest.raises(DuplicateRequestError):
            await engine.request_connection(mentor, ConnectionType.MENTOR, founder.id)

        assert await pending_count(db_session) == 1
        assert await count_rows(db_session, NotificationModel) == 2

    async def test_concurrent_duplicate_is_caught_by_unique_index(
        self, engine, db_session, founder, mentor, monkeypatch
    ):
        await engine.request_connection(founder, ConnectionType.MENTOR, mentor.id)

        async def no_pending(*args, **kwargs):
            return None

        # Simulate a writer that passed the pre-check before the first commit
        monkeypatch.setattr(engine.notifications, "find_pending", no_pending)
        with pytest.raises(DuplicateRequestError):
            await engine.request_connection(mentor, ConnectionType.MENTOR, founder.id)

        assert await pending_count(db_session) == 1

    async def test_request_after_connection_is_refused(self, engine, founder, mentor):
        pair = await engine.request_connection(founder, ConnectionType.MENTOR, mentor.id)
        await engine.respond(pair.request.id, mentor, Decision.ACCEPTED)

        with pytest.raises(DuplicateRequestError):
            await engine.request_connection(mentor, ConnectionType.MENTOR, founder.id)

    async def test_role_mismatch_is_refused(self, engine, founder, make_user):
        other_founder = await make_user(UserRole.FOUNDER)

        with pytest.raises(ValidationError):
            await engine.request_connection(founder, ConnectionType.MENTOR, other_founder.id)

    async def test_investor_connection_cannot_be_requested(self, engine, founder, investor):
        with pytest.raises(ValidationError):
            await engine.request_connection(founder, ConnectionType.INVESTOR, investor.id)

    async def test_self_request_is_refused(self, engine, mentor):
        with pytest.raises(ValidationError):
            await engine.request_connection(mentor, ConnectionType.MENTOR, mentor.id)

    async def test_unknown_recipient(self, engine, founder):
        with pytest.raises(NotFoundError):
            await engine.request_connection(founder, ConnectionType.MENTOR, "missing-user")


class TestRespond:
    async def test_only_recipient_can_respond(self, engine, founder, mentor, investor):
        pair = await engine.request_connection(founder, ConnectionType.MENTOR, mentor.id)

        with pytest.raises(AuthorizationError):
            await engine.respond(pair.request.id, investor, Decision.ACCEPTED)
        # The requester cannot answer their own request either
        with pytest.raises(AuthorizationError):
            await engine.respond(pair.request.id, founder, Decision.ACCEPTED)

    async def test_unknown_notification(self, engine, mentor):
        with pytest.raises(NotFoundError):
            await engine.respond("missing", mentor, Decision.ACCEPTED)

    async def test_sent_confirmation_is_not_actionable(self, engine, founder, mentor):
        pair = await engine.request_connection(founder, ConnectionType.MENTOR, mentor.id)

        with pytest.raises(IllegalStateError):
            await engine.respond(pair.sent.id, founder, Decision.ACCEPTED)

    async def test_unsupported_decision(self, engine, founder, mentor):
        pair = await engine.request_connection(founder, ConnectionType.MENTOR, mentor.id)

        with pytest.raises(InvalidDecisionError):
            await engine.respond(pair.request.id, mentor, "maybe")


class TestPitchDeck:
    async def test_accept_with_link_delivers_it_to_requester(
        self, engine, db_session, founder, investor, make_pitch
    ):
        pitch_id = await make_pitch(founder.id)
        pair = await engine.request_pitch_deck(investor, pitch_id)
        assert pair.request.user_id == founder.id
        assert pair.request.reference.key == f"Pitch:{pitch_id}"
        assert pair.sent.message == "You have requested a pitch deck from Ada Lovelace"

        confirmation = await engine.respond(
            pair.request.id, founder, Decision.ACCEPTED, response_payload="https://link.to.pdf"
        )

        assert confirmation.type == T.PITCH_DECK_REQUEST_ACCEPTED_CONFIRMATION
        page = await engine.list_for_user(investor)
        result = next(n for n in page.items if n.type == T.PITCH_DECK_REQUEST_ACCEPTED)
        assert result.payload_value == "https://link.to.pdf"
        assert result.reference.reference == pitch_id

        pitch = await db_session.get(PitchModel, pitch_id)
        await db_session.refresh(pitch)
        assert pitch.deck_share_count == 1

    async def test_accept_falls_back_to_stored_deck_url(self, engine, founder, investor, make_pitch):
        pitch_id = await make_pitch(founder.id, pitch_deck_url="https://decks.example.com/seed.pdf")
        pair = await engine.request_pitch_deck(investor, pitch_id)

        confirmation = await engine.respond(pair.request.id, founder, Decision.ACCEPTED)

        assert confirmation.payload_value == "https://decks.example.com/seed.pdf"

    async def test_accept_without_any_link_keeps_request_pending(
        self, engine, db_session, founder, investor, make_pitch
    ):
        pitch_id = await make_pitch(founder.id)
        pair = await engine.request_pitch_deck(investor, pitch_id)

        with pytest.raises(UnprocessableEntityError):
            await engine.respond(pair.request.id, founder, Decision.ACCEPTED)

        stored = await engine.notifications.get_by_id(pair.request.id)
        assert stored.action_status == ActionStatus.REQUIRED

    async def test_rejection_leaves_pitch_untouched(self, engine, db_session, founder, investor, make_pitch):
        pitch_id = await make_pitch(founder.id, pitch_deck_url="https://decks.example.com/seed.pdf")
        pair = await engine.request_pitch_deck(investor, pitch_id)

        await engine.respond(pair.request.id, founder, Decision.REJECTED)

        pitch = await db_session.get(PitchModel, pitch_id)
        await db_session.refresh(pitch)
        assert pitch.deck_share_count == 0
        assert await count_rows(db_session, UserConnectionModel) == 0

    async def test_requests_for_different_pitches_are_independent(
        self, engine, db_session, founder, investor, make_pitch
    ):
        first = await make_pitch(founder.id)
        second = await make_pitch(founder.id, title="Series A")

        await engine.request_pitch_deck(investor, first)
        await engine.request_pitch_deck(investor, second)
        with pytest.raises(DuplicateRequestError):
            await engine.request_pitch_deck(investor, first)

        assert await pending_count(db_session) == 2

    async def test_someone_elses_draft_is_not_found(self, engine, founder, investor, make_pitch):
        pitch_id = await make_pitch(founder.id, status=PitchStatus.DRAFT)

        with pytest.raises(NotFoundError):
            await engine.request_pitch_deck(investor, pitch_id)

    async def test_archived_pitch_is_refused(self, engine, founder, investor, make_pitch):
        pitch_id = await make_pitch(founder.id, status=PitchStatus.ARCHIVED)

        with pytest.raises(IllegalStateError):
            await engine.request_pitch_deck(investor, pitch_id)

    async def test_own_pitch_is_refused(self, engine, founder, make_pitch):
        pitch_id = await make_pitch(founder.id)

        with pytest.raises(ValidationError):
            await engine.request_pitch_deck(founder, pitch_id)

    async def test_missing_pitch(self, engine, investor):
        with pytest.raises(NotFoundError):
            await engine.request_pitch_deck(investor, "missing-pitch")


class TestMeeting:
    async def test_accept_delivers_scheduling_link(self, engine, founder, make_user):
        mentor = await make_user(UserRole.MENTOR, scheduling_url="https://calendly.com/grace")
        pair = await engine.request_meeting(founder, mentor.id)
        assert pair.request.type == T.MEETING_REQUEST
        assert pair.request.family == RequestFamily.MEETING

        confirmation = await engine.respond(pair.request.id, mentor, Decision.ACCEPTED)

        assert confirmation.type == T.MEETING_REQUEST_ACCEPTED_CONFIRMATION
        assert confirmation.payload_value == "https://calendly.com/grace"
        page = await engine.list_for_user(founder)
        result = next(n for n in page.items if n.type == T.MEETING_REQUEST_ACCEPTED)
        assert result.payload_value == "https://calendly.com/grace"

    async def test_accept_requires_scheduling_link(self, engine, db_session, founder, mentor):
        pair = await engine.request_meeting(founder, mentor.id)

        with pytest.raises(UnprocessableEntityError):
            await engine.respond(pair.request.id, mentor, Decision.ACCEPTED)
        assert await pending_count(db_session) == 1

        # Rejecting needs no link
        await engine.respond(pair.request.id, mentor, Decision.REJECTED)
        assert await pending_count(db_session) == 0

    async def test_roles_outside_meeting_audience_are_refused(self, engine, founder, make_user):
        judge = await make_user(UserRole.JUDGE)

        with pytest.raises(ValidationError):
            await engine.request_meeting(founder, judge.id)
        with pytest.raises(ValidationError):
            await engine.request_meeting(judge, founder.id)

    async def test_meeting_and_connection_requests_coexist(self, engine, db_session, founder, mentor):
        await engine.request_meeting(founder, mentor.id)
        await engine.request_connection(founder, ConnectionType.MENTOR, mentor.id)

        assert await pending_count(db_session) == 2


class TestPush:
    async def test_request_pushes_alert_to_recipient_and_silent_update_to_actor(
        self, engine, dispatcher, founder, mentor
    ):
        await engine.request_connection(founder, ConnectionType.MENTOR, mentor.id)

        [to_mentor] = dispatcher.for_user(mentor.id)
        assert to_mentor.payload.body == "Ada Lovelace wants to be your mentee!"
        assert to_mentor.payload.title == "Pitchnet"
        assert to_mentor.payload.data["type"] == T.CONNECTION_REQUEST_MENTOR.value
        assert to_mentor.badge_count == 1

        [to_founder] = dispatcher.for_user(founder.id)
        assert to_founder.payload.body is None
        assert to_founder.badge_count == 1

    async def test_push_uses_recipient_language(self, engine, dispatcher, founder, make_user):
        mentor = await make_user(UserRole.MENTOR, language="fr")

        await engine.request_meeting(founder, mentor.id)

        [to_mentor] = dispatcher.for_user(mentor.id)
        assert to_mentor.payload.body == "Ada Lovelace a demandé un rendez-vous !"

    async def test_dispatch_failure_does_not_fail_request(self, engine, db_session, founder, mentor):
        class BrokenDispatcher:
            async def dispatch(self, user, payload, badge_count):
                raise RuntimeError("FCM unavailable")

        engine.dispatcher = BrokenDispatcher()

        pair = await engine.request_connection(founder, ConnectionType.MENTOR, mentor.id)

        assert pair.request.id
        assert await pending_count(db_session) == 1
