"""Pytest configuration and shared fixtures.

Tests run against in-memory SQLite (aiosqlite + StaticPool) with the real
models; push delivery is replaced by a recording dispatcher.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from pitchnet.domain.accounts.models import User, UserRole
from pitchnet.domain.common.types import generate_id
from pitchnet.domain.notifications.models import PushPayload
from pitchnet.domain.notifications.references import build_reference_registry
from pitchnet.domain.notifications.services import RequestResponseEngine
from pitchnet.domain.notifications.templates import DEFAULT_TEMPLATES_FILE, TemplateResolver
from pitchnet.domain.pitch.models import PitchStatus
from pitchnet.infra.db.base import Base
from pitchnet.infra.db.models import PitchModel, UserModel
from pitchnet.infra.db.repositories.connection_repo import ConnectionRepositoryImpl
from pitchnet.infra.db.repositories.notification_repo import NotificationRepositoryImpl
from pitchnet.infra.db.repositories.pitch_repo import PitchRepositoryImpl
from pitchnet.infra.db.repositories.user_repo import UserRepositoryImpl
from pitchnet.infra.security.jwt import create_access_token


@dataclass
class DispatchedPush:
    user_id: str
    payload: PushPayload
    badge_count: int


class RecordingDispatcher:
    """Push dispatcher that records what would have been sent."""

    def __init__(self):
        self.sent: list[DispatchedPush] = []

    async def dispatch(self, user: User, payload: PushPayload, badge_count: int) -> None:
        self.sent.append(DispatchedPush(user_id=user.id, payload=payload, badge_count=badge_count))

    def for_user(self, user_id: str) -> list[DispatchedPush]:
        return [p for p in self.sent if p.user_id == user_id]


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Create a test database session."""
    session_factory = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="session")
def templates() -> TemplateResolver:
    return TemplateResolver.from_file(DEFAULT_TEMPLATES_FILE)


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def engine(db_session, templates, dispatcher) -> RequestResponseEngine:
    connections = ConnectionRepositoryImpl(db_session)
    return RequestResponseEngine(
        db_session,
        users=UserRepositoryImpl(db_session),
        notifications=NotificationRepositoryImpl(db_session),
        connections=connections,
        references=build_reference_registry(PitchRepositoryImpl(db_session), connections),
        templates=templates,
        dispatcher=dispatcher,
        retention_days=365,
    )


@pytest.fixture
def make_user(db_session):
    """Factory: persist a user and return the domain entity."""

    async def _make_user(
        role: UserRole = UserRole.FOUNDER,
        name: Optional[str] = None,
        surname: Optional[str] = None,
        language: str = "en",
        scheduling_url: Optional[str] = None,
        push_notifications_enabled: bool = True,
    ) -> User:
        user_id = generate_id()
        now = datetime.utcnow()
        model = UserModel(
            id=user_id,
            email=f"{user_id[:8]}@pitchnet.io",
            name=name or role.value.title(),
            surname=surname,
            role=role.value,
            language=language,
            scheduling_url=scheduling_url,
            push_notifications_enabled=push_notifications_enabled,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        db_session.add(model)
        await db_session.commit()
        return model.to_entity()

    return _make_user


@pytest.fixture
def make_pitch(db_session):
    """Factory: persist a pitch owned by owner_id and return its id."""

    async def _make_pitch(
        owner_id: str,
        status: PitchStatus = PitchStatus.SUBMITTED,
        pitch_deck_url: Optional[str] = None,
        title: str = "Seed round",
    ) -> str:
        now = datetime.utcnow()
        model = PitchModel(
            id=generate_id(),
            owner_id=owner_id,
            title=title,
            status=status.value,
            pitch_deck_url=pitch_deck_url,
            deck_share_count=0,
            created_at=now,
            updated_at=now,
        )
        db_session.add(model)
        await db_session.commit()
        return model.id

    return _make_pitch


@pytest.fixture
async def client(db_session, dispatcher):
    """HTTP client against the app with the test session and recording dispatcher."""
    from pitchnet.api.deps import get_db, get_push_dispatcher
    from pitchnet.main import app

    async def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_push_dispatcher] = lambda: dispatcher
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Bearer header for a user."""

    def _auth_headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _auth_headers
