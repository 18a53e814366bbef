"""API dependencies."""
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from pitchnet.infra.db.session import get_db
from pitchnet.infra.security.jwt import decode_token
from pitchnet.domain.accounts.models import User
from pitchnet.domain.notifications.connections import ConnectionService
from pitchnet.domain.notifications.references import build_reference_registry
from pitchnet.domain.notifications.services import RequestResponseEngine
from pitchnet.domain.notifications.templates import TemplateResolver, get_template_resolver
from pitchnet.infra.db.repositories.connection_repo import ConnectionRepositoryImpl
from pitchnet.infra.db.repositories.device_repo import DeviceRepository
from pitchnet.infra.db.repositories.notification_repo import NotificationRepositoryImpl
from pitchnet.infra.db.repositories.pitch_repo import PitchRepositoryImpl
from pitchnet.infra.db.repositories.user_repo import UserRepositoryImpl
from pitchnet.infra.push.sender import PushDispatcher
from pitchnet.settings import settings

# Tokens are issued by the identity provider; this service only verifies them.
bearer_scheme = HTTPBearer(auto_error=False)

__all__ = [
    "get_db",
    "get_current_user",
    "get_templates",
    "get_push_dispatcher",
    "get_request_engine",
    "get_connection_service",
]


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Get current authenticated user."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    payload = decode_token(credentials.credentials)
    if payload is None:
        raise credentials_exception

    user_id: str = payload.get("sub")
    token_type: str = payload.get("type")
    if user_id is None or token_type != "access":
        raise credentials_exception

    user = await UserRepositoryImpl(db).get_by_id(user_id)
    if user is None or not user.is_active:
        raise credentials_exception

    return user


def get_templates() -> TemplateResolver:
    """Notification templates, loaded once."""
    return get_template_resolver()


def get_push_dispatcher(db: AsyncSession = Depends(get_db)) -> PushDispatcher:
    return PushDispatcher(DeviceRepository(db))


def get_request_engine(
    db: AsyncSession = Depends(get_db),
    templates: TemplateResolver = Depends(get_templates),
    dispatcher: PushDispatcher = Depends(get_push_dispatcher),
) -> RequestResponseEngine:
    """Build the request/response engine over the request's session."""
    connections = ConnectionRepositoryImpl(db)
    return RequestResponseEngine(
        db,
        users=UserRepositoryImpl(db),
        notifications=NotificationRepositoryImpl(db),
        connections=connections,
        references=build_reference_registry(PitchRepositoryImpl(db), connections),
        templates=templates,
        dispatcher=dispatcher,
        retention_days=settings.notification_retention_days,
        push_title=settings.push_title,
        page_size=settings.notification_page_size,
        max_page_size=settings.notification_max_page_size,
    )


def get_connection_service(db: AsyncSession = Depends(get_db)) -> ConnectionService:
    return ConnectionService(
        ConnectionRepositoryImpl(db),
        UserRepositoryImpl(db),
        page_size=settings.notification_page_size,
        max_page_size=settings.notification_max_page_size,
    )
