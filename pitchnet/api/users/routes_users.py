"""User API routes: meeting requests and notification preferences."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import HttpUrl
from sqlalchemy.ext.asyncio import AsyncSession

from pitchnet.api.deps import get_current_user, get_db, get_request_engine
from pitchnet.api.schemas import CamelModel, NotificationEnvelope, NotificationResponse, OkEnvelope
from pitchnet.domain.accounts.models import User
from pitchnet.domain.common.errors import ValidationError
from pitchnet.domain.notifications.services import RequestResponseEngine
from pitchnet.infra.db.repositories.user_repo import UserRepositoryImpl
from pitchnet.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.put("/meeting/{user_id}", response_model=NotificationEnvelope)
async def request_meeting(
    user_id: str,
    current_user: User = Depends(get_current_user),
    engine: RequestResponseEngine = Depends(get_request_engine),
):
    """Ask user_id for a meeting. Returns the caller's "request sent" notification."""
    pair = await engine.request_meeting(current_user, user_id)
    return {"payload": NotificationResponse.from_entity(pair.sent)}


class PreferencesRequest(CamelModel):
    """Notification preferences; omitted fields are left unchanged."""
    push_notifications: Optional[bool] = None
    language: Optional[str] = None
    scheduling_url: Optional[HttpUrl] = None


@router.patch("/preferences", response_model=OkEnvelope)
async def update_preferences(
    request: PreferencesRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update push preference, language and scheduling link of the current user."""
    if request.language is not None and request.language not in settings.supported_locales:
        raise ValidationError(f"Unsupported language: {request.language}")
    user = await UserRepositoryImpl(db).update_preferences(
        current_user.id,
        push_notifications_enabled=request.push_notifications,
        language=request.language,
        scheduling_url=str(request.scheduling_url) if request.scheduling_url else None,
    )
    logger.info("Preferences updated for user %s", current_user.id)
    return {
        "payload": {
            "pushNotifications": user.push_notifications_enabled,
            "language": user.language,
            "schedulingUrl": user.scheduling_url,
        }
    }
