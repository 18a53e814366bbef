"""Notification API routes: inbox, read state, accept/reject."""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from pitchnet.api.deps import get_current_user, get_request_engine
from pitchnet.api.schemas import NotificationEnvelope, NotificationListEnvelope, NotificationResponse, OkEnvelope
from pitchnet.domain.accounts.models import User
from pitchnet.domain.notifications.models import Decision
from pitchnet.domain.notifications.services import RequestResponseEngine

router = APIRouter()


class RespondRequest(BaseModel):
    """Optional value attached to a response (e.g. pitch deck link)."""
    value: Optional[str] = None


@router.get("", response_model=NotificationListEnvelope)
async def list_notifications(
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1),
    current_user: User = Depends(get_current_user),
    engine: RequestResponseEngine = Depends(get_request_engine),
):
    """List the current user's notifications, newest first, with the unread badge count."""
    result = await engine.list_for_user(current_user, page=page, page_size=page_size)
    return NotificationListEnvelope.from_page(result)


@router.post("/read-all", response_model=OkEnvelope)
async def mark_all_notifications_read(
    current_user: User = Depends(get_current_user),
    engine: RequestResponseEngine = Depends(get_request_engine),
):
    """Mark all notifications as read for the current user."""
    count = await engine.mark_all_read(current_user)
    return {"payload": {"updated": count}}


@router.post("/{notification_id}/read", response_model=NotificationEnvelope)
async def mark_notification_read(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    engine: RequestResponseEngine = Depends(get_request_engine),
):
    """Mark a notification as read."""
    notification = await engine.mark_read(notification_id, current_user)
    return {"payload": NotificationResponse.from_entity(notification)}


@router.post("/{notification_id}/{decision}", response_model=NotificationEnvelope)
async def respond_to_notification(
    notification_id: str,
    decision: Decision,
    request: Optional[RespondRequest] = None,
    current_user: User = Depends(get_current_user),
    engine: RequestResponseEngine = Depends(get_request_engine),
):
    """Accept or reject a request. Only the recipient can respond, and only once."""
    confirmation = await engine.respond(
        notification_id,
        current_user,
        decision,
        response_payload=request.value if request else None,
    )
    return {"payload": NotificationResponse.from_entity(confirmation)}
