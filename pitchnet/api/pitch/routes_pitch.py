"""Pitch API routes (pitch deck requests)."""
from fastapi import APIRouter, Depends

from pitchnet.api.deps import get_current_user, get_request_engine
from pitchnet.api.schemas import NotificationEnvelope, NotificationResponse
from pitchnet.domain.accounts.models import User
from pitchnet.domain.notifications.services import RequestResponseEngine

router = APIRouter()


@router.put("/{pitch_id}/deck/request", response_model=NotificationEnvelope)
async def request_pitch_deck(
    pitch_id: str,
    current_user: User = Depends(get_current_user),
    engine: RequestResponseEngine = Depends(get_request_engine),
):
    """Ask the pitch owner for the pitch deck. Returns the caller's "request sent" notification."""
    pair = await engine.request_pitch_deck(current_user, pitch_id)
    return {"payload": NotificationResponse.from_entity(pair.sent)}
