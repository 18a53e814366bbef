"""Device management routes."""
import logging
from typing import Literal
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from pitchnet.api.deps import get_current_user, get_db
from pitchnet.api.schemas import OkEnvelope
from pitchnet.domain.accounts.models import User
from pitchnet.infra.db.repositories.device_repo import DeviceRepository

logger = logging.getLogger(__name__)

router = APIRouter()


class PushTokenRequest(BaseModel):
    """Push token request."""
    token: str = Field(min_length=1)
    platform: Literal["ios", "android", "web"] = "android"


@router.post("/devices", response_model=OkEnvelope)
async def register_push_token(
    request: PushTokenRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Register push token for device notifications. Upserts by token (one device per token)."""
    repo = DeviceRepository(db)
    await repo.upsert_by_token(
        user_id=current_user.id,
        push_token=request.token,
        platform=request.platform,
    )
    logger.info(
        "Registered push token for user %s: platform=%s, token=%s...",
        current_user.id,
        request.platform,
        request.token[:20],
    )
    return {"payload": {"ok": True}}


@router.delete("/devices/{token}", response_model=OkEnvelope)
async def unregister_push_token(
    token: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Stop sending push notifications to a device (e.g. on sign-out)."""
    removed = await DeviceRepository(db).delete_token(current_user.id, token)
    return {"payload": {"ok": True, "removed": removed}}
