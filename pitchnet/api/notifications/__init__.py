"""Notifications API."""
from fastapi import APIRouter

from pitchnet.api.notifications import routes_notifications

router = APIRouter()

router.include_router(routes_notifications.router, prefix="/notification", tags=["notifications"])
