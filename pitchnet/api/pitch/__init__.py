"""Pitch API."""
from fastapi import APIRouter

from pitchnet.api.pitch import routes_pitch

router = APIRouter()

router.include_router(routes_pitch.router, prefix="/pitch", tags=["pitch"])
