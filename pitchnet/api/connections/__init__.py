"""Connections API."""
from fastapi import APIRouter

from pitchnet.api.connections import routes_connections

router = APIRouter()

router.include_router(routes_connections.router, prefix="/connection", tags=["connections"])
