"""User API."""
from fastapi import APIRouter

from pitchnet.api.users import routes_devices, routes_users

router = APIRouter()

router.include_router(routes_users.router, prefix="/user", tags=["user"])
router.include_router(routes_devices.router, prefix="/user", tags=["devices"])
