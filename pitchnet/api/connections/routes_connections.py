"""Connection API routes. Connections come into existence by accepting a connection request."""
from typing import Optional
from fastapi import APIRouter, Depends, Query

from pitchnet.api.deps import get_connection_service, get_current_user, get_request_engine
from pitchnet.api.schemas import ConnectionListEnvelope, ConnectionResponse, NotificationEnvelope, NotificationResponse, OkEnvelope
from pitchnet.domain.accounts.models import User
from pitchnet.domain.notifications.connections import ConnectionService
from pitchnet.domain.notifications.models import ConnectionType
from pitchnet.domain.notifications.services import RequestResponseEngine

router = APIRouter()


@router.put("/{type}/{user_id}", response_model=NotificationEnvelope)
async def request_connection(
    type: ConnectionType,
    user_id: str,
    current_user: User = Depends(get_current_user),
    engine: RequestResponseEngine = Depends(get_request_engine),
):
    """Ask user_id to connect. Returns the caller's "request sent" notification."""
    pair = await engine.request_connection(current_user, type, user_id)
    return {"payload": NotificationResponse.from_entity(pair.sent)}


@router.get("", response_model=ConnectionListEnvelope)
async def list_my_connections(
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1),
    current_user: User = Depends(get_current_user),
    service: ConnectionService = Depends(get_connection_service),
):
    """Connections of the current user, newest first, one page at a time."""
    connections = await service.list_for_user(current_user.id, page=page, page_size=page_size)
    return {"payload": [ConnectionResponse.from_entity(c, current_user.id) for c in connections]}


@router.get("/{type}", response_model=ConnectionListEnvelope)
async def list_my_connections_by_type(
    type: ConnectionType,
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1),
    current_user: User = Depends(get_current_user),
    service: ConnectionService = Depends(get_connection_service),
):
    """Connections of the current user with the given type."""
    connections = await service.list_for_user(current_user.id, type, page=page, page_size=page_size)
    return {"payload": [ConnectionResponse.from_entity(c, current_user.id) for c in connections]}


@router.get("/{user_id}/{type}", response_model=ConnectionListEnvelope)
async def list_user_connections_by_type(
    user_id: str,
    type: ConnectionType,
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1),
    current_user: User = Depends(get_current_user),
    service: ConnectionService = Depends(get_connection_service),
):
    """Connections of another user with the given type."""
    connections = await service.list_for_user(user_id, type, page=page, page_size=page_size)
    return {"payload": [ConnectionResponse.from_entity(c, user_id) for c in connections]}


@router.delete("/{connection_id}", response_model=OkEnvelope)
async def delete_connection(
    connection_id: str,
    current_user: User = Depends(get_current_user),
    service: ConnectionService = Depends(get_connection_service),
):
    """Remove a connection the current user takes part in."""
    await service.delete(connection_id, current_user)
    return {"payload": {"ok": True}}
