"""Platform connection management routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..connections import schemas as conn_schemas
from ..connections.models import Platform
from ..connections.registry import ConnectionNotFoundError
from ..runtime import Services, get_services

router = APIRouter(prefix="/api", tags=["connections"])


def _platform(value: str) -> Platform:
    try:
        return Platform.parse(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post("/connections")
def upsert_connection(
    payload: conn_schemas.ConnectionUpsert, services: Services = Depends(get_services)
):
    """Create or replace the connection for a user and platform."""

    personalization = (
        payload.personalization.model_dump(exclude_none=True)
        if payload.personalization
        else None
    )
    connection = services.registry.connect(
        payload.user_id,
        _platform(payload.platform),
        payload.credentials,
        auto_reply_enabled=payload.auto_reply_enabled,
        personalization=personalization,
    )
    return {
        "success": True,
        "connection": conn_schemas.ConnectionView.from_connection(connection),
    }


@router.get("/user/{user_id}/platforms", response_model=conn_schemas.PlatformList)
def list_platforms(user_id: str, services: Services = Depends(get_services)):
    connections = services.registry.list_for_owner(user_id)
    return conn_schemas.PlatformList(
        platforms=[conn_schemas.ConnectionView.from_connection(c) for c in connections]
    )


@router.post(
    "/user/{user_id}/platform/{platform}/toggle",
    response_model=conn_schemas.ToggleResponse,
)
def toggle_auto_reply(
    user_id: str,
    platform: str,
    payload: conn_schemas.ToggleRequest | None = None,
    services: Services = Depends(get_services),
):
    enabled = payload.enabled if payload else None
    try:
        connection = services.registry.set_auto_reply(user_id, _platform(platform), enabled)
    except ConnectionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return conn_schemas.ToggleResponse(enabled=connection.auto_reply_enabled)


@router.delete("/user/{user_id}/platform/{platform}")
def disconnect_platform(
    user_id: str, platform: str, services: Services = Depends(get_services)
):
    try:
        services.registry.disconnect(user_id, _platform(platform))
    except ConnectionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"success": True}
