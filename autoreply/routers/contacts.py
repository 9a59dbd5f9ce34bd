"""Per-contact relationship profile routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..connections.models import Platform
from ..contacts import schemas as contact_schemas
from ..contacts.directory import ContactNotFoundError
from ..runtime import Services, get_services

router = APIRouter(prefix="/api/user/{user_id}/contacts", tags=["contacts"])


def _platform(value: str) -> Platform:
    try:
        return Platform.parse(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("", response_model=contact_schemas.ContactList)
def list_contacts(user_id: str, services: Services = Depends(get_services)):
    profiles = services.contacts.list_for_owner(user_id)
    return contact_schemas.ContactList(
        contacts=[contact_schemas.ContactProfileView.from_profile(p) for p in profiles],
        count=len(profiles),
    )


@router.get("/{platform}/{counterparty_id}", response_model=contact_schemas.ContactResponse)
def get_contact(
    user_id: str,
    platform: str,
    counterparty_id: str,
    services: Services = Depends(get_services),
):
    try:
        profile = services.contacts.require(user_id, _platform(platform), counterparty_id)
    except ContactNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return contact_schemas.ContactResponse(
        contact=contact_schemas.ContactProfileView.from_profile(profile)
    )


@router.post("/{platform}/{counterparty_id}", response_model=contact_schemas.ContactResponse)
def upsert_contact(
    user_id: str,
    platform: str,
    counterparty_id: str,
    payload: contact_schemas.ContactProfilePayload,
    services: Services = Depends(get_services),
):
    """Create the profile, or update only the fields present in the body."""

    profile = services.contacts.upsert(
        user_id,
        _platform(platform),
        counterparty_id,
        **payload.model_dump(exclude_none=True),
    )
    return contact_schemas.ContactResponse(
        contact=contact_schemas.ContactProfileView.from_profile(profile)
    )


@router.delete("/{platform}/{counterparty_id}")
def delete_contact(
    user_id: str,
    platform: str,
    counterparty_id: str,
    services: Services = Depends(get_services),
):
    try:
        services.contacts.remove(user_id, _platform(platform), counterparty_id)
    except ContactNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"success": True}
