"""Credential registry for per-user platform connections."""

from . import schemas
from .models import PersonalizationProfile, Platform, PlatformConnection, VerifiedPhoneNumber
from .registry import (
    ConnectionNotFoundError,
    ConnectionRepository,
    CredentialRegistry,
    InMemoryConnectionRepository,
)

__all__ = [
    "ConnectionNotFoundError",
    "ConnectionRepository",
    "CredentialRegistry",
    "InMemoryConnectionRepository",
    "PersonalizationProfile",
    "Platform",
    "PlatformConnection",
    "VerifiedPhoneNumber",
    "schemas",
]
