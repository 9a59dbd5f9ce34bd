"""Credential registry holding per-user platform connections."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Any, Dict, List, Optional, Protocol

from .models import (
    PersonalizationProfile,
    Platform,
    PlatformConnection,
    VerifiedPhoneNumber,
    normalize_identifier,
)

logger = logging.getLogger(__name__)


class ConnectionNotFoundError(LookupError):
    """Raised when no connection exists for an (owner, platform) pair."""


class ConnectionRepository(Protocol):
    """Persistence abstraction used by :class:`CredentialRegistry`."""

    def get(self, owner_user_id: str, platform: Platform) -> Optional[PlatformConnection]: ...

    def put(self, connection: PlatformConnection) -> None: ...

    def delete(self, owner_user_id: str, platform: Platform) -> bool: ...

    def list_for_owner(self, owner_user_id: str) -> List[PlatformConnection]: ...

    def list_for_platform(self, platform: Platform) -> List[PlatformConnection]: ...

    def count(self) -> int: ...

    def put_verified_phone(self, entry: VerifiedPhoneNumber) -> None: ...

    def get_verified_phone(self, phone_number: str) -> Optional[VerifiedPhoneNumber]: ...


class InMemoryConnectionRepository(ConnectionRepository):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._connections: Dict[tuple[str, Platform], PlatformConnection] = {}
        self._verified: Dict[str, VerifiedPhoneNumber] = {}

    def get(self, owner_user_id: str, platform: Platform) -> Optional[PlatformConnection]:
        with self._lock:
            return self._connections.get((owner_user_id, platform))

    def put(self, connection: PlatformConnection) -> None:
        with self._lock:
            self._connections[(connection.owner_user_id, connection.platform)] = connection

    def delete(self, owner_user_id: str, platform: Platform) -> bool:
        with self._lock:
            return self._connections.pop((owner_user_id, platform), None) is not None

    def list_for_owner(self, owner_user_id: str) -> List[PlatformConnection]:
        with self._lock:
            return [c for (owner, _), c in self._connections.items() if owner == owner_user_id]

    def list_for_platform(self, platform: Platform) -> List[PlatformConnection]:
        with self._lock:
            return [c for (_, p), c in self._connections.items() if p == platform]

    def count(self) -> int:
        with self._lock:
            return len(self._connections)

    def put_verified_phone(self, entry: VerifiedPhoneNumber) -> None:
        with self._lock:
            self._verified[entry.phone_number] = entry

    def get_verified_phone(self, phone_number: str) -> Optional[VerifiedPhoneNumber]:
        with self._lock:
            return self._verified.get(phone_number)


class CredentialRegistry:
    """High-level access to platform connections.

    Connections are replaced wholesale on every mutation so readers holding a
    reference never observe a half-applied toggle.
    """

    def __init__(self, repository: ConnectionRepository | None = None) -> None:
        self._repository = repository or InMemoryConnectionRepository()
        self._write_lock = threading.Lock()

    def connect(
        self,
        owner_user_id: str,
        platform: Platform,
        credentials: Dict[str, str] | None = None,
        *,
        auto_reply_enabled: bool = True,
        personalization: Dict[str, Any] | PersonalizationProfile | None = None,
    ) -> PlatformConnection:
        """Create or replace the connection for ``(owner_user_id, platform)``."""

        if not isinstance(personalization, PersonalizationProfile):
            personalization = PersonalizationProfile.from_mapping(personalization)
        with self._write_lock:
            existing = self._repository.get(owner_user_id, platform)
            connection = PlatformConnection(
                owner_user_id=owner_user_id,
                platform=platform,
                credentials={k: str(v) for k, v in (credentials or {}).items()},
                auto_reply_enabled=auto_reply_enabled,
                personalization=personalization,
            )
            if existing is not None:
                connection.connected_at = existing.connected_at
            self._repository.put(connection)
        logger.info("Connected %s for owner %s", platform.value, owner_user_id)
        return connection

    def get(self, owner_user_id: str, platform: Platform) -> Optional[PlatformConnection]:
        return self._repository.get(owner_user_id, platform)

    def require(self, owner_user_id: str, platform: Platform) -> PlatformConnection:
        connection = self.get(owner_user_id, platform)
        if connection is None:
            raise ConnectionNotFoundError(
                f"{platform.value} is not connected for user {owner_user_id}"
            )
        return connection

    def set_auto_reply(
        self, owner_user_id: str, platform: Platform, enabled: bool | None = None
    ) -> PlatformConnection:
        """Set, or flip when ``enabled`` is None, the auto-reply flag."""

        with self._write_lock:
            current = self.require(owner_user_id, platform)
            value = (not current.auto_reply_enabled) if enabled is None else enabled
            updated = replace(current, auto_reply_enabled=value)
            self._repository.put(updated)
        logger.info(
            "Auto-reply %s for %s/%s",
            "enabled" if value else "disabled",
            owner_user_id,
            platform.value,
        )
        return updated

    def disconnect(self, owner_user_id: str, platform: Platform) -> None:
        with self._write_lock:
            if not self._repository.delete(owner_user_id, platform):
                raise ConnectionNotFoundError(
                    f"{platform.value} is not connected for user {owner_user_id}"
                )
        logger.info("Disconnected %s for owner %s", platform.value, owner_user_id)

    def list_for_owner(self, owner_user_id: str) -> List[PlatformConnection]:
        return self._repository.list_for_owner(owner_user_id)

    def resolve_owner(self, platform: Platform, identifier: Any) -> Optional[str]:
        """Map a webhook path identifier or recipient account id to an owner.

        ``identifier`` may be the owner's user id or any account identifier
        stored in the connection's credential bundle.
        """

        if identifier is None or identifier == "":
            return None
        identifier = str(identifier)
        if self._repository.get(identifier, platform) is not None:
            return identifier
        needle = normalize_identifier(identifier)
        for connection in self._repository.list_for_platform(platform):
            if needle in connection.account_identifiers():
                return connection.owner_user_id
        return None

    def count(self) -> int:
        return self._repository.count()

    # ------------------------------------------------------------------
    # Verified phone numbers

    def record_verified_phone(self, phone_number: str, owner_user_id: str) -> VerifiedPhoneNumber:
        entry = VerifiedPhoneNumber(phone_number=phone_number, owner_user_id=owner_user_id)
        self._repository.put_verified_phone(entry)
        return entry

    def get_verified_phone(self, phone_number: str) -> Optional[VerifiedPhoneNumber]:
        return self._repository.get_verified_phone(phone_number)
