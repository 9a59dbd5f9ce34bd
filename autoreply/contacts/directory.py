"""Storage and lookup of contact profiles."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from ..connections.models import Platform, normalize_identifier
from .models import ContactKey, ContactProfile, ContactRole

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = (
    "name",
    "role",
    "their_position",
    "relationship",
    "custom_instructions",
    "context_notes",
)


class ContactNotFoundError(LookupError):
    """Raised when no profile exists for a counterparty."""

    def __init__(self, owner_user_id: str, platform: Platform, counterparty: str) -> None:
        super().__init__(
            f"No {platform.value} contact {counterparty} for user {owner_user_id}"
        )


class ContactRepository(Protocol):
    def get(self, key: ContactKey) -> Optional[ContactProfile]: ...

    def put(self, key: ContactKey, profile: ContactProfile) -> None: ...

    def delete(self, key: ContactKey) -> bool: ...

    def list_for_owner(self, owner_user_id: str) -> List[ContactProfile]: ...


class InMemoryContactRepository(ContactRepository):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._profiles: Dict[ContactKey, ContactProfile] = {}

    def get(self, key: ContactKey) -> Optional[ContactProfile]:
        with self._lock:
            return self._profiles.get(key)

    def put(self, key: ContactKey, profile: ContactProfile) -> None:
        with self._lock:
            self._profiles[key] = profile

    def delete(self, key: ContactKey) -> bool:
        with self._lock:
            return self._profiles.pop(key, None) is not None

    def list_for_owner(self, owner_user_id: str) -> List[ContactProfile]:
        with self._lock:
            return [p for k, p in self._profiles.items() if k.owner_user_id == owner_user_id]


class ContactDirectory:
    """Per-owner contact profiles keyed by platform and counterparty id.

    Counterparty ids are matched in normalised form so ``+1555...`` and
    ``1555...`` or differently cased email addresses find the same profile.
    """

    def __init__(self, repository: ContactRepository | None = None) -> None:
        self._repository = repository or InMemoryContactRepository()
        self._write_lock = threading.Lock()

    @staticmethod
    def _key(owner_user_id: str, platform: Platform, counterparty: str) -> ContactKey:
        return ContactKey(owner_user_id, platform, normalize_identifier(counterparty))

    def upsert(
        self,
        owner_user_id: str,
        platform: Platform,
        counterparty_external_id: str,
        **changes: Any,
    ) -> ContactProfile:
        """Create the profile or update only the fields given in ``changes``."""

        unknown = set(changes) - set(_EDITABLE_FIELDS)
        if unknown:
            raise TypeError(f"Unknown contact fields: {', '.join(sorted(unknown))}")
        if changes.get("role") is not None:
            changes["role"] = ContactRole(changes["role"])
        updates = {k: v for k, v in changes.items() if v is not None}

        key = self._key(owner_user_id, platform, counterparty_external_id)
        with self._write_lock:
            current = self._repository.get(key) or ContactProfile(
                owner_user_id=owner_user_id,
                platform=platform,
                counterparty_external_id=counterparty_external_id,
            )
            profile = replace(current, **updates, updated_at=datetime.now(timezone.utc))
            self._repository.put(key, profile)
        logger.info(
            "Saved %s contact profile for owner %s (%s)",
            platform.value,
            owner_user_id,
            profile.role.value,
        )
        return profile

    def lookup(
        self, owner_user_id: str, platform: Platform, counterparty_external_id: str
    ) -> Optional[ContactProfile]:
        return self._repository.get(self._key(owner_user_id, platform, counterparty_external_id))

    def require(
        self, owner_user_id: str, platform: Platform, counterparty_external_id: str
    ) -> ContactProfile:
        profile = self.lookup(owner_user_id, platform, counterparty_external_id)
        if profile is None:
            raise ContactNotFoundError(owner_user_id, platform, counterparty_external_id)
        return profile

    def remove(
        self, owner_user_id: str, platform: Platform, counterparty_external_id: str
    ) -> None:
        key = self._key(owner_user_id, platform, counterparty_external_id)
        with self._write_lock:
            if not self._repository.delete(key):
                raise ContactNotFoundError(owner_user_id, platform, counterparty_external_id)

    def list_for_owner(self, owner_user_id: str) -> List[ContactProfile]:
        profiles = self._repository.list_for_owner(owner_user_id)
        return sorted(profiles, key=lambda p: p.updated_at, reverse=True)
