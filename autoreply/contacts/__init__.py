"""Relationship profiles for individual counterparties."""

from . import schemas
from .directory import (
    ContactDirectory,
    ContactNotFoundError,
    ContactRepository,
    InMemoryContactRepository,
)
from .models import ROLE_TEMPLATES, ContactProfile, ContactRole, RoleTemplate

__all__ = [
    "ROLE_TEMPLATES",
    "ContactDirectory",
    "ContactNotFoundError",
    "ContactProfile",
    "ContactRepository",
    "ContactRole",
    "InMemoryContactRepository",
    "RoleTemplate",
    "schemas",
]
