"""Core data types for the bandsync application."""

from enum import Enum
from typing import Any, Optional, TypedDict


class APIResponse(TypedDict):
    """Generic API response structure."""

    success: bool
    message: str
    data: Any


class Role(str, Enum):
    """Roles a group member can hold."""

    ADMIN = "admin"
    MANAGER = "manager"
    MUSICIAN = "musician"
    MEMBER = "member"

    @classmethod
    def parse(cls, value: Any) -> "Role":
        """Return the role for a stored or submitted value, ignoring case."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Unknown role: {value!r}")
        return cls(value.strip().lower())


class Module(str, Enum):
    """Feature areas gated by the permission matrix."""

    CALENDAR = "calendar"
    SETLISTS = "setlists"
    FINANCES = "finances"
    MERCHANDISE = "merchandise"
    TASKS = "tasks"
    CHATS = "chats"
    CONTACTS = "contacts"
    ADMIN = "admin"

    @classmethod
    def lookup(cls, value: Any) -> Optional["Module"]:
        """Return the module for a value, or None if it is not a known module."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


EDITOR_ROLES = frozenset({Role.ADMIN, Role.MANAGER})
