"""Data models for the user blueprint."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from bandsync.core.documents import as_choice, optional_str, require_str
from bandsync.core.types import Role
from bandsync.errors import AppError, DecodeError


@dataclass
class User:
    """A user profile document in Firestore."""

    id: str
    email: str
    name: str
    phone: str = ""
    group_id: Optional[str] = None
    role: Role = Role.MEMBER

    @classmethod
    def from_document(
        cls, data: dict[str, Any], error: type[AppError] = DecodeError
    ) -> User:
        """Decode a stored user document."""
        return cls(
            id=require_str(data, "id", error=error),
            email=require_str(data, "email", allow_empty=True, error=error),
            name=require_str(data, "name", allow_empty=True, error=error),
            phone=optional_str(data, "phone", error=error) or "",
            group_id=optional_str(data, "groupId", error=error),
            role=as_choice(data, "role", Role, default=Role.MEMBER, error=error),
        )

    def to_document(self) -> dict[str, Any]:
        """Encode the profile for storage."""
        return {
            "email": self.email,
            "name": self.name,
            "phone": self.phone,
            "groupId": self.group_id,
            "role": self.role.value,
        }

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation."""
        return {"id": self.id, **self.to_document()}
