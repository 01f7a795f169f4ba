"""Data models for the group blueprint."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from bandsync.core.documents import optional_str, require_str, str_list
from bandsync.core.types import Role
from bandsync.errors import DecodeError


@dataclass
class Group:
    """A group document in Firestore."""

    id: str
    name: str
    code: str
    members: list[str] = field(default_factory=list)
    pending_members: list[str] = field(default_factory=list)
    member_roles: dict[str, Role] = field(default_factory=dict)
    created_by: Optional[str] = None

    def is_member(self, user_id: str) -> bool:
        """Return True if the user is an approved member."""
        return user_id in self.members

    def is_pending(self, user_id: str) -> bool:
        """Return True if the user is waiting for approval."""
        return user_id in self.pending_members

    def role_of(self, user_id: str) -> Optional[Role]:
        """Return a member's role in this group, or None for non-members."""
        if user_id not in self.members:
            return None
        return self.member_roles.get(user_id, Role.MEMBER)

    def admins(self) -> list[str]:
        """Return the ids of members holding the admin role."""
        return [uid for uid in self.members if self.role_of(uid) == Role.ADMIN]

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> Group:
        """Decode a stored group document, checking membership invariants."""
        members = str_list(data, "members")
        pending = str_list(data, "pendingMembers")
        overlap = set(members) & set(pending)
        if overlap:
            raise DecodeError(
                f"Users {sorted(overlap)} are both members and pending members."
            )

        raw_roles = data.get("memberRoles") or {}
        if not isinstance(raw_roles, dict):
            raise DecodeError("Field 'memberRoles' must be a map.")
        member_roles = {}
        for user_id, value in raw_roles.items():
            if user_id not in members:
                continue
            try:
                member_roles[user_id] = Role.parse(value)
            except ValueError as e:
                raise DecodeError(str(e)) from e

        return cls(
            id=require_str(data, "id"),
            name=require_str(data, "name"),
            code=require_str(data, "code"),
            members=members,
            pending_members=pending,
            member_roles=member_roles,
            created_by=optional_str(data, "createdBy"),
        )

    def to_document(self) -> dict[str, Any]:
        """Encode the group for storage."""
        return {
            "name": self.name,
            "code": self.code,
            "members": list(self.members),
            "pendingMembers": list(self.pending_members),
            "memberRoles": {
                uid: self.member_roles.get(uid, Role.MEMBER).value
                for uid in self.members
            },
            "createdBy": self.created_by,
        }

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation."""
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "members": list(self.members),
            "pending_members": list(self.pending_members),
            "member_roles": {
                uid: self.member_roles.get(uid, Role.MEMBER).value
                for uid in self.members
            },
            "created_by": self.created_by,
        }


@dataclass
class PendingRequest:
    """The outcome of asking to join a group."""

    group_id: str
    group_name: str
    user_id: str
    already_pending: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation."""
        return {
            "group_id": self.group_id,
            "group_name": self.group_name,
            "user_id": self.user_id,
            "already_pending": self.already_pending,
        }
