"""Data models for the chats blueprint."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from bandsync.core.collection import GroupRecord
from bandsync.core.documents import as_choice, require_str, str_list
from bandsync.errors import DecodeError, ValidationError


class ChatType(str, Enum):
    GROUP = "group"
    DIRECT = "direct"


@dataclass
class Chat(GroupRecord):
    """A chat room inside a group."""

    id: str
    group_id: str
    name: str
    type: ChatType = ChatType.GROUP
    participants: list[str] = field(default_factory=list)

    @classmethod
    def from_document(cls, data: dict[str, Any], error: Any = DecodeError) -> Chat:
        return cls(
            id=data.get("id") or "",
            group_id=require_str(data, "groupId", error=error),
            name=require_str(data, "name", error=error),
            type=as_choice(data, "type", ChatType, default=ChatType.GROUP, error=error),
            participants=str_list(data, "participants", error=error),
        )

    def validate(self) -> None:
        if not self.participants:
            raise ValidationError("A chat needs at least one participant.")
        if self.type is ChatType.DIRECT and len(set(self.participants)) != 2:
            raise ValidationError("A direct chat has exactly two participants.")

    def to_document(self) -> dict[str, Any]:
        return {
            "groupId": self.group_id,
            "name": self.name,
            "type": self.type.value,
            "participants": list(self.participants),
        }
