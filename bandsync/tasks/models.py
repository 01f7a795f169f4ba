"""Data models for the tasks blueprint."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Any, Optional

from bandsync.core.collection import GroupRecord
from bandsync.core.documents import as_bool, as_datetime, optional_str, require_str
from bandsync.errors import DecodeError


@dataclass
class Task(GroupRecord):
    """A to-do item assigned to one member."""

    id: str
    group_id: str
    title: str
    assigned_to: str
    due_date: Optional[datetime.datetime] = None
    description: Optional[str] = None
    completed: bool = False

    @classmethod
    def from_document(cls, data: dict[str, Any], error: Any = DecodeError) -> Task:
        return cls(
            id=data.get("id") or "",
            group_id=require_str(data, "groupId", error=error),
            title=require_str(data, "title", error=error),
            assigned_to=require_str(data, "assignedTo", error=error),
            due_date=as_datetime(data, "dueDate", required=False, error=error),
            description=optional_str(data, "description", error=error),
            completed=as_bool(data, "completed", error=error),
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "groupId": self.group_id,
            "title": self.title,
            "assignedTo": self.assigned_to,
            "dueDate": self.due_date,
            "description": self.description,
            "completed": self.completed,
        }
