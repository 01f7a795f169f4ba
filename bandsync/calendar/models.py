"""Data models for the calendar blueprint."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from bandsync.core.collection import GroupRecord
from bandsync.core.documents import (
    as_bool,
    as_choice,
    as_datetime,
    as_float,
    optional_str,
    require_str,
    str_list,
)
from bandsync.errors import DecodeError, ValidationError


class EventType(str, Enum):
    """Kinds of calendar events."""

    CONCERT = "concert"
    REHEARSAL = "rehearsal"
    MEETING = "meeting"
    INTERVIEW = "interview"
    PHOTOSHOOT = "photoshoot"
    PERSONAL = "personal"


class EventStatus(str, Enum):
    """Booking state of an event."""

    BOOKED = "booked"
    CONFIRMED = "confirmed"


@dataclass
class Event(GroupRecord):
    """A calendar event document in Firestore."""

    id: str
    group_id: str
    title: str
    date: datetime.datetime
    type: EventType = EventType.CONCERT
    status: EventStatus = EventStatus.BOOKED
    location: Optional[str] = None
    notes: Optional[str] = None
    fee: Optional[float] = None
    currency: Optional[str] = None
    schedule: list[str] = field(default_factory=list)
    setlist_id: Optional[str] = None
    is_personal: bool = False

    @classmethod
    def from_document(cls, data: dict[str, Any], error: Any = DecodeError) -> Event:
        """Decode a stored event."""
        return cls(
            id=data.get("id") or "",
            group_id=require_str(data, "groupId", error=error),
            title=require_str(data, "title", error=error),
            date=as_datetime(data, "date", error=error),
            type=as_choice(
                data, "type", EventType, default=EventType.CONCERT, error=error
            ),
            status=as_choice(
                data, "status", EventStatus, default=EventStatus.BOOKED, error=error
            ),
            location=optional_str(data, "location", error=error),
            notes=optional_str(data, "notes", error=error),
            fee=as_float(data, "fee", default=None, error=error),
            currency=optional_str(data, "currency", error=error),
            schedule=str_list(data, "schedule", error=error),
            setlist_id=optional_str(data, "setlistId", error=error),
            is_personal=as_bool(data, "isPersonal", error=error),
        )

    def validate(self) -> None:
        if self.fee is not None and self.fee < 0:
            raise ValidationError("Fee cannot be negative.")

    def to_document(self) -> dict[str, Any]:
        return {
            "groupId": self.group_id,
            "title": self.title,
            "date": self.date,
            "type": self.type.value,
            "status": self.status.value,
            "location": self.location,
            "notes": self.notes,
            "fee": self.fee,
            "currency": self.currency,
            "schedule": list(self.schedule),
            "setlistId": self.setlist_id,
            "isPersonal": self.is_personal,
        }
