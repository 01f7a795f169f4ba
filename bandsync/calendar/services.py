"""Service layer for calendar events."""

from __future__ import annotations

import datetime
from typing import Optional

from bandsync.constants import EVENTS_COLLECTION
from bandsync.core.collection import GroupCollection
from bandsync.core.types import Module

from .models import Event


class EventService(GroupCollection[Event]):
    """Calendar events of a group."""

    collection = EVENTS_COLLECTION
    module = Module.CALENDAR
    model = Event
    editor_only = True
    label = "Event"

    def sort(self, records: list[Event]) -> list[Event]:
        return sorted(records, key=lambda event: (event.date, event.id))

    async def list_events(
        self,
        group_id: str,
        start: Optional[datetime.datetime] = None,
        end: Optional[datetime.datetime] = None,
    ) -> list[Event]:
        """Return events in date order, optionally limited to [start, end]."""
        events = await self.list(group_id)
        return [
            event
            for event in events
            if (start is None or event.date >= start)
            and (end is None or event.date <= end)
        ]
