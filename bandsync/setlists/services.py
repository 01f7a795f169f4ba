"""Service layer for setlists."""

from bandsync.constants import SETLISTS_COLLECTION
from bandsync.core.collection import GroupCollection
from bandsync.core.types import Module

from .models import Setlist


class SetlistService(GroupCollection[Setlist]):
    """Setlists of a group, listed by name."""

    collection = SETLISTS_COLLECTION
    module = Module.SETLISTS
    model = Setlist
    label = "Setlist"

    def sort(self, records: list[Setlist]) -> list[Setlist]:
        return sorted(records, key=lambda setlist: (setlist.name.lower(), setlist.id))
