"""Service layer for chats."""

from bandsync.constants import CHATS_COLLECTION
from bandsync.core.collection import GroupCollection
from bandsync.core.types import Module
from bandsync.store.base import where

from .models import Chat


class ChatService(GroupCollection[Chat]):
    """Chat rooms of a group."""

    collection = CHATS_COLLECTION
    module = Module.CHATS
    model = Chat
    label = "Chat"

    def sort(self, records: list[Chat]) -> list[Chat]:
        return sorted(records, key=lambda chat: (chat.name.lower(), chat.id))

    async def list_for_participant(self, group_id: str, user_id: str) -> list[Chat]:
        """Return the group's chats that ``user_id`` takes part in."""
        await self._permissions.check_access(group_id, self.module)
        chats = await self._query(
            group_id, where("participants", "array_contains", user_id)
        )
        return self.sort(chats)
