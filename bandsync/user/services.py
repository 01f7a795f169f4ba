"""Service layer for user profiles."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from bandsync.constants import USERS_COLLECTION
from bandsync.core.types import Role
from bandsync.errors import DuplicateResourceError, NotFoundError, ValidationError

from .models import User

if TYPE_CHECKING:
    from bandsync.store.base import DocumentStore

logger = logging.getLogger(__name__)


class UserService:
    """Reads and writes user profile documents."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def register(
        self, user_id: str, email: str, name: str, phone: str = ""
    ) -> User:
        """Create the profile for a freshly authenticated user."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required.")
        try:
            await self._store.get(USERS_COLLECTION, user_id)
        except NotFoundError:
            pass
        else:
            raise DuplicateResourceError("This account is already registered.")

        user = User(id=user_id, email=email, name=name, phone=phone or "")
        await self._store.put(USERS_COLLECTION, user_id, user.to_document())
        logger.info(f"Registered user {user_id}")
        return user

    async def get(self, user_id: str) -> User:
        """Fetch and decode a profile, raising NotFoundError if it is missing."""
        try:
            data = await self._store.get(USERS_COLLECTION, user_id)
        except NotFoundError as e:
            raise NotFoundError("User not found.") from e
        return User.from_document(data)

    async def get_many(self, user_ids: list[str]) -> list[User]:
        """Fetch the profiles that exist for the given ids, in the given order."""
        users = []
        for user_id in user_ids:
            try:
                users.append(await self.get(user_id))
            except NotFoundError:
                logger.warning(f"Profile {user_id} referenced but not found")
        return users

    async def assign_group(
        self, user_id: str, group_id: Optional[str], role: Optional[Role] = None
    ) -> User:
        """Point a profile at a group (or at none) and optionally set its role."""

        def mutate(data: dict[str, Any]) -> dict[str, Any]:
            data["groupId"] = group_id
            if role is not None:
                data["role"] = role.value
            return data

        try:
            updated = await self._store.transactional_update(
                USERS_COLLECTION, user_id, mutate
            )
        except NotFoundError as e:
            raise NotFoundError("User not found.") from e
        return User.from_document(updated)

    async def claim_group(self, user_id: str, group_id: str, role: Role) -> User:
        """Like assign_group, but fails if the profile belongs to another group."""

        def mutate(data: dict[str, Any]) -> dict[str, Any]:
            current = data.get("groupId")
            if current and current != group_id:
                raise ValidationError("User already belongs to another group.")
            data["groupId"] = group_id
            data["role"] = role.value
            return data

        try:
            updated = await self._store.transactional_update(
                USERS_COLLECTION, user_id, mutate
            )
        except NotFoundError as e:
            raise NotFoundError("User not found.") from e
        return User.from_document(updated)

    async def set_role(self, user_id: str, role: Role) -> User:
        """Mirror a member's group role onto their profile."""

        def mutate(data: dict[str, Any]) -> dict[str, Any]:
            data["role"] = role.value
            return data

        try:
            updated = await self._store.transactional_update(
                USERS_COLLECTION, user_id, mutate
            )
        except NotFoundError as e:
            raise NotFoundError("User not found.") from e
        return User.from_document(updated)
