"""Service layer for group membership: creation, join codes and approvals."""

from __future__ import annotations

import logging
import secrets
from typing import TYPE_CHECKING, Any, Callable, Optional

from bandsync.constants import GROUPS_COLLECTION, JOIN_CODE_MAX_ATTEMPTS
from bandsync.core.types import Role
from bandsync.errors import (
    CodeGenerationExhausted,
    LastAdminConstraint,
    NotFoundError,
    PermissionDenied,
    ValidationError,
)
from bandsync.permissions.services import PermissionService
from bandsync.store.base import where
from bandsync.user.services import UserService

from .codes import Chooser, generate_code, normalize_code
from .models import Group, PendingRequest

if TYPE_CHECKING:
    from bandsync.auth.session import IdentitySession
    from bandsync.store.base import DocumentStore
    from bandsync.user.models import User

logger = logging.getLogger(__name__)


class GroupDirectory:
    """Creates groups and moves users through pending and approved membership.

    All membership changes are read-modify-write updates of the group
    document, so a user id is never in both lists nor lost from both.
    """

    def __init__(
        self,
        store: DocumentStore,
        session: IdentitySession,
        permissions: Optional[PermissionService] = None,
        users: Optional[UserService] = None,
        *,
        max_code_attempts: int = JOIN_CODE_MAX_ATTEMPTS,
        choose: Chooser = secrets.choice,
    ) -> None:
        self._store = store
        self._session = session
        self._permissions = permissions or PermissionService(store, session)
        self._users = users or UserService(store)
        self._max_code_attempts = max_code_attempts
        self._choose = choose

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_group(self, group_id: str) -> Group:
        """Return a group the session user belongs to."""
        group = await self._permissions.load_group(group_id)
        if not group.is_member(self._session.user_id):
            raise PermissionDenied("You are not a member of this group.")
        return group

    async def find_by_code(self, code: str) -> Group:
        """Return the group that owns a join code."""
        code = normalize_code(code)
        docs = await self._store.query(GROUPS_COLLECTION, [where("code", "==", code)])
        if not docs:
            raise NotFoundError("No group matches that code.")
        return Group.from_document(docs[0])

    async def list_members(self, group_id: str) -> dict[str, list[User]]:
        """Return the profiles of approved and pending members."""
        group = await self.get_group(group_id)
        members = await self._users.get_many(group.members)
        for member in members:
            member.role = group.role_of(member.id) or member.role
        pending = await self._users.get_many(group.pending_members)
        return {"members": members, "pending": pending}

    # ------------------------------------------------------------------
    # Creating and joining
    # ------------------------------------------------------------------

    async def create_group(
        self, name: str, creator_user_id: Optional[str] = None
    ) -> Group:
        """Create a group with the creator as its first admin."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Group name is required.")
        creator_user_id = creator_user_id or self._session.user_id
        creator = await self._users.get(creator_user_id)
        if creator.group_id:
            raise ValidationError("Leave your current group before creating another.")

        code = await self._unused_code()
        group = Group(
            id="",
            name=name,
            code=code,
            members=[creator_user_id],
            member_roles={creator_user_id: Role.ADMIN},
            created_by=creator_user_id,
        )
        group.id = await self._store.add(GROUPS_COLLECTION, group.to_document())
        await self._permissions.create_default(group.id)
        await self._users.assign_group(creator_user_id, group.id, Role.ADMIN)
        await self._reload_if_self(creator_user_id)
        logger.info(f"Group {group.id} ({name!r}) created by {creator_user_id}")
        return group

    async def join_group(
        self, code: str, user_id: Optional[str] = None
    ) -> PendingRequest:
        """Ask to join the group behind a code. Repeating a request is a no-op."""
        group = await self.find_by_code(code)
        user_id = user_id or self._session.user_id
        profile = await self._users.get(user_id)
        if profile.group_id and profile.group_id != group.id:
            raise ValidationError("Leave your current group before joining another.")

        outcome = {"already_pending": False}

        def mutate(data: dict[str, Any]) -> dict[str, Any]:
            current = Group.from_document(data)
            if current.is_member(user_id):
                raise ValidationError("You are already a member of this group.")
            outcome["already_pending"] = current.is_pending(user_id)
            if not outcome["already_pending"]:
                current.pending_members.append(user_id)
            return current.to_document()

        await self._store.transactional_update(GROUPS_COLLECTION, group.id, mutate)
        if not outcome["already_pending"]:
            logger.info(f"User {user_id} requested to join group {group.id}")
        return PendingRequest(
            group_id=group.id,
            group_name=group.name,
            user_id=user_id,
            already_pending=outcome["already_pending"],
        )

    # ------------------------------------------------------------------
    # Admin actions
    # ------------------------------------------------------------------

    async def approve_member(self, group_id: str, user_id: str) -> Group:
        """Move a pending user into the members list.

        A user who joined another group since asking has their stale request
        dropped and the approval fails with ValidationError.
        """
        await self._permissions.require_admin(group_id)
        profile = await self._users.get(user_id)
        if profile.group_id and profile.group_id != group_id:
            await self._drop_stale_request(group_id, user_id)
            raise ValidationError("User already belongs to another group.")

        def mutate(data: dict[str, Any]) -> dict[str, Any]:
            group = self._require_pending(data, user_id)
            group.pending_members.remove(user_id)
            group.members.append(user_id)
            group.member_roles[user_id] = Role.MEMBER
            return group.to_document()

        group = await self._update(group_id, mutate)
        try:
            await self._users.claim_group(user_id, group_id, Role.MEMBER)
        except ValidationError:
            # Approved elsewhere in the meantime.
            await self._drop_stale_request(group_id, user_id)
            raise
        logger.info(f"User {user_id} approved into group {group_id}")
        return group

    async def reject_member(self, group_id: str, user_id: str) -> Group:
        """Drop a pending join request."""
        await self._permissions.require_admin(group_id)

        def mutate(data: dict[str, Any]) -> dict[str, Any]:
            group = self._require_pending(data, user_id)
            group.pending_members.remove(user_id)
            return group.to_document()

        group = await self._update(group_id, mutate)
        logger.info(f"User {user_id} rejected from group {group_id}")
        return group

    async def rename_group(self, group_id: str, name: str) -> Group:
        """Change a group's display name."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Group name is required.")
        await self._permissions.require_admin(group_id)

        def mutate(data: dict[str, Any]) -> dict[str, Any]:
            data["name"] = name
            return data

        return await self._update(group_id, mutate)

    async def regenerate_code(self, group_id: str) -> Group:
        """Replace the join code, invalidating the old one."""
        await self._permissions.require_admin(group_id)
        code = await self._unused_code()

        def mutate(data: dict[str, Any]) -> dict[str, Any]:
            data["code"] = code
            return data

        group = await self._update(group_id, mutate)
        logger.info(f"Join code of group {group_id} regenerated")
        return group

    async def change_role(self, group_id: str, user_id: str, role: Any) -> Group:
        """Give a member a different role."""
        try:
            role = Role.parse(role)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        await self._permissions.require_admin(group_id)

        def mutate(data: dict[str, Any]) -> dict[str, Any]:
            group = Group.from_document(data)
            if not group.is_member(user_id):
                raise NotFoundError("User is not a member of this group.")
            if role != Role.ADMIN and group.admins() == [user_id]:
                raise LastAdminConstraint("Promote another admin first.")
            group.member_roles[user_id] = role
            return group.to_document()

        group = await self._update(group_id, mutate)
        await self._users.set_role(user_id, role)
        await self._reload_if_self(user_id)
        logger.info(f"User {user_id} is now {role.value} in group {group_id}")
        return group

    async def remove_member(self, group_id: str, user_id: str) -> Group:
        """Remove an approved member from the group."""
        await self._permissions.require_admin(group_id)

        def mutate(data: dict[str, Any]) -> dict[str, Any]:
            group = Group.from_document(data)
            if not group.is_member(user_id):
                raise NotFoundError("User is not a member of this group.")
            if group.admins() == [user_id]:
                raise LastAdminConstraint("The last admin cannot be removed.")
            group.members.remove(user_id)
            group.member_roles.pop(user_id, None)
            return group.to_document()

        group = await self._update(group_id, mutate)
        await self._users.assign_group(user_id, None, Role.MEMBER)
        await self._reload_if_self(user_id)
        logger.info(f"User {user_id} removed from group {group_id}")
        return group

    # ------------------------------------------------------------------
    # Leaving
    # ------------------------------------------------------------------

    async def leave_group(
        self,
        group_id: str,
        user_id: Optional[str] = None,
        successor_id: Optional[str] = None,
    ) -> Group:
        """Leave a group.

        The last admin may only leave while other members remain if they name
        a successor, who is promoted to admin in the same update. The last
        member of a group may always leave, which also drops any pending
        join requests.
        """
        user_id = user_id or self._session.user_id
        if user_id != self._session.user_id:
            raise PermissionDenied("You can only leave a group yourself.")
        await self._permissions.load_group(group_id)
        promoted = {"id": None}

        def mutate(data: dict[str, Any]) -> dict[str, Any]:
            group = Group.from_document(data)
            if not group.is_member(user_id):
                raise NotFoundError("You are not a member of this group.")
            remaining = [uid for uid in group.members if uid != user_id]
            promoted["id"] = None
            if remaining and group.admins() == [user_id]:
                if successor_id is None:
                    raise LastAdminConstraint(
                        "Name another member as admin before leaving."
                    )
                if successor_id not in remaining:
                    raise ValidationError(
                        "The successor must be another member of the group."
                    )
                group.member_roles[successor_id] = Role.ADMIN
                promoted["id"] = successor_id
            group.members.remove(user_id)
            group.member_roles.pop(user_id, None)
            if not remaining:
                # Nobody is left to approve them.
                group.pending_members.clear()
            return group.to_document()

        group = await self._update(group_id, mutate)
        await self._users.assign_group(user_id, None, Role.MEMBER)
        if promoted["id"]:
            await self._users.set_role(promoted["id"], Role.ADMIN)
            logger.info(f"User {promoted['id']} promoted to admin of group {group_id}")
        await self._reload_if_self(user_id)
        logger.info(f"User {user_id} left group {group_id}")
        return group

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _unused_code(self) -> str:
        for attempt in range(1, self._max_code_attempts + 1):
            code = generate_code(self._choose)
            docs = await self._store.query(
                GROUPS_COLLECTION, [where("code", "==", code)]
            )
            if not docs:
                return code
            logger.warning(
                f"Join code collision (attempt {attempt}/{self._max_code_attempts})"
            )
        logger.error(f"No free join code after {self._max_code_attempts} attempts")
        raise CodeGenerationExhausted()

    @staticmethod
    def _require_pending(data: dict[str, Any], user_id: str) -> Group:
        group = Group.from_document(data)
        if not group.is_pending(user_id):
            raise NotFoundError("User has no pending request for this group.")
        return group

    async def _drop_stale_request(self, group_id: str, user_id: str) -> None:
        """Remove a pending or just-approved entry for a user taken elsewhere."""

        def mutate(data: dict[str, Any]) -> dict[str, Any]:
            group = Group.from_document(data)
            if user_id in group.pending_members:
                group.pending_members.remove(user_id)
            if user_id in group.members and group.role_of(user_id) == Role.MEMBER:
                group.members.remove(user_id)
                group.member_roles.pop(user_id, None)
            return group.to_document()

        await self._update(group_id, mutate)
        logger.warning(f"Dropped stale request of user {user_id} in group {group_id}")

    async def _update(
        self, group_id: str, mutate: Callable[[dict[str, Any]], dict[str, Any]]
    ) -> Group:
        updated = await self._store.transactional_update(
            GROUPS_COLLECTION, group_id, mutate
        )
        return Group.from_document(updated)

    async def _reload_if_self(self, user_id: str) -> None:
        if self._session.is_authenticated and user_id == self._session.user_id:
            await self._session.reload_profile()
