"""Service layer for the per-group permission matrix."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Optional

from bandsync.constants import GROUPS_COLLECTION, PERMISSIONS_COLLECTION
from bandsync.core.types import EDITOR_ROLES, Module, Role
from bandsync.errors import InvalidPolicy, NotFoundError, PermissionDenied
from bandsync.group.models import Group

from .models import PermissionMatrix, parse_roles

if TYPE_CHECKING:
    from bandsync.auth.session import IdentitySession
    from bandsync.store.base import DocumentStore

logger = logging.getLogger(__name__)


class PermissionService:
    """Answers and edits "may this role use this module" for a group.

    The matrix document shares its id with the group it belongs to.
    """

    def __init__(self, store: DocumentStore, session: IdentitySession) -> None:
        self._store = store
        self._session = session

    @staticmethod
    def can_edit(role: Role) -> bool:
        """Return True for roles that may change records, not just read them."""
        return role in EDITOR_ROLES

    async def get_matrix(self, group_id: str) -> PermissionMatrix:
        """Fetch the matrix for a group."""
        try:
            data = await self._store.get(PERMISSIONS_COLLECTION, group_id)
        except NotFoundError as e:
            raise NotFoundError("Permissions not found for this group.") from e
        return PermissionMatrix.from_document(data)

    async def create_default(self, group_id: str) -> PermissionMatrix:
        """Store the default matrix for a new group."""
        matrix = PermissionMatrix.default(group_id)
        await self._store.put(PERMISSIONS_COLLECTION, group_id, matrix.to_document())
        return matrix

    async def has_access(self, group_id: str, module: Any, role: Any) -> bool:
        """Look up whether a role may use a module. Unknowns are denied."""
        resolved = Module.lookup(module)
        if resolved is None:
            return False
        try:
            role = Role.parse(role)
        except ValueError:
            return False
        try:
            matrix = await self.get_matrix(group_id)
        except NotFoundError:
            return False
        return matrix.allows(resolved, role)

    async def accessible_modules(self, group_id: str, role: Any) -> list[Module]:
        """Return every module a role may use in the group."""
        try:
            role = Role.parse(role)
            matrix = await self.get_matrix(group_id)
        except (ValueError, NotFoundError):
            return []
        return matrix.accessible_modules(role)

    async def roles_with_access(self, group_id: str, module: Any) -> list[Role]:
        """Return the roles allowed to use a module."""
        resolved = Module.lookup(module)
        if resolved is None:
            return []
        try:
            matrix = await self.get_matrix(group_id)
        except NotFoundError:
            return []
        return [role for role in Role if role in matrix.roles_for(resolved)]

    async def load_group(self, group_id: str) -> Group:
        """Fetch and decode a group."""
        try:
            data = await self._store.get(GROUPS_COLLECTION, group_id)
        except NotFoundError as e:
            raise NotFoundError("Group not found.") from e
        return Group.from_document(data)

    async def check_access(
        self,
        group_id: str,
        module: Any,
        user_id: Optional[str] = None,
        *,
        edit: bool = False,
    ) -> Role:
        """Return the user's role, raising PermissionDenied if they may not proceed.

        The user defaults to the session's user. With ``edit=True`` the role
        must also be one that may change records.
        """
        user_id = user_id or self._session.user_id
        group = await self.load_group(group_id)
        role = group.role_of(user_id)
        if role is None:
            raise PermissionDenied("You are not a member of this group.")
        label = getattr(module, "value", module)
        if not await self.has_access(group_id, module, role):
            raise PermissionDenied(f"Your role cannot access {label}.")
        if edit and not self.can_edit(role):
            raise PermissionDenied(f"Your role cannot change {label}.")
        return role

    async def require_admin(self, group_id: str) -> Group:
        """Return the group if the session user may use its admin module."""
        await self.check_access(group_id, Module.ADMIN)
        return await self.load_group(group_id)

    async def grant_roles(
        self, group_id: str, module: Any, roles: Iterable[Any]
    ) -> PermissionMatrix:
        """Replace the set of roles allowed to use a module."""
        resolved, role_set = self._parse_change(module, roles)
        await self.require_admin(group_id)
        return await self._update(
            group_id, lambda matrix: matrix.with_roles(resolved, role_set)
        )

    async def revoke_roles(
        self, group_id: str, module: Any, roles: Iterable[Any]
    ) -> PermissionMatrix:
        """Remove roles from the set allowed to use a module."""
        resolved, role_set = self._parse_change(module, roles)
        await self.require_admin(group_id)
        return await self._update(
            group_id,
            lambda matrix: matrix.with_roles(
                resolved, matrix.roles_for(resolved) - role_set
            ),
        )

    async def reset_to_defaults(self, group_id: str) -> PermissionMatrix:
        """Throw away customisations and store the default matrix."""
        await self.require_admin(group_id)
        logger.info(f"Permissions of group {group_id} reset to defaults")
        return await self.create_default(group_id)

    @staticmethod
    def _parse_change(
        module: Any, roles: Iterable[Any]
    ) -> tuple[Module, frozenset[Role]]:
        resolved = Module.lookup(module)
        if resolved is None:
            raise InvalidPolicy(f"Unknown module: {module!r}.")
        if isinstance(roles, (str, bytes)):
            raise InvalidPolicy("Roles must be a list.")
        role_set = parse_roles(roles)
        if not role_set:
            raise InvalidPolicy("At least one role must be given.")
        return resolved, role_set

    async def _update(self, group_id: str, change: Any) -> PermissionMatrix:
        def mutate(data: dict[str, Any]) -> dict[str, Any]:
            return change(PermissionMatrix.from_document(data)).to_document()

        try:
            updated = await self._store.transactional_update(
                PERMISSIONS_COLLECTION, group_id, mutate
            )
        except NotFoundError as e:
            raise NotFoundError("Permissions not found for this group.") from e
        matrix = PermissionMatrix.from_document(updated)
        logger.info(f"Permissions of group {group_id} updated: {matrix.to_dict()}")
        return matrix
