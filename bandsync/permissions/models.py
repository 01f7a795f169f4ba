"""Data models for the permissions blueprint."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from bandsync.core.documents import require_str
from bandsync.core.types import Module, Role
from bandsync.errors import DecodeError, InvalidPolicy

ALL_ROLES = frozenset(Role)


def ordered_roles(roles: Iterable[Role]) -> list[Role]:
    """Return roles in their declaration order."""
    chosen = set(roles)
    return [role for role in Role if role in chosen]


def parse_roles(values: Iterable[Any]) -> frozenset[Role]:
    """Parse submitted role names, raising InvalidPolicy for unknown ones."""
    roles = set()
    for value in values:
        try:
            roles.add(Role.parse(value))
        except ValueError as e:
            raise InvalidPolicy(f"Unknown role: {value!r}.") from e
    return frozenset(roles)


@dataclass
class PermissionMatrix:
    """Which roles may use which module, for one group."""

    group_id: str
    modules: dict[Module, frozenset[Role]] = field(default_factory=dict)

    @classmethod
    def default(cls, group_id: str) -> PermissionMatrix:
        """Feature modules open to every role, the admin module to admins only."""
        modules = {module: ALL_ROLES for module in Module}
        modules[Module.ADMIN] = frozenset({Role.ADMIN})
        return cls(group_id=group_id, modules=modules)

    def allows(self, module: Module, role: Role) -> bool:
        """Return True if the role is listed for the module."""
        return role in self.modules.get(module, frozenset())

    def roles_for(self, module: Module) -> frozenset[Role]:
        """Return the roles allowed for a module."""
        return self.modules.get(module, frozenset())

    def accessible_modules(self, role: Role) -> list[Module]:
        """Return the modules a role may use, in declaration order."""
        return [module for module in Module if self.allows(module, role)]

    def with_roles(self, module: Module, roles: frozenset[Role]) -> PermissionMatrix:
        """Return a validated copy with the module's role set replaced."""
        modules = dict(self.modules)
        modules[module] = frozenset(roles)
        updated = PermissionMatrix(group_id=self.group_id, modules=modules)
        updated.validate()
        return updated

    def validate(self) -> None:
        """Raise InvalidPolicy if the matrix could lock admins out."""
        for module, roles in self.modules.items():
            if not roles:
                raise InvalidPolicy(
                    f"Module '{module.value}' must allow at least one role."
                )
        if Role.ADMIN not in self.modules.get(Module.ADMIN, frozenset()):
            raise InvalidPolicy(
                "The admin role cannot lose access to the admin module."
            )

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> PermissionMatrix:
        """Decode a stored permissions document."""
        group_id = require_str(data, "groupId")
        entries = data.get("modules")
        if not isinstance(entries, list):
            raise DecodeError("Field 'modules' must be a list.")

        modules: dict[Module, frozenset[Role]] = {}
        for entry in entries:
            if not isinstance(entry, dict):
                raise DecodeError("Module entries must be objects.")
            module = Module.lookup(entry.get("moduleId"))
            if module is None:
                raise DecodeError(f"Unknown module: {entry.get('moduleId')!r}.")
            if module in modules:
                raise DecodeError(f"Module '{module.value}' is listed twice.")
            access = entry.get("roleAccess")
            if not isinstance(access, list):
                raise DecodeError("Field 'roleAccess' must be a list.")
            try:
                modules[module] = frozenset(Role.parse(value) for value in access)
            except ValueError as e:
                raise DecodeError(str(e)) from e
        return cls(group_id=group_id, modules=modules)

    def to_document(self) -> dict[str, Any]:
        """Encode the matrix for storage."""
        return {
            "groupId": self.group_id,
            "modules": [
                {
                    "moduleId": module.value,
                    "roleAccess": [role.value for role in ordered_roles(roles)],
                }
                for module, roles in sorted(
                    self.modules.items(), key=lambda item: list(Module).index(item[0])
                )
            ],
        }

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation."""
        return {
            "group_id": self.group_id,
            "modules": {
                module.value: [role.value for role in ordered_roles(roles)]
                for module, roles in self.modules.items()
            },
        }
