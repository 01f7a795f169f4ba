"""Per-caller wiring of the session and the services that act for it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

from bandsync.auth.session import IdentitySession
from bandsync.calendar.services import EventService
from bandsync.chats.services import ChatService
from bandsync.constants import DEFAULT_CURRENCY, JOIN_CODE_MAX_ATTEMPTS
from bandsync.finance.services import FinanceService
from bandsync.group.services import GroupDirectory
from bandsync.merch.services import MerchService
from bandsync.permissions.services import PermissionService
from bandsync.setlists.services import SetlistService
from bandsync.tasks.services import TaskService
from bandsync.user.services import UserService

if TYPE_CHECKING:
    from bandsync.auth.identity import AuthProvider
    from bandsync.store.base import DocumentStore


@dataclass
class ServiceContext:
    """Everything one caller needs, sharing a single session."""

    store: DocumentStore
    session: IdentitySession
    users: UserService
    permissions: PermissionService
    groups: GroupDirectory
    events: EventService
    setlists: SetlistService
    finances: FinanceService
    merchandise: MerchService
    tasks: TaskService
    chats: ChatService

    @classmethod
    def build(
        cls,
        store: DocumentStore,
        provider: AuthProvider,
        config: Mapping[str, Any] | None = None,
    ) -> ServiceContext:
        config = config or {}
        session = IdentitySession(store, provider)
        users = UserService(store)
        permissions = PermissionService(store, session)
        return cls(
            store=store,
            session=session,
            users=users,
            permissions=permissions,
            groups=GroupDirectory(
                store,
                session,
                permissions,
                users,
                max_code_attempts=config.get(
                    "JOIN_CODE_MAX_ATTEMPTS", JOIN_CODE_MAX_ATTEMPTS
                ),
            ),
            events=EventService(store, session, permissions),
            setlists=SetlistService(store, session, permissions),
            finances=FinanceService(store, session, permissions),
            merchandise=MerchService(
                store,
                session,
                permissions,
                currency=config.get("DEFAULT_CURRENCY", DEFAULT_CURRENCY),
            ),
            tasks=TaskService(store, session, permissions),
            chats=ChatService(store, session, permissions),
        )

    def collection(self, name: str) -> Any:
        """Return the record collection service mounted under ``name``."""
        return getattr(self, COLLECTIONS[name])


# URL segment -> attribute
COLLECTIONS = {
    "calendar": "events",
    "setlists": "setlists",
    "finances": "finances",
    "merchandise": "merchandise",
    "tasks": "tasks",
    "chats": "chats",
}
