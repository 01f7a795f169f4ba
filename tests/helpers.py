"""Common utilities for tests."""

from __future__ import annotations

import itertools
from typing import Any, Iterable, Optional

from bandsync.auth.identity import AuthProvider, UserIdentity
from bandsync.context import ServiceContext
from bandsync.errors import Unauthenticated
from bandsync.store import MemoryStore
from bandsync.user.services import UserService


class StaticAuthProvider(AuthProvider):
    """Accepts a fixed set of tokens, one per test user."""

    def __init__(self) -> None:
        self.tokens: dict[str, UserIdentity] = {}

    def add(self, uid: str, email: str = "") -> str:
        token = f"token-{uid}"
        self.tokens[token] = UserIdentity(uid=uid, email=email, token=token)
        return token

    async def verify(self, id_token: str) -> UserIdentity:
        try:
            return self.tokens[id_token]
        except KeyError:
            raise Unauthenticated("Invalid or expired ID token.") from None


def scripted_chooser(codes: Iterable[str]):
    """Return a chooser that spells out ``codes`` one character at a time."""
    chars = itertools.chain.from_iterable(codes)
    return lambda alphabet: next(chars)


class Band:
    """A memory store plus registered users, each with a logged-in context."""

    def __init__(self, store: Optional[MemoryStore] = None) -> None:
        self.store = store or MemoryStore()
        self.auth = StaticAuthProvider()
        self.config: dict[str, Any] = {}

    async def register(self, uid: str, name: Optional[str] = None) -> ServiceContext:
        """Register a profile for ``uid`` and return a logged-in context."""
        email = f"{uid}@example.com"
        await UserService(self.store).register(uid, email, name or uid.title())
        return await self.login(uid, email)

    async def login(self, uid: str, email: str = "") -> ServiceContext:
        token = f"token-{uid}"
        if token not in self.auth.tokens:
            self.auth.add(uid, email or f"{uid}@example.com")
        ctx = ServiceContext.build(self.store, self.auth, self.config)
        await ctx.session.login(token)
        return ctx

    async def group_with_member(
        self, role: Any = None, name: str = "The Reds"
    ) -> tuple[ServiceContext, ServiceContext, str]:
        """Create a group owned by "alice" with "bob" approved into it.

        ``role`` changes bob's role after approval.
        """
        alice = await self.register("alice")
        bob = await self.register("bob")
        group = await alice.groups.create_group(name)
        await bob.groups.join_group(group.code)
        await alice.groups.approve_member(group.id, "bob")
        if role is not None:
            await alice.groups.change_role(group.id, "bob", role)
        await bob.session.reload_profile()
        return alice, bob, group.id
