"""The identity session passed to every service."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from bandsync.errors import NotFoundError, Unauthenticated
from bandsync.user.services import UserService

if TYPE_CHECKING:
    from bandsync.store.base import DocumentStore
    from bandsync.user.models import User

    from .identity import AuthProvider, UserIdentity

logger = logging.getLogger(__name__)


class IdentitySession:
    """Holds the authenticated user's identity, token and profile.

    One session is created per caller by the composition root and handed to
    the services that need to know who is acting.
    """

    def __init__(self, store: DocumentStore, provider: AuthProvider) -> None:
        self._users = UserService(store)
        self._provider = provider
        self._identity: Optional[UserIdentity] = None
        self._profile: Optional[User] = None

    @property
    def is_authenticated(self) -> bool:
        """Return True once a token has been verified."""
        return self._identity is not None

    @property
    def token(self) -> Optional[str]:
        """Return the ID token of the current identity."""
        return self._identity.token if self._identity else None

    @property
    def user_id(self) -> str:
        """Return the uid of the authenticated user."""
        return self.current_user().uid

    @property
    def profile(self) -> Optional[User]:
        """Return the cached profile, which is None until registered."""
        return self._profile

    def current_user(self) -> UserIdentity:
        """Return the verified identity or raise ``Unauthenticated``."""
        if self._identity is None:
            raise Unauthenticated()
        return self._identity

    def require_profile(self) -> User:
        """Return the profile, raising if the user has not registered one."""
        self.current_user()
        if self._profile is None:
            raise NotFoundError("User profile not found. Register first.")
        return self._profile

    async def login(self, id_token: str) -> Optional[User]:
        """Verify a token and load the profile that belongs to it."""
        identity = await self._provider.verify(id_token)
        self._identity = identity
        self._profile = await self._load_profile(identity.uid)
        logger.info(f"Session established for {identity.uid}")
        return self._profile

    async def refresh(self, id_token: Optional[str] = None) -> Optional[User]:
        """Re-verify the (possibly renewed) token and reload the profile."""
        token = id_token or self.token
        if not token:
            raise Unauthenticated()
        return await self.login(token)

    async def reload_profile(self) -> Optional[User]:
        """Reload the profile without re-verifying the token."""
        self._profile = await self._load_profile(self.user_id)
        return self._profile

    def logout(self) -> None:
        """Forget the identity and profile."""
        if self._identity is not None:
            logger.info(f"Session closed for {self._identity.uid}")
        self._identity = None
        self._profile = None

    async def _load_profile(self, user_id: str) -> Optional[User]:
        try:
            return await self._users.get(user_id)
        except NotFoundError:
            return None
