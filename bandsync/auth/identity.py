"""Verification of Firebase ID tokens."""

from __future__ import annotations

import abc
import asyncio
from dataclasses import dataclass, field
from typing import Any, Optional

from firebase_admin import auth

from bandsync.errors import Unauthenticated, UpstreamUnavailable


@dataclass(frozen=True)
class UserIdentity:
    """A verified identity as reported by the auth provider."""

    uid: str
    email: str = ""
    token: Optional[str] = None
    claims: dict[str, Any] = field(default_factory=dict, compare=False)


class AuthProvider(abc.ABC):
    """Turns a client-supplied ID token into a verified identity."""

    @abc.abstractmethod
    async def verify(self, id_token: str) -> UserIdentity:
        """Return the identity behind the token or raise ``Unauthenticated``."""


class FirebaseAuthProvider(AuthProvider):
    """Verifies ID tokens with the Firebase Admin SDK."""

    def __init__(self, app: Any = None, check_revoked: bool = False) -> None:
        self._app = app
        self._check_revoked = check_revoked

    async def verify(self, id_token: str) -> UserIdentity:
        if not id_token:
            raise Unauthenticated()
        try:
            # verify_id_token may fetch signing certificates over the network.
            decoded = await asyncio.to_thread(
                auth.verify_id_token,
                id_token,
                app=self._app,
                check_revoked=self._check_revoked,
            )
        except auth.CertificateFetchError as e:
            raise UpstreamUnavailable(
                "Could not reach the authentication service."
            ) from e
        except (
            auth.InvalidIdTokenError,
            auth.RevokedIdTokenError,
            auth.UserDisabledError,
            ValueError,
        ) as e:
            raise Unauthenticated("Invalid or expired ID token.") from e
        return UserIdentity(
            uid=decoded["uid"],
            email=decoded.get("email", ""),
            token=id_token,
            claims=dict(decoded),
        )
