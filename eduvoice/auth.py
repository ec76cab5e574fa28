"""
Authentication strategies.

Exactly one strategy is built at start up from settings.auth_mode and stored
on app.state; routes reach it through api.deps. Both strategies verify
passwords the same way (see security.verify_password) and differ only in how
an authenticated identity travels between requests:

- SessionAuth: server-side session row + signed HttpOnly cookie
- TokenAuth: stateless bearer JWT in the Authorization header
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from uuid import UUID

from fastapi import Request, Response

from eduvoice.config import Settings
from eduvoice.db.models import User, utcnow
from eduvoice.security import (
    create_access_token,
    decode_access_token,
    sign_session_id,
    unsign_session_id,
)
from eduvoice.storage import Storage


@dataclass
class IssuedCredentials:
    """What a successful login hands back to the client."""

    access_token: str | None = None
    expires_in: int | None = None


class AuthStrategy(ABC):
    """How a logged-in identity is carried between requests."""

    mode: str

    @abstractmethod
    async def login(self, user: User, response: Response) -> IssuedCredentials:
        """Establish an authenticated identity for user."""

    @abstractmethod
    async def logout(self, request: Request, response: Response) -> None:
        """Tear down the caller's identity, if the mode supports it."""

    @abstractmethod
    async def authenticate(self, request: Request) -> UUID | None:
        """Return the caller's user id, or None when not authenticated."""


class SessionAuth(AuthStrategy):
    """Server-side sessions keyed by a signed cookie."""

    mode = "session"

    def __init__(self, settings: Settings, storage: Storage) -> None:
        self.settings = settings
        self.storage = storage

    async def login(self, user: User, response: Response) -> IssuedCredentials:
        expires_in = self.settings.session_expire_minutes * 60
        session = await self.storage.create_session(
            user.id, utcnow() + timedelta(seconds=expires_in)
        )
        response.set_cookie(
            key=self.settings.session_cookie_name,
            value=sign_session_id(session.id, self.settings.session_secret),
            httponly=True,
            secure=self.settings.cookie_secure,
            samesite=self.settings.cookie_samesite,
            max_age=expires_in,
        )
        return IssuedCredentials(expires_in=expires_in)

    async def logout(self, request: Request, response: Response) -> None:
        session_id = self._session_id(request)
        if session_id:
            await self.storage.delete_session(session_id)
        response.delete_cookie(
            key=self.settings.session_cookie_name,
            httponly=True,
            secure=self.settings.cookie_secure,
            samesite=self.settings.cookie_samesite,
        )

    async def authenticate(self, request: Request) -> UUID | None:
        session_id = self._session_id(request)
        if not session_id:
            return None
        session = await self.storage.get_session(session_id)
        return session.user_id if session else None

    def _session_id(self, request: Request) -> str | None:
        cookie = request.cookies.get(self.settings.session_cookie_name)
        if not cookie:
            return None
        return unsign_session_id(cookie, self.settings.session_secret)


class TokenAuth(AuthStrategy):
    """Stateless bearer JWTs."""

    mode = "token"

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def login(self, user: User, response: Response) -> IssuedCredentials:
        token = create_access_token(
            user.id,
            secret_key=self.settings.jwt_secret_key,
            algorithm=self.settings.jwt_algorithm,
            expire_minutes=self.settings.jwt_expire_minutes,
        )
        return IssuedCredentials(access_token=token, expires_in=self.settings.jwt_expire_minutes * 60)

    async def logout(self, request: Request, response: Response) -> None:
        # Nothing server side to revoke; the client drops the token
        return None

    async def authenticate(self, request: Request) -> UUID | None:
        authorization = request.headers.get("authorization")
        if not authorization:
            return None
        parts = authorization.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            return None
        return decode_access_token(
            parts[1],
            secret_key=self.settings.jwt_secret_key,
            algorithm=self.settings.jwt_algorithm,
        )


def build_auth_strategy(settings: Settings, storage: Storage) -> AuthStrategy:
    """Create the auth strategy selected by settings.auth_mode."""
    if settings.auth_mode == "token":
        return TokenAuth(settings)
    return SessionAuth(settings, storage)
