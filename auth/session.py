"""
Session manager: login, refresh-token rotation and revocation.

A session moves Anonymous -> Authenticated (login) -> Refreshed (each
rotation) -> Revoked (logout, logout_all, or reuse detection). Revoked is
terminal: the only way back in is a new login.

Every public operation returns a Result instead of raising, so the caller
always gets either a value or a typed AuthError. Database failures become
Internal errors; the cause is logged here and never returned.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from auth.errors import AuthError, Internal, InvalidToken
from auth.refresh_store import RefreshTokenStore
from auth.results import Result
from auth.strategies import PasswordStrategy
from auth.tokens import TokenIssuer, TokenPair
from auth.users import UserStore
from models.user import User

logger = logging.getLogger(__name__)


def _guarded(fn, *args) -> Result:
    try:
        return Result.success(fn(*args))
    except AuthError as err:
        return Result.failure(err)
    except SQLAlchemyError:
        logger.exception("Storage failure in %s", fn.__name__)
        return Result.failure(Internal())


class SessionManager:

    def __init__(
        self,
        users: UserStore,
        tokens: TokenIssuer,
        refresh_tokens: RefreshTokenStore,
        password_strategy: PasswordStrategy | None = None,
    ):
        self.users = users
        self.tokens = tokens
        self.refresh_tokens = refresh_tokens
        self.password_strategy = password_strategy or PasswordStrategy(users)

    def login(self, identifier: str, password: str) -> Result[TokenPair]:
        """Exchange credentials for a fresh token pair."""
        authenticated = self.password_strategy.authenticate(identifier, password)
        if not authenticated.ok:
            logger.info("Login failed")
            return Result.failure(authenticated.error)
        result = _guarded(self._issue, authenticated.value)
        if result.ok:
            logger.info("User %s logged in", authenticated.value.id)
        return result

    def rotate(self, refresh_token: str) -> Result[TokenPair]:
        """
        Exchange a refresh token for a new pair. The presented token is
        consumed; presenting it again trips reuse detection, which revokes
        every session of its owner before the failure is returned.
        """
        if not refresh_token:
            return Result.failure(InvalidToken())
        return _guarded(self._rotate, refresh_token)

    refresh = rotate

    def logout(self, refresh_token: str | None) -> Result[None]:
        """Revoke one refresh token. Never fails from the caller's view."""
        if not refresh_token:
            return Result.success(None)
        try:
            self.refresh_tokens.revoke(refresh_token)
        except SQLAlchemyError:
            logger.exception("Failed to revoke refresh token on logout")
        return Result.success(None)

    def logout_all(self, user_id: str) -> Result[int]:
        """Revoke every refresh token of ``user_id``."""
        result = _guarded(self.refresh_tokens.revoke_all, user_id)
        if result.ok:
            logger.info("User %s logged out of all sessions", user_id)
        return result

    def _issue(self, user: User) -> TokenPair:
        refresh_token, _ = self.tokens.issue_refresh_token()
        self.refresh_tokens.store(user.id, refresh_token)
        return self.tokens.issue_pair(user, refresh_token)

    def _rotate(self, refresh_token: str) -> TokenPair:
        successor, _ = self.tokens.issue_refresh_token()
        user = self.refresh_tokens.rotate(refresh_token, successor)
        logger.info("Rotated refresh token for user %s", user.id)
        return self.tokens.issue_pair(user, successor)
