"""
Authenticators. The web layer picks one explicitly per route:

- PasswordStrategy: identifier (email or username) + password
- BearerTokenStrategy: signed access token from a header or cookie
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from sqlalchemy.exc import SQLAlchemyError

from auth.errors import AuthError, Internal, InvalidCredentials, InvalidToken, Unauthorized
from auth.results import Result
from auth.tokens import TokenIssuer
from auth.users import UserStore
from models.user import User
from utils.security import verify_password

logger = logging.getLogger(__name__)


class Authenticator(ABC):

    @abstractmethod
    def authenticate(self, *credentials) -> Result[User]:
        raise NotImplementedError


class PasswordStrategy(Authenticator):

    def __init__(self, users: UserStore):
        self.users = users

    def authenticate(self, identifier: str, password: str) -> Result[User]:
        """
        Unknown identifier and wrong password fail identically; the Argon2
        check runs in both cases.
        """
        try:
            user = self.users.find_by_identifier(identifier)
        except SQLAlchemyError:
            logger.exception("User lookup failed")
            return Result.failure(Internal())

        if not verify_password(user.password_hash if user else None, password or ""):
            return Result.failure(InvalidCredentials())
        return Result.success(user)


class BearerTokenStrategy(Authenticator):

    def __init__(self, tokens: TokenIssuer, users: UserStore):
        self.tokens = tokens
        self.users = users

    def authenticate(self, token: str) -> Result[User]:
        if not token:
            return Result.failure(Unauthorized("Authentication required"))
        try:
            claims = self.tokens.decode_access_token(token)
            user = self.users.find_by_id(claims["sub"])
        except AuthError as err:
            return Result.failure(err)
        except SQLAlchemyError:
            logger.exception("User lookup failed")
            return Result.failure(Internal())

        if user is None:
            return Result.failure(InvalidToken())
        return Result.success(user)
