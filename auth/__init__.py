"""Authentication and session core."""
from auth.errors import (
    AuthError,
    ConfigurationError,
    Conflict,
    Internal,
    InvalidCredentials,
    InvalidToken,
    TokenExpired,
    TokenReuseDetected,
    Unauthorized,
)
from auth.refresh_store import RefreshTokenStore
from auth.results import Result
from auth.session import SessionManager
from auth.strategies import Authenticator, BearerTokenStrategy, PasswordStrategy
from auth.tokens import TokenIssuer, TokenPair
from auth.users import UserStore

__all__ = [
    "AuthError",
    "Authenticator",
    "BearerTokenStrategy",
    "ConfigurationError",
    "Conflict",
    "Internal",
    "InvalidCredentials",
    "InvalidToken",
    "PasswordStrategy",
    "RefreshTokenStore",
    "Result",
    "SessionManager",
    "TokenExpired",
    "TokenIssuer",
    "TokenPair",
    "TokenReuseDetected",
    "Unauthorized",
    "UserStore",
]
