"""
Authentication error taxonomy.

Every error carries a machine-readable ``kind``, an HTTP ``status`` the web
layer maps to, and a public ``message``. The refresh-token failures share one
public message so a client cannot tell why its token was refused.
"""
from __future__ import annotations

TOKEN_REJECTED = "Invalid or expired token"


class AuthError(Exception):
    kind = "auth_error"
    status = 401
    default_message = "Unauthorized"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(AuthError):
    kind = "unauthorized"


class InvalidCredentials(Unauthorized):
    kind = "invalid_credentials"
    default_message = "Invalid credentials"


class InvalidToken(Unauthorized):
    kind = "invalid_token"
    default_message = TOKEN_REJECTED


class TokenExpired(InvalidToken):
    kind = "token_expired"


class TokenReuseDetected(InvalidToken):
    """A revoked refresh token was presented again; all user sessions were revoked."""
    kind = "token_reuse_detected"


class Conflict(AuthError):
    kind = "conflict"
    status = 409
    default_message = "Conflict"


class Internal(AuthError):
    kind = "internal"
    status = 500
    default_message = "An unexpected error occurred"


class ConfigurationError(RuntimeError):
    """Signing or store misconfiguration; raised at startup, not per request."""
