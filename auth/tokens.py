"""
Token issuer: short-lived signed access tokens (PyJWT) and long-lived
opaque refresh tokens (random hex, stored only as a SHA-256 hash).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Tuple

import jwt

from auth.errors import ConfigurationError, InvalidToken
from models.base_model import utcnow
from utils.security import generate_jti, new_refresh_token

logger = logging.getLogger(__name__)

MIN_SECRET_LENGTH = 32
DEFAULT_ACCESS_TTL = timedelta(minutes=15)
DEFAULT_REFRESH_TTL = timedelta(days=7)
SUPPORTED_ALGORITHMS = ("HS256", "HS384", "HS512")


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = int(DEFAULT_ACCESS_TTL.total_seconds())


class TokenIssuer:
    """
    Mints access and refresh tokens.

    The signing secret is fixed at construction; a missing or weak secret is
    a configuration error raised here, before any request is served.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = DEFAULT_ACCESS_TTL,
        refresh_ttl: timedelta = DEFAULT_REFRESH_TTL,
        issuer: str = "user-auth-api",
        clock: Callable[[], datetime] = utcnow,
        min_secret_length: int = MIN_SECRET_LENGTH,
    ):
        if not secret:
            raise ConfigurationError("JWT secret is not configured")
        if len(secret) < min_secret_length:
            raise ConfigurationError(
                f"JWT secret must be at least {min_secret_length} characters"
            )
        if algorithm not in SUPPORTED_ALGORITHMS:
            raise ConfigurationError(f"Unsupported JWT algorithm: {algorithm}")
        if access_ttl <= timedelta(0) or refresh_ttl <= timedelta(0):
            raise ConfigurationError("Token lifetimes must be positive")

        self._secret = secret
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.issuer = issuer
        self._clock = clock

    @classmethod
    def from_config(cls, config, clock: Callable[[], datetime] = utcnow) -> "TokenIssuer":
        """Build from a Flask config mapping."""
        return cls(
            secret=config.get("JWT_SECRET"),
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            access_ttl=config.get("ACCESS_TOKEN_EXPIRES", DEFAULT_ACCESS_TTL),
            refresh_ttl=config.get("REFRESH_TOKEN_EXPIRES", DEFAULT_REFRESH_TTL),
            issuer=config.get("JWT_ISSUER", "user-auth-api"),
            clock=clock,
            min_secret_length=config.get("JWT_SECRET_MIN_LENGTH", MIN_SECRET_LENGTH),
        )

    def issue_access_token(self, user) -> str:
        """Sign the claim set {sub, email, username, iat, exp} for ``user``."""
        now = self._clock()
        payload: Dict[str, Any] = {
            "iss": self.issuer,
            "sub": str(user.id),
            "email": user.email,
            "username": user.username,
            "iat": int(now.timestamp()),
            "exp": int((now + self.access_ttl).timestamp()),
            "type": "access",
            "jti": generate_jti(),
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def issue_refresh_token(self) -> Tuple[str, str]:
        """Return (plaintext, sha256 hex digest)."""
        return new_refresh_token()

    def issue_pair(self, user, refresh_token: str) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(user),
            refresh_token=refresh_token,
            expires_in=int(self.access_ttl.total_seconds()),
        )

    def decode_access_token(self, token: str) -> Dict[str, Any]:
        """
        Decode and validate an access token. Signature and expiry are checked
        by PyJWT; any failure raises InvalidToken.
        """
        try:
            decoded = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidToken()
        except jwt.InvalidTokenError as exc:
            logger.debug("Access token rejected: %s", exc)
            raise InvalidToken()

        if decoded.get("type") != "access":
            raise InvalidToken()
        return decoded
