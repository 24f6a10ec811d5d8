"""
Environment-aware configuration.
Values come from the environment (and .env via python-dotenv) and are read
once when the app is created; nothing mutates them afterwards.
"""
import os
import re
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()  # Read .env if present

_DURATION = re.compile(r"^(\d+)([dhms]?)$")
_UNITS = {"d": "days", "h": "hours", "m": "minutes", "s": "seconds", "": "seconds"}


def parse_duration(value) -> timedelta:
    """
    '15m', '7d', '12h', '30s' or plain seconds ('900') -> timedelta.
    """
    if isinstance(value, timedelta):
        return value
    match = _DURATION.match(str(value).strip().lower())
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_UNITS[unit]: int(amount)})


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///user-auth.db")
    SQL_ECHO = False
    # jwt configurations
    JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me-dev-secret-change-me")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "user-auth-api")
    JWT_SECRET_MIN_LENGTH = 32
    ACCESS_TOKEN_EXPIRES = parse_duration(os.getenv("JWT_ACCESS_EXPIRATION", "15m"))
    REFRESH_TOKEN_EXPIRES = parse_duration(os.getenv("JWT_REFRESH_EXPIRATION", "7d"))
    # token cookies: set on login/refresh, cleared on logout
    ACCESS_TOKEN_COOKIE = "accessToken"
    REFRESH_TOKEN_COOKIE = "refreshToken"
    REFRESH_TOKEN_COOKIE_PATH = "/api/v1/auth"
    COOKIE_SECURE = os.getenv("COOKIE_SECURE", "true").lower() == "true"
    COOKIE_SAMESITE = os.getenv("COOKIE_SAMESITE", "Strict")
    COOKIE_DOMAIN = os.getenv("COOKIE_DOMAIN") or None


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    DEBUG = False
    # No fallback secret in production; TokenIssuer refuses to start without one
    JWT_SECRET = os.getenv("JWT_SECRET")


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///test-user-auth.db")
    JWT_SECRET = "test-secret-key-that-is-at-least-32-chars"
    COOKIE_SECURE = False


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/prod/test).
    """
    if name:
        name = name.lower()
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
