"""Pytest configuration and fixtures"""
from datetime import datetime, timedelta, timezone
from typing import Generator

import pytest
from flask import Flask
from flask.testing import FlaskClient
from sqlalchemy import func, select

from api import create_app
from auth import RefreshTokenStore, SessionManager, TokenIssuer, UserStore
from models import DBStorage, RefreshToken, User
from utils.security import hash_token

TEST_SECRET = "test-secret-key-that-is-at-least-32-chars"
TEST_PASSWORD = "Secret123"


class FrozenClock:
    """Injectable clock that only moves when told to"""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now += timedelta(**delta)
        return self.now


def find_token(storage: DBStorage, token: str) -> RefreshToken | None:
    """Raw refresh token lookup by plaintext, without validation"""
    session = storage.get_session()
    try:
        return session.execute(
            select(RefreshToken).where(RefreshToken.token_hash == hash_token(token))
        ).scalar_one_or_none()
    finally:
        session.close()


def active_token_count(storage: DBStorage, user_id: str, now: datetime) -> int:
    """Unrevoked, unexpired refresh tokens of a user"""
    session = storage.get_session()
    try:
        return session.execute(
            select(func.count(RefreshToken.id)).where(
                RefreshToken.user_id == user_id,
                RefreshToken.revoked.is_(False),
                RefreshToken.expires_at >= now,
            )
        ).scalar_one()
    finally:
        session.close()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture(scope="function")
def storage(tmp_path) -> Generator[DBStorage, None, None]:
    """Fresh SQLite file database for each test"""
    db = DBStorage(f"sqlite:///{tmp_path / 'auth.db'}").open()
    try:
        yield db
    finally:
        db.drop_all()
        db.close()


@pytest.fixture
def users(storage: DBStorage) -> UserStore:
    return UserStore(storage)


@pytest.fixture
def issuer(clock: FrozenClock) -> TokenIssuer:
    return TokenIssuer(secret=TEST_SECRET, clock=clock)


@pytest.fixture
def refresh_store(storage: DBStorage, clock: FrozenClock) -> RefreshTokenStore:
    return RefreshTokenStore(storage, ttl=timedelta(days=7), clock=clock)


@pytest.fixture
def sessions(users: UserStore, issuer: TokenIssuer, refresh_store: RefreshTokenStore) -> SessionManager:
    return SessionManager(users, issuer, refresh_store)


@pytest.fixture
def user(users: UserStore) -> User:
    """A registered user"""
    return users.create(email="jane@example.com", name="Jane Doe", password=TEST_PASSWORD)


@pytest.fixture
def app(storage: DBStorage) -> Flask:
    return create_app("testing", storage=storage)


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    return app.test_client()


@pytest.fixture
def registration_data() -> dict:
    """Sample registration payload"""
    return {
        "email": "John.Smith@Example.com ",
        "name": "John Smith",
        "password": TEST_PASSWORD,
        "password_confirmation": TEST_PASSWORD,
    }
