"""
User store: the user-record collaborator the session core reads from.
"""
from __future__ import annotations

import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError

from auth.errors import Conflict
from models.db_storage import DBStorage
from models.user import User
from utils.profile import generate_avatar_url, generate_unique_username
from utils.security import hash_password

logger = logging.getLogger(__name__)


class UserStore:

    def __init__(self, storage: DBStorage):
        self._storage = storage

    def find_by_identifier(self, identifier: str) -> User | None:
        """Match on email (case-insensitive) or exact username."""
        if not identifier:
            return None
        identifier = identifier.strip()
        session = self._storage.get_session()
        try:
            return session.execute(
                select(User).where(
                    or_(User.email == identifier.lower(), User.username == identifier)
                )
            ).scalars().first()
        finally:
            session.close()

    def find_by_id(self, user_id: str) -> User | None:
        session = self._storage.get_session()
        try:
            return session.get(User, user_id)
        finally:
            session.close()

    def username_exists(self, username: str) -> bool:
        session = self._storage.get_session()
        try:
            return session.execute(
                select(User.id).where(User.username == username)
            ).first() is not None
        finally:
            session.close()

    def email_exists(self, email: str) -> bool:
        session = self._storage.get_session()
        try:
            return session.execute(
                select(User.id).where(User.email == email)
            ).first() is not None
        finally:
            session.close()

    def create(self, email: str, name: str, password: str) -> User:
        """Register a user. Raises Conflict when the email or username is taken."""
        email = email.strip().lower()
        if self.email_exists(email):
            raise Conflict("Email already registered")

        user = User(
            email=email,
            name=name,
            username=generate_unique_username(name, self.username_exists),
            avatar=generate_avatar_url(name),
            password_hash=hash_password(password),
        )
        try:
            with self._storage.transaction() as session:
                session.add(user)
        except IntegrityError:
            # lost a race with a concurrent registration
            if self.email_exists(email):
                raise Conflict("Email already registered")
            raise Conflict("Username already taken, please try again")
        logger.info("Registered user %s", user.id)
        return user
