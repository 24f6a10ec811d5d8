"""
Refresh token store backed by the refresh_tokens table.

Only the SHA-256 hash of a token is persisted. Revocation is one-way and is
always done with a conditional UPDATE (``revoked = false`` in the WHERE
clause), so the row count tells us whether *this* call flipped the flag.
That is what makes rotation single-use under concurrent requests.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session, joinedload

from auth.errors import InvalidToken, TokenExpired, TokenReuseDetected
from auth.tokens import DEFAULT_REFRESH_TTL
from models.base_model import utcnow
from models.db_storage import DBStorage
from models.refresh_token import RefreshToken
from models.user import User
from utils.security import hash_token

logger = logging.getLogger(__name__)


class RefreshTokenStore:

    def __init__(
        self,
        storage: DBStorage,
        ttl: timedelta = DEFAULT_REFRESH_TTL,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._storage = storage
        self.ttl = ttl
        self._clock = clock

    def store(self, user_id: str, token: str, ttl: timedelta | None = None) -> RefreshToken:
        """Hash and persist a new, unrevoked token for ``user_id``."""
        with self._storage.transaction() as session:
            return self._insert(session, user_id, token, ttl)

    def verify(self, token: str) -> RefreshToken:
        """
        Look up a presented token.

        Raises InvalidToken when unknown, TokenExpired when past expires_at,
        and TokenReuseDetected when it was already revoked. Reuse revokes
        every token of the owner before raising.
        """
        session = self._storage.get_session()
        try:
            record = session.execute(
                select(RefreshToken)
                .options(joinedload(RefreshToken.user))
                .where(RefreshToken.token_hash == hash_token(token))
            ).scalar_one_or_none()
        finally:
            session.close()

        if record is None:
            raise InvalidToken()
        if record.revoked:
            logger.warning(
                "Refresh token reuse detected for user %s; revoking all sessions",
                record.user_id,
            )
            self.revoke_all(record.user_id)
            raise TokenReuseDetected()
        if record.is_expired(self._clock()):
            raise TokenExpired()
        return record

    def rotate(self, token: str, successor: str, ttl: timedelta | None = None) -> User:
        """
        Consume ``token`` and persist ``successor`` for the same user.

        The claim and the insert share one transaction. When the claim
        matches no row (unknown, expired, or already used, possibly by a
        concurrent request) the failure is classified by verify(), which
        also performs reuse detection.
        """
        token_hash = hash_token(token)
        now = self._clock()
        with self._storage.transaction() as session:
            claimed = session.execute(
                update(RefreshToken)
                .where(
                    RefreshToken.token_hash == token_hash,
                    RefreshToken.revoked.is_(False),
                    RefreshToken.expires_at >= now,
                )
                .values(revoked=True)
                .execution_options(synchronize_session=False)
            ).rowcount
            if claimed == 1:
                user = session.execute(
                    select(User)
                    .join(RefreshToken, RefreshToken.user_id == User.id)
                    .where(RefreshToken.token_hash == token_hash)
                ).scalar_one()
                self._insert(session, user.id, successor, ttl)
                return user

        # Claim failed: the write lock is released before classifying
        self.verify(token)
        # verify() only returns when the clock stepped back past expires_at
        raise TokenExpired()

    def revoke(self, token: str) -> None:
        """Mark a token revoked. No-op if absent or already revoked."""
        with self._storage.transaction() as session:
            session.execute(
                update(RefreshToken)
                .where(
                    RefreshToken.token_hash == hash_token(token),
                    RefreshToken.revoked.is_(False),
                )
                .values(revoked=True)
                .execution_options(synchronize_session=False)
            )

    def revoke_all(self, user_id: str) -> int:
        """Revoke every live token of ``user_id``; returns how many were flipped."""
        with self._storage.transaction() as session:
            count = session.execute(
                update(RefreshToken)
                .where(
                    RefreshToken.user_id == user_id,
                    RefreshToken.revoked.is_(False),
                )
                .values(revoked=True)
                .execution_options(synchronize_session=False)
            ).rowcount
        logger.info("Revoked %d refresh token(s) for user %s", count, user_id)
        return count

    def purge_expired(self) -> int:
        """Delete expired records. Space reclamation only."""
        with self._storage.transaction() as session:
            count = session.execute(
                delete(RefreshToken)
                .where(RefreshToken.expires_at < self._clock())
                .execution_options(synchronize_session=False)
            ).rowcount
        logger.info("Purged %d expired refresh token(s)", count)
        return count

    def _insert(
        self, session: Session, user_id: str, token: str, ttl: timedelta | None
    ) -> RefreshToken:
        now = self._clock()
        record = RefreshToken(
            token_hash=hash_token(token),
            user_id=user_id,
            revoked=False,
            created_at=now,
            expires_at=now + (ttl or self.ttl),
        )
        session.add(record)
        session.flush()
        return record
