"""
RefreshToken model: stores the SHA-256 hash of each issued refresh token so
we can rotate, revoke and detect reuse of refresh tokens.
Fields:
- token_hash (unique) - hex digest of the plaintext token; plaintext is never stored
- user_id (String(36)) - FK to users.id
- revoked (bool) - one-way; once True never reset
- created_at, expires_at
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base, as_utc


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"
    __table_args__ = (
        Index("ix_refresh_tokens_user_revoked", "user_id", "revoked"),
    )

    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    revoked = Column(Boolean, default=False, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    user = relationship("User", back_populates="refresh_tokens")

    def is_expired(self, now) -> bool:
        return as_utc(self.expires_at) < now

    def __repr__(self):
        return f"<RefreshToken user={self.user_id} revoked={self.revoked}>"
