"""ORM model for issued refresh tokens (digest only, never the raw token)."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from gatehouse.models.base import Base


class RefreshToken(Base):
    """
    One outstanding refresh token.

    token_hash is HMAC-SHA256(JWT_SECRET, raw token) as hex, so the table alone
    is not enough to present a valid token. Rows are single-use: a successful
    refresh deletes the row it consumed.
    """

    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    user = relationship("User", back_populates="refresh_tokens")
