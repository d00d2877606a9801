"""Persistence of issued refresh tokens as HMAC digests with their own expiry."""

from datetime import UTC, datetime

from sqlalchemy.orm import Session

from gatehouse.models import RefreshToken


class RefreshTokenStore:
    """Save, consume and purge refresh-token records. Callers own the transaction."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def save(self, user_id: int, token_hash: str, expires_at: datetime) -> RefreshToken:
        record = RefreshToken(user_id=user_id, token_hash=token_hash, expires_at=expires_at)
        self.db.add(record)
        return record

    def consume(self, token_hash: str, now: datetime | None = None) -> int | None:
        """
        Delete the unexpired record with this digest and return its user id.

        Returns None when no such record exists (never issued, already used, or
        expired). The delete is a single conditional statement; when a concurrent
        refresh removed the row first it matches nothing and the token is refused.
        """
        current = now or datetime.now(UTC)
        criteria = (
            RefreshToken.token_hash == token_hash,
            RefreshToken.expires_at > current,
        )
        user_id = self.db.query(RefreshToken.user_id).filter(*criteria).scalar()
        if user_id is None:
            return None
        deleted = self.db.query(RefreshToken).filter(*criteria).delete(synchronize_session=False)
        if deleted != 1:
            return None
        return user_id

    def purge_expired(self, now: datetime | None = None) -> int:
        """Delete records whose expiry has passed; returns the number removed."""
        current = now or datetime.now(UTC)
        return (
            self.db.query(RefreshToken)
            .filter(RefreshToken.expires_at <= current)
            .delete(synchronize_session=False)
        )
