"""Login and refresh: the session credential state machine.

Anonymous -> login -> Authenticated(access, refresh)
Authenticated -> refresh (valid refresh token) -> Authenticated(new pair)
Authenticated -> refresh (invalid/expired/used refresh token) -> Anonymous

Both operations return an explicit result (SessionCredentialPair or AuthFailure)
instead of raising, so the HTTP layer has to handle the failure branch.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from gatehouse.core.security import PasswordHasher
from gatehouse.models import User
from gatehouse.services.credentials import CredentialStore
from gatehouse.services.refresh_tokens import RefreshTokenStore
from gatehouse.services.tokens import TokenIssuer

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_REFRESH_TOKEN = "Invalid refresh token"


@dataclass(frozen=True)
class SessionCredentialPair:
    """Access + refresh token issued together, with the identity they were issued for."""

    access_token: str
    refresh_token: str
    expires_at: datetime
    user: User
    roles: list[str]


@dataclass(frozen=True)
class AuthFailure:
    """Generic authentication failure; message never says which factor was wrong."""

    message: str


class SessionService:
    """Verifies credentials or refresh tokens and issues new credential pairs."""

    def __init__(self, db: Session, hasher: PasswordHasher, issuer: TokenIssuer) -> None:
        self.db = db
        self.hasher = hasher
        self.issuer = issuer
        self.credentials = CredentialStore(db)
        self.refresh_tokens = RefreshTokenStore(db)

    def login(self, email: str, password: str) -> SessionCredentialPair | AuthFailure:
        """Authenticate an active identity by email and password."""
        user = self.credentials.find_active_by_email(email)
        if user is None:
            # Same bcrypt cost as a real check so timing does not reveal unknown emails.
            self.hasher.burn(password)
            logger.info("Login rejected: no active identity for the given email")
            return AuthFailure(INVALID_CREDENTIALS)
        if not self.hasher.verify(password, user.password_hash):
            logger.info("Login rejected: bad password for user_id=%s", user.id)
            return AuthFailure(INVALID_CREDENTIALS)

        pair = self._issue_pair(user)
        logger.info("Login succeeded for user_id=%s roles=%s", user.id, pair.roles)
        return pair

    def refresh(self, refresh_token: str | None) -> SessionCredentialPair | AuthFailure:
        """
        Exchange a refresh token for a new pair. No access token is needed.

        The presented token must match an unexpired, unused record. The record is
        consumed, and roles are re-read so membership changes since login apply.
        """
        if not refresh_token or not refresh_token.strip():
            return AuthFailure(INVALID_REFRESH_TOKEN)

        digest = self.issuer.refresh_token_digest(refresh_token.strip())
        user_id = self.refresh_tokens.consume(digest)
        if user_id is None:
            self.db.rollback()
            logger.info("Refresh rejected: unknown, used or expired refresh token")
            return AuthFailure(INVALID_REFRESH_TOKEN)

        user = self.credentials.find_active_by_id(user_id)
        if user is None:
            # Consume the token anyway; the identity can no longer use it.
            self.db.commit()
            logger.info("Refresh rejected: user_id=%s is inactive or gone", user_id)
            return AuthFailure(INVALID_REFRESH_TOKEN)

        pair = self._issue_pair(user)
        logger.info("Refresh succeeded for user_id=%s roles=%s", user.id, pair.roles)
        return pair

    def _issue_pair(self, user: User) -> SessionCredentialPair:
        now = datetime.now(UTC)
        roles = self.credentials.role_names(user.id)
        access = self.issuer.issue_access_token(user, roles, now=now)
        refresh_token = self.issuer.issue_refresh_token()
        self.refresh_tokens.save(
            user_id=user.id,
            token_hash=self.issuer.refresh_token_digest(refresh_token),
            expires_at=self.issuer.refresh_token_expiry(now),
        )
        self.db.commit()
        return SessionCredentialPair(
            access_token=access.token,
            refresh_token=refresh_token,
            expires_at=access.expires_at,
            user=user,
            roles=roles,
        )
