"""Access-token issuance and validation (JWT) plus opaque refresh-token generation.

Access tokens are self-contained: the gate validates them without a store round-trip.
Refresh tokens carry no structure; the session service persists only their digest.
The signing configuration is an immutable TokenConfig built once at startup and
passed to both the issuer and the validator.
"""

import base64
import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import jwt

if TYPE_CHECKING:
    from gatehouse.core.config import Settings
    from gatehouse.models import User

logger = logging.getLogger(__name__)

REFRESH_TOKEN_BYTES = 64

# Claims every access token must carry to be accepted.
REQUIRED_CLAIMS = ("sub", "exp", "iat", "iss", "aud")


@dataclass(frozen=True)
class TokenConfig:
    """Signing key, algorithm and lifetimes shared by issuer and validator."""

    secret: str
    algorithm: str = "HS256"
    issuer: str = "gatehouse"
    audience: str = "gatehouse-clients"
    access_token_ttl: timedelta = timedelta(minutes=60)
    refresh_token_ttl: timedelta = timedelta(days=7)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "TokenConfig":
        return cls(
            secret=settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
            issuer=settings.JWT_ISSUER,
            audience=settings.JWT_AUDIENCE,
            access_token_ttl=timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
            refresh_token_ttl=timedelta(minutes=settings.REFRESH_TOKEN_EXPIRE_MINUTES),
        )


@dataclass(frozen=True)
class AccessToken:
    """Encoded JWT and the absolute expiry written into it."""

    token: str
    expires_at: datetime


@dataclass(frozen=True)
class IdentityContext:
    """Identity recovered from a valid access token."""

    subject_id: int
    display_name: str
    email: str
    roles: frozenset[str]


@dataclass(frozen=True)
class Unauthenticated:
    """Token missing or rejected. reason is for logs only, never for clients."""

    reason: str


class TokenIssuer:
    """Mints signed access tokens and random refresh tokens."""

    def __init__(self, config: TokenConfig) -> None:
        self._config = config

    def issue_access_token(
        self,
        user: "User",
        roles: list[str],
        now: datetime | None = None,
    ) -> AccessToken:
        """Create a JWT with sub, name, email, one roles entry per role, iat, exp, iss and aud."""
        # exp is encoded in whole seconds; expires_at must equal it.
        issued_at = (now or datetime.now(UTC)).replace(microsecond=0)
        expires_at = issued_at + self._config.access_token_ttl
        payload: dict[str, Any] = {
            "sub": str(user.id),
            "name": user.full_name,
            "email": user.email,
            "roles": list(roles),
            "iat": issued_at,
            "exp": expires_at,
            "iss": self._config.issuer,
            "aud": self._config.audience,
        }
        token = jwt.encode(payload, self._config.secret, algorithm=self._config.algorithm)
        return AccessToken(token=token, expires_at=expires_at)

    def issue_refresh_token(self) -> str:
        """64 random bytes, base64-encoded. Opaque to everything but this service."""
        return base64.b64encode(secrets.token_bytes(REFRESH_TOKEN_BYTES)).decode("ascii")

    def refresh_token_digest(self, refresh_token: str) -> str:
        """HMAC-SHA256 of the refresh token keyed with the signing secret, as hex."""
        return hmac.new(
            self._config.secret.encode("utf-8"),
            refresh_token.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def refresh_token_expiry(self, now: datetime | None = None) -> datetime:
        return (now or datetime.now(UTC)) + self._config.refresh_token_ttl


class TokenValidator:
    """Verifies access tokens and converts their claims into an IdentityContext."""

    def __init__(self, config: TokenConfig) -> None:
        self._config = config

    def authenticate_request(self, token: str | None) -> IdentityContext | Unauthenticated:
        """
        Verify signature, expiry, issuer, audience and required claims.

        Any failure yields Unauthenticated; a partially valid token never produces
        an identity.
        """
        if not token:
            return Unauthenticated("missing token")
        try:
            payload = jwt.decode(
                token,
                self._config.secret,
                algorithms=[self._config.algorithm],
                audience=self._config.audience,
                issuer=self._config.issuer,
                options={"require": list(REQUIRED_CLAIMS)},
            )
        except jwt.ExpiredSignatureError:
            return Unauthenticated("token expired")
        except jwt.PyJWTError as e:
            logger.debug("Rejected access token: %s", e)
            return Unauthenticated("invalid token")

        try:
            subject_id = int(payload["sub"])
        except (TypeError, ValueError):
            return Unauthenticated("invalid subject")

        roles = payload.get("roles", [])
        if not isinstance(roles, list) or not all(isinstance(r, str) for r in roles):
            return Unauthenticated("invalid roles claim")

        return IdentityContext(
            subject_id=subject_id,
            display_name=str(payload.get("name", "")),
            email=str(payload.get("email", "")),
            roles=frozenset(roles),
        )
