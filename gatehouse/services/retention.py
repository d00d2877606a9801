"""Data retention: delete refresh-token records whose expiry has passed."""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from gatehouse.services.refresh_tokens import RefreshTokenStore

if TYPE_CHECKING:
    from gatehouse.core.config import Settings

logger = logging.getLogger(__name__)


def run_retention(session: Session, settings: "Settings") -> int:
    """
    Delete expired refresh-token records. Audit rows are never touched.

    Returns the number of records deleted. Idempotent: safe to run repeatedly.
    """
    if not settings.RETENTION_ENABLED:
        logger.info("Retention is disabled (RETENTION_ENABLED=false); skipping.")
        return 0

    cutoff = datetime.now(timezone.utc)
    deleted_count = RefreshTokenStore(session).purge_expired(cutoff)
    session.commit()

    if deleted_count > 0:
        logger.info(
            "Retention run: cutoff=%s, refresh_tokens_deleted=%s",
            cutoff.isoformat(),
            deleted_count,
        )
    return deleted_count
