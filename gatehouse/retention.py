"""
CLI entrypoint for the refresh-token retention job. Run from cron, e.g.:

  python -m gatehouse.retention

Or hourly: 0 * * * * cd /path/to/gatehouse && .venv/bin/python -m gatehouse.retention
"""

import logging
import sys

from gatehouse.core.config import get_settings
from gatehouse.core.database import get_session_factory
from gatehouse.services.retention import run_retention

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Run retention: delete refresh tokens past their expiry."""
    settings = get_settings()
    db = get_session_factory()()
    try:
        deleted = run_retention(db, settings)
        logger.info("Retention completed: refresh_tokens_deleted=%s", deleted)
        return 0
    except Exception as e:
        logger.exception("Retention job failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
