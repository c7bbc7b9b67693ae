"""Rebuild every place's accessibility aggregate from its reviews.

Meant to run periodically (cron) as a reconciliation sweep. A full sweep
also deletes revoked and expired sign-in sessions.
"""
from __future__ import annotations

import logging
import sys

from accessmap.core.config import settings
from accessmap.core.errors import NetworkError
from accessmap.core.logging_config import configure_logging
from accessmap.db.session import SessionLocal
from accessmap.services.accounts import prune_auth_sessions
from accessmap.services.ratings import recompute_aggregate, recompute_all_aggregates

logger = logging.getLogger("recompute_aggregates")


def main(argv: list[str] | None = None) -> int:
    configure_logging(log_dir=settings.log_dir, level=settings.log_level, filename="recompute.log")
    place_ids = sys.argv[1:] if argv is None else argv

    db = SessionLocal()
    try:
        if place_ids:
            for place_id in place_ids:
                if recompute_aggregate(db, place_id=place_id) is None:
                    logger.warning("No reviews for place %s", place_id)
            return 0

        total = recompute_all_aggregates(db)
        logger.info("Recomputed %s place aggregates", total)
        prune_auth_sessions(db)
        return 0
    except NetworkError:
        logger.exception("Recompute aborted")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
