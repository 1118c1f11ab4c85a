"""Bootstrap logic for running the periodic lifecycle sweep."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from remembra.app.settings import AppSettings
from remembra.db import get_session_factory, run_migrations_if_needed
from remembra.db.items import SqlItemStore
from remembra.scheduling import SweepResult, run_lifecycle_sweep


LOGGER = logging.getLogger(__name__)


def _configure_logging(log_level: str) -> None:
    """Set up project-wide logging configuration."""
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        level=log_level,
    )


def run_sweep(settings: AppSettings, now: Optional[datetime] = None) -> SweepResult:
    """Run one lifecycle sweep over the configured database."""
    _configure_logging(settings.log_level)
    print(f"{settings.app_name} is running in {settings.app_env} mode.")

    try:
        run_migrations_if_needed()
    except Exception:
        LOGGER.exception("Database migrations failed. Aborting startup.")
        raise

    if now is None:
        now = datetime.now(timezone.utc)

    policy = settings.scheduling_policy()
    store = SqlItemStore(get_session_factory(), policy=policy)

    LOGGER.info("Starting lifecycle sweep for %s at %s.", settings.app_name, now.isoformat())
    result = asyncio.run(run_lifecycle_sweep(store, now, policy))
    LOGGER.info(
        "Lifecycle sweep finished: %d archived, %d deleted, %d failed.",
        len(result.to_archive),
        len(result.to_delete),
        len(result.errors),
    )
    return result
