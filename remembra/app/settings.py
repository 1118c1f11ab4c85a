"""Configuration helpers for the Remembra scheduling runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass

from remembra.scheduling.policy import (
    ARCHIVE_GRACE_DAYS,
    DELETE_GRACE_DAYS,
    GRADUATION_INTERVAL_DAYS,
    GRADUATION_REPETITIONS,
    SchedulingPolicy,
)


def _read_int(name: str, default: int, minimum: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer.") from exc
    if value < minimum:
        raise RuntimeError(f"{name} must be at least {minimum}.")
    return value


@dataclass(frozen=True)
class AppSettings:
    """Strongly typed application settings loaded from environment variables."""

    app_name: str
    app_env: str
    log_level: str
    archive_grace_days: int
    delete_grace_days: int
    graduation_repetitions: int
    graduation_interval_days: int

    @classmethod
    def from_env(cls) -> AppSettings:
        """Construct settings directly from environment variables."""
        return cls(
            app_name=os.getenv("APP_NAME", "Remembra"),
            app_env=os.getenv("APP_ENV", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            archive_grace_days=_read_int("ARCHIVE_GRACE_DAYS", ARCHIVE_GRACE_DAYS, 0),
            delete_grace_days=_read_int("DELETE_GRACE_DAYS", DELETE_GRACE_DAYS, 0),
            graduation_repetitions=_read_int("GRADUATION_REPETITIONS", GRADUATION_REPETITIONS, 1),
            graduation_interval_days=_read_int(
                "GRADUATION_INTERVAL_DAYS", GRADUATION_INTERVAL_DAYS, 1
            ),
        )

    def scheduling_policy(self) -> SchedulingPolicy:
        """Build the scheduling policy these settings describe."""
        return SchedulingPolicy(
            graduation_repetitions=self.graduation_repetitions,
            graduation_interval_days=self.graduation_interval_days,
            archive_grace_days=self.archive_grace_days,
            delete_grace_days=self.delete_grace_days,
        )
