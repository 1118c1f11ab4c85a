"""Tunable constants for review scheduling."""

from __future__ import annotations

from dataclasses import dataclass


DEFAULT_EASINESS_FACTOR = 2.5
MIN_EASINESS_FACTOR = 1.3
EASINESS_PRECISION = 2
PASS_QUALITY = 3

QUALITY_AGAIN = 2
QUALITY_HARD = 3
QUALITY_GOOD = 4
QUALITY_EASY = 5

FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6

GRADUATION_REPETITIONS = 5
GRADUATION_INTERVAL_DAYS = 21
LEECH_LAPSE_THRESHOLD = 4

LEGACY_STAGE_INTERVALS: tuple[int, ...] = (1, 4, 7, 30, 90)

# Completed items stay reviewable for ARCHIVE_GRACE_DAYS, then sit archived
# for DELETE_GRACE_DAYS before the store removes them.
ARCHIVE_GRACE_DAYS = 30
DELETE_GRACE_DAYS = 60

OVERDUE_WEIGHT = 10.0
LAPSE_WEIGHT = 2.0
RETENTION_WEIGHT = 0.1


@dataclass(frozen=True, slots=True)
class SchedulingPolicy:
    """Numeric knobs shared by the evaluators, the transitioner and the ranker."""

    graduation_repetitions: int = GRADUATION_REPETITIONS
    graduation_interval_days: int = GRADUATION_INTERVAL_DAYS
    leech_lapse_threshold: int = LEECH_LAPSE_THRESHOLD
    archive_grace_days: int = ARCHIVE_GRACE_DAYS
    delete_grace_days: int = DELETE_GRACE_DAYS
    legacy_stage_intervals: tuple[int, ...] = LEGACY_STAGE_INTERVALS
    overdue_weight: float = OVERDUE_WEIGHT
    lapse_weight: float = LAPSE_WEIGHT
    retention_weight: float = RETENTION_WEIGHT

    def __post_init__(self) -> None:
        if self.archive_grace_days < 0 or self.delete_grace_days < 0:
            raise ValueError("Grace periods must not be negative.")
        if self.graduation_repetitions < 1 or self.graduation_interval_days < 1:
            raise ValueError("Graduation thresholds must be positive.")
        if not self.legacy_stage_intervals:
            raise ValueError("The legacy stage table must not be empty.")


DEFAULT_POLICY = SchedulingPolicy()
