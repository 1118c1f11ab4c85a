"""Forgetting-curve estimate of how likely an item is to be recalled right now."""

from __future__ import annotations

import math
from datetime import datetime

from .models import ReviewableItem, clamp_count, clamp_easiness, ensure_aware
from .policy import DEFAULT_EASINESS_FACTOR


SECONDS_PER_DAY = 86400.0
MIN_STABILITY_DAYS = 1.0
FULL_RETENTION = 100.0


def stability_factor(easiness_factor: float) -> float:
    """Scale memory stability linearly with easiness; 1.0 at the default EF."""
    return clamp_easiness(easiness_factor) / DEFAULT_EASINESS_FACTOR


def estimate_retention(item: ReviewableItem, now: datetime) -> float:
    """Return the estimated recall probability of ``item`` as a percentage.

    Retention decays as ``100 * exp(-t / S)`` where ``t`` is the number of days
    since the last review and ``S = interval * stability_factor(EF)``. ``S`` is
    floored at one day so items that have an interval of 0 still decay
    smoothly. Items that were never reviewed are not decaying yet and report
    full retention.
    """
    last_reviewed_at = ensure_aware(item.last_reviewed_at)
    if last_reviewed_at is None:
        return FULL_RETENTION

    elapsed_days = (ensure_aware(now) - last_reviewed_at).total_seconds() / SECONDS_PER_DAY
    if elapsed_days <= 0:
        return FULL_RETENTION

    stability = max(
        MIN_STABILITY_DAYS,
        clamp_count(item.interval) * stability_factor(item.easiness_factor),
    )
    retention = FULL_RETENTION * math.exp(-elapsed_days / stability)
    return max(0.0, min(FULL_RETENTION, retention))
