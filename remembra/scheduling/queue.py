"""Ordering of due items into today's review queue."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from .models import ItemStatus, ReviewableItem, clamp_count, ensure_aware
from .policy import DEFAULT_POLICY, SchedulingPolicy
from .retention import FULL_RETENTION, estimate_retention
from .store import ItemStore


LOGGER = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def overdue_days(item: ReviewableItem, now: datetime) -> int:
    """Whole days ``item`` is past its review date, or 0 when not overdue."""
    if item.next_review_date is None:
        return 0
    return max(0, (now.date() - item.next_review_date).days)


def is_due(item: ReviewableItem, now: datetime) -> bool:
    if ItemStatus(item.status) is not ItemStatus.ACTIVE:
        return False
    return item.next_review_date is None or item.next_review_date <= now.date()


def priority_score(
    item: ReviewableItem,
    now: datetime,
    policy: SchedulingPolicy = DEFAULT_POLICY,
) -> float:
    """Return how urgently ``item`` should be reviewed; higher comes first.

    Overdue days dominate, frequent lapses pull an item forward, and the
    estimated forgetting only nudges otherwise similar items apart.
    """
    forgotten = FULL_RETENTION - estimate_retention(item, now)
    return (
        policy.overdue_weight * overdue_days(item, now)
        + policy.lapse_weight * clamp_count(item.lapse_count)
        + policy.retention_weight * forgotten
    )


def _sort_key(
    item: ReviewableItem, now: datetime, policy: SchedulingPolicy
) -> Tuple[float, datetime, str]:
    created_at = ensure_aware(item.created_at) or _OLDEST
    return (-priority_score(item, now, policy), created_at, str(item.id))


def rank_items(
    items: Iterable[ReviewableItem],
    now: datetime,
    policy: SchedulingPolicy = DEFAULT_POLICY,
) -> List[ReviewableItem]:
    """Order items by priority, oldest first among equals, then by id."""
    now = ensure_aware(now)
    return sorted(items, key=lambda item: _sort_key(item, now, policy))


def build_queue(
    due_items: Iterable[ReviewableItem],
    now: datetime,
    policy: SchedulingPolicy = DEFAULT_POLICY,
) -> List[ReviewableItem]:
    """Return the active, due items of ``due_items`` in review order."""
    now = ensure_aware(now)
    candidates = list(due_items)
    due = [item for item in candidates if is_due(item, now)]
    if len(due) != len(candidates):
        LOGGER.debug("Dropped %d items that are not due from the queue.", len(candidates) - len(due))
    return rank_items(due, now, policy)


async def build_review_queue(
    store: ItemStore,
    now: Optional[datetime] = None,
    *,
    limit: Optional[int] = None,
    policy: SchedulingPolicy = DEFAULT_POLICY,
) -> List[ReviewableItem]:
    """Fetch due items from ``store`` and return them in review order."""
    if now is None:
        now = datetime.now(timezone.utc)

    queue = build_queue(await store.fetch_due_items(now), now, policy)
    if limit is not None:
        queue = queue[: max(0, limit)]
    return queue
