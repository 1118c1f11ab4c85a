"""Read-only presentation helpers built on top of the scheduling state."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from .models import ItemStatus, ReviewableItem
from .policy import DEFAULT_POLICY, SchedulingPolicy


class ReviewState(str, Enum):
    UPCOMING = "upcoming"
    DUE = "due"
    OVERDUE = "overdue"
    FINISHED = "finished"


def review_state(item: ReviewableItem, now: datetime) -> ReviewState:
    """Classify ``item`` relative to today for calendar and badge rendering."""
    if ItemStatus(item.status) is not ItemStatus.ACTIVE:
        return ReviewState.FINISHED
    if item.next_review_date is None:
        return ReviewState.DUE

    today = now.date()
    if item.next_review_date < today:
        return ReviewState.OVERDUE
    if item.next_review_date == today:
        return ReviewState.DUE
    return ReviewState.UPCOMING


def format_interval(days: int) -> str:
    """Render a day count compactly, e.g. ``3d``, ``2w``, ``4mo``, ``1.5y``."""
    if days <= 0:
        return "Now"
    if days < 7:
        return f"{days}d"
    if days < 30:
        return f"{round(days / 7)}w"
    if days < 365:
        return f"{round(days / 30)}mo"
    return f"{days / 365:.1f}y"


def stage_label(stage: int, policy: SchedulingPolicy = DEFAULT_POLICY) -> str:
    """Label a legacy stage by the day offset it schedules."""
    table = policy.legacy_stage_intervals
    if stage >= len(table):
        return "Completed"
    return f"Day {table[max(0, stage)]}"
