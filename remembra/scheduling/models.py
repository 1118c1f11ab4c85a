"""Value types shared by the scheduling engine and the item store."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .errors import InvalidInputError
from .policy import (
    DEFAULT_EASINESS_FACTOR,
    DEFAULT_POLICY,
    MIN_EASINESS_FACTOR,
    PASS_QUALITY,
    QUALITY_AGAIN,
    QUALITY_EASY,
    QUALITY_GOOD,
    QUALITY_HARD,
    SchedulingPolicy,
)


class Rating(str, Enum):
    """How well the learner recalled an item."""

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @classmethod
    def parse(cls, value: Any) -> Rating:
        """Return the rating named by ``value`` or raise ``InvalidInputError``."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidInputError(f"Unknown review rating: {value!r}.")

    @property
    def quality(self) -> int:
        return QUALITY_BY_RATING[self]


QUALITY_BY_RATING: Dict[Rating, int] = {
    Rating.AGAIN: QUALITY_AGAIN,
    Rating.HARD: QUALITY_HARD,
    Rating.GOOD: QUALITY_GOOD,
    Rating.EASY: QUALITY_EASY,
}


class SchedulingScheme(str, Enum):
    LEGACY = "legacy"
    ADAPTIVE = "adaptive"


class ItemStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


def _lookup(kind: Any, value: Any, item_id: Any) -> Any:
    try:
        return kind(value)
    except ValueError as exc:
        raise InvalidInputError(
            f"Item {item_id!r} has unknown {kind.__name__} value {value!r}."
        ) from exc


def ensure_aware(moment: Optional[datetime]) -> Optional[datetime]:
    """Treat naive timestamps as UTC so comparisons never mix tz styles."""
    if moment is None or moment.tzinfo is not None:
        return moment
    return moment.replace(tzinfo=timezone.utc)


def clamp_easiness(value: Optional[float]) -> float:
    """Return a usable easiness factor, never NaN and never below the floor."""
    if value is None:
        return DEFAULT_EASINESS_FACTOR
    value = float(value)
    if not math.isfinite(value) or value < MIN_EASINESS_FACTOR:
        return MIN_EASINESS_FACTOR
    return value


def clamp_count(value: Optional[int]) -> int:
    if value is None:
        return 0
    return max(0, int(value))


@dataclass(frozen=True, slots=True)
class ReviewLogEntry:
    """One immutable line of an item's review history."""

    date: datetime
    performance: Rating
    time_spent_seconds: int
    interval_after: int
    easiness_after: float


@dataclass(frozen=True, slots=True)
class ReviewableItem:
    """Snapshot of everything the engine needs to schedule a single item."""

    id: Any
    easiness_factor: Optional[float] = DEFAULT_EASINESS_FACTOR
    interval: Optional[int] = 0
    repetition: Optional[int] = 0
    lapse_count: Optional[int] = 0
    status: ItemStatus = ItemStatus.ACTIVE
    next_review_date: Optional[date] = None
    last_reviewed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    archive_at: Optional[date] = None
    delete_at: Optional[date] = None
    review_history: Tuple[ReviewLogEntry, ...] = ()
    scheduling_scheme: SchedulingScheme = SchedulingScheme.ADAPTIVE
    created_at: Optional[datetime] = None
    version: int = 1

    @classmethod
    def new(
        cls,
        id: Any,
        now: datetime,
        scheme: SchedulingScheme = SchedulingScheme.ADAPTIVE,
    ) -> ReviewableItem:
        """Build a never-reviewed item that is due on its creation day."""
        return cls(
            id=id,
            next_review_date=now.date(),
            scheduling_scheme=scheme,
            created_at=ensure_aware(now),
        )

    def is_leech(self, policy: SchedulingPolicy = DEFAULT_POLICY) -> bool:
        """Whether the item keeps being forgotten and needs special attention."""
        return clamp_count(self.lapse_count) >= policy.leech_lapse_threshold

    @property
    def has_lifecycle_dates(self) -> bool:
        return any(
            value is not None for value in (self.completed_at, self.archive_at, self.delete_at)
        )

    def normalized(self) -> ReviewableItem:
        """Return a copy with legacy gaps filled and out-of-range values clamped."""
        return replace(
            self,
            easiness_factor=clamp_easiness(self.easiness_factor),
            interval=clamp_count(self.interval),
            repetition=clamp_count(self.repetition),
            lapse_count=clamp_count(self.lapse_count),
            status=_lookup(ItemStatus, self.status, self.id),
            scheduling_scheme=_lookup(SchedulingScheme, self.scheduling_scheme, self.id),
            last_reviewed_at=ensure_aware(self.last_reviewed_at),
            completed_at=ensure_aware(self.completed_at),
            created_at=ensure_aware(self.created_at),
        )


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    """Scheduling state produced by one evaluator call."""

    easiness_factor: float
    interval: int
    repetition: int
    lapse_count: int
    next_review_date: date
    is_graduated: bool
    quality: int

    @property
    def is_lapse(self) -> bool:
        return self.quality < PASS_QUALITY


@dataclass(frozen=True, slots=True)
class TransitionResult:
    """Lifecycle fields an item should hold after a transition.

    ``delete`` is an instruction for the store to remove the item; it is
    never persisted as a status.
    """

    status: ItemStatus
    completed_at: Optional[datetime] = None
    archive_at: Optional[date] = None
    delete_at: Optional[date] = None
    delete: bool = False


@dataclass(slots=True)
class SweepResult:
    """Ids the store should act on after a lifecycle sweep."""

    to_archive: List[Any] = field(default_factory=list)
    to_delete: List[Any] = field(default_factory=list)
    to_reactivate: List[Any] = field(default_factory=list)
    errors: Dict[Any, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.to_archive or self.to_delete or self.to_reactivate)
