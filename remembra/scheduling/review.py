"""Turn a completed review into the next snapshot of an item."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from .lifecycle import apply_transition, transition
from .models import (
    EvaluationResult,
    ItemStatus,
    Rating,
    ReviewableItem,
    ReviewLogEntry,
    TransitionResult,
    ensure_aware,
)
from .policy import DEFAULT_POLICY, SchedulingPolicy
from .srs import evaluate, is_leech


@dataclass(frozen=True, slots=True)
class ReviewOutcome:
    """Result of applying a single review to an item."""

    item: ReviewableItem
    evaluation: EvaluationResult
    transition: TransitionResult
    reactivated: bool
    policy: SchedulingPolicy = DEFAULT_POLICY

    @property
    def graduated(self) -> bool:
        return self.item.status is ItemStatus.COMPLETED

    @property
    def is_leech(self) -> bool:
        return is_leech(self.evaluation.lapse_count, self.policy)


def apply_review(
    item: ReviewableItem,
    rating: Any,
    now: datetime,
    *,
    time_spent_seconds: int = 0,
    policy: SchedulingPolicy = DEFAULT_POLICY,
) -> ReviewOutcome:
    """Evaluate a review, update the lifecycle and append it to the history."""
    rating = Rating.parse(rating)
    now = ensure_aware(now)
    item = item.normalized()

    evaluation = evaluate(item, rating, now, policy)
    lifecycle = transition(item, now, evaluation, policy)

    entry = ReviewLogEntry(
        date=now,
        performance=rating,
        time_spent_seconds=max(0, int(time_spent_seconds)),
        interval_after=evaluation.interval,
        easiness_after=evaluation.easiness_factor,
    )
    updated = replace(
        item,
        easiness_factor=evaluation.easiness_factor,
        interval=evaluation.interval,
        repetition=evaluation.repetition,
        lapse_count=evaluation.lapse_count,
        next_review_date=evaluation.next_review_date,
        last_reviewed_at=now,
        review_history=tuple(item.review_history) + (entry,),
    )
    return ReviewOutcome(
        item=apply_transition(updated, lifecycle),
        evaluation=evaluation,
        transition=lifecycle,
        reactivated=item.status is not ItemStatus.ACTIVE,
        policy=policy,
    )
