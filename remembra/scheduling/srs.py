"""Spaced-repetition evaluators for recorded reviews."""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Any, Callable, Dict

from .errors import InvalidInputError
from .models import (
    EvaluationResult,
    Rating,
    ReviewableItem,
    SchedulingScheme,
    clamp_count,
    clamp_easiness,
)
from .policy import (
    DEFAULT_POLICY,
    EASINESS_PRECISION,
    FIRST_INTERVAL_DAYS,
    MIN_EASINESS_FACTOR,
    PASS_QUALITY,
    SECOND_INTERVAL_DAYS,
    SchedulingPolicy,
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def next_easiness(easiness_factor: float, quality: int) -> float:
    """Apply the SM-2 easiness update for a quality score on the 0-5 scale."""
    penalty = 5 - quality
    updated = easiness_factor + (0.1 - penalty * (0.08 + penalty * 0.02))
    return max(MIN_EASINESS_FACTOR, round(updated, EASINESS_PRECISION))


def is_graduated(repetition: int, interval: int, policy: SchedulingPolicy = DEFAULT_POLICY) -> bool:
    return (
        repetition >= policy.graduation_repetitions
        or interval >= policy.graduation_interval_days
    )


def is_leech(lapse_count: int, policy: SchedulingPolicy = DEFAULT_POLICY) -> bool:
    """Whether an item has lapsed often enough to be flagged in the UI."""
    return clamp_count(lapse_count) >= policy.leech_lapse_threshold


def calculate_adaptive_schedule(
    *,
    rating: Any,
    easiness_factor: float | None,
    interval: int | None,
    repetition: int | None,
    lapse_count: int | None,
    now: datetime,
    policy: SchedulingPolicy = DEFAULT_POLICY,
) -> EvaluationResult:
    """Return the next review schedule using the SM-2 algorithm."""
    rating = Rating.parse(rating)
    quality = rating.quality
    easiness_factor = next_easiness(clamp_easiness(easiness_factor), quality)
    interval = clamp_count(interval)
    repetition = clamp_count(repetition)
    lapse_count = clamp_count(lapse_count)

    if quality < PASS_QUALITY:
        repetition = 0
        interval = FIRST_INTERVAL_DAYS
        lapse_count += 1
    else:
        repetition += 1
        if repetition == 1:
            interval = FIRST_INTERVAL_DAYS
        elif repetition == 2:
            interval = SECOND_INTERVAL_DAYS
        else:
            interval = max(FIRST_INTERVAL_DAYS, _round_half_up(interval * easiness_factor))

    return EvaluationResult(
        easiness_factor=easiness_factor,
        interval=interval,
        repetition=repetition,
        lapse_count=lapse_count,
        next_review_date=now.date() + timedelta(days=interval),
        is_graduated=is_graduated(repetition, interval, policy),
        quality=quality,
    )


def calculate_legacy_schedule(
    *,
    rating: Any,
    easiness_factor: float | None,
    interval: int | None,
    repetition: int | None,
    lapse_count: int | None,
    now: datetime,
    policy: SchedulingPolicy = DEFAULT_POLICY,
) -> EvaluationResult:
    """Return the next review schedule from the fixed legacy stage table.

    The legacy scheme has no notion of easiness: ``hard`` and ``good`` both
    advance one stage and the easiness factor is carried through untouched.
    """
    rating = Rating.parse(rating)
    table = policy.legacy_stage_intervals
    last_stage = len(table) - 1
    stage = min(clamp_count(repetition), last_stage)
    lapse_count = clamp_count(lapse_count)

    if rating is Rating.AGAIN:
        stage = 0
        lapse_count += 1
    elif rating is Rating.EASY:
        stage = min(stage + 2, last_stage)
    else:
        stage = min(stage + 1, last_stage)

    interval = table[stage]
    return EvaluationResult(
        easiness_factor=clamp_easiness(easiness_factor),
        interval=interval,
        repetition=stage,
        lapse_count=lapse_count,
        next_review_date=now.date() + timedelta(days=interval),
        is_graduated=stage == last_stage,
        quality=rating.quality,
    )


_EVALUATORS: Dict[SchedulingScheme, Callable[..., EvaluationResult]] = {
    SchedulingScheme.ADAPTIVE: calculate_adaptive_schedule,
    SchedulingScheme.LEGACY: calculate_legacy_schedule,
}


def evaluate(
    item: ReviewableItem,
    rating: Any,
    now: datetime,
    policy: SchedulingPolicy = DEFAULT_POLICY,
) -> EvaluationResult:
    """Score a review of ``item`` with the evaluator matching its scheme."""
    try:
        evaluator = _EVALUATORS[SchedulingScheme(item.scheduling_scheme)]
    except ValueError as exc:
        raise InvalidInputError(
            f"Item {item.id!r} uses unknown scheduling scheme {item.scheduling_scheme!r}."
        ) from exc

    return evaluator(
        rating=rating,
        easiness_factor=item.easiness_factor,
        interval=item.interval,
        repetition=item.repetition,
        lapse_count=item.lapse_count,
        now=now,
        policy=policy,
    )


def predict_intervals(
    item: ReviewableItem,
    now: datetime,
    policy: SchedulingPolicy = DEFAULT_POLICY,
) -> Dict[Rating, EvaluationResult]:
    """Return the outcome each rating would have, for labelling rating buttons."""
    return {rating: evaluate(item, rating, now, policy) for rating in Rating}
