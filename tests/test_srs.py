from __future__ import annotations

import math
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone

import pytest

from remembra.scheduling import (
    InvalidInputError,
    Rating,
    ReviewableItem,
    SchedulingScheme,
    evaluate,
    is_leech,
    predict_intervals,
)
from remembra.scheduling.srs import (
    calculate_adaptive_schedule,
    calculate_legacy_schedule,
    next_easiness,
)


NOW = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)


def _adaptive(**overrides) -> ReviewableItem:
    return replace(ReviewableItem.new(1, NOW), **overrides)


def _legacy(**overrides) -> ReviewableItem:
    return replace(ReviewableItem.new(2, NOW, SchedulingScheme.LEGACY), **overrides)


def test_first_good_review_schedules_next_day() -> None:
    result = evaluate(_adaptive(), "good", NOW)

    assert result.interval == 1
    assert result.repetition == 1
    assert result.next_review_date == date(2026, 3, 2)
    assert result.easiness_factor == 2.5
    assert result.is_graduated is False


def test_second_good_review_jumps_to_six_days() -> None:
    first = evaluate(_adaptive(), Rating.GOOD, NOW)
    item = _adaptive(
        easiness_factor=first.easiness_factor,
        interval=first.interval,
        repetition=first.repetition,
    )

    second = evaluate(item, Rating.GOOD, NOW + timedelta(days=1))

    assert second.interval == 6
    assert second.repetition == 2
    assert second.next_review_date == date(2026, 3, 8)


def test_third_good_review_multiplies_interval_by_easiness() -> None:
    easiness = next_easiness(next_easiness(2.5, 4), 4)
    item = _adaptive(easiness_factor=easiness, interval=6, repetition=2)

    result = evaluate(item, Rating.GOOD, NOW + timedelta(days=7))

    assert result.repetition == 3
    assert result.interval == round(6 * result.easiness_factor)
    assert result.interval == 15


def test_easy_review_on_fifth_repetition_graduates() -> None:
    item = _adaptive(easiness_factor=2.5, interval=20, repetition=4)

    result = evaluate(item, Rating.EASY, NOW)

    assert result.repetition == 5
    assert result.easiness_factor == pytest.approx(2.6)
    assert result.interval == 52
    assert result.is_graduated is True


def test_long_interval_graduates_before_five_repetitions() -> None:
    item = _adaptive(easiness_factor=2.5, interval=10, repetition=2)

    result = evaluate(item, Rating.GOOD, NOW)

    assert result.repetition == 3
    assert result.interval == 25
    assert result.is_graduated is True


def test_fourth_lapse_marks_item_as_leech() -> None:
    item = _adaptive(lapse_count=3, repetition=2, interval=6)

    result = evaluate(item, Rating.AGAIN, NOW)

    assert result.lapse_count == 4
    assert is_leech(result.lapse_count) is True
    assert is_leech(3) is False


@pytest.mark.parametrize("repetition,interval", [(0, 0), (1, 1), (3, 15), (7, 120)])
def test_again_always_resets_progress(repetition: int, interval: int) -> None:
    item = _adaptive(repetition=repetition, interval=interval, easiness_factor=2.1)

    result = evaluate(item, Rating.AGAIN, NOW)

    assert result.repetition == 0
    assert result.interval == 1
    assert result.next_review_date == NOW.date() + timedelta(days=1)
    assert result.is_lapse is True


def test_easiness_updates_follow_quality() -> None:
    assert next_easiness(2.5, 5) == pytest.approx(2.6)
    assert next_easiness(2.5, 4) == pytest.approx(2.5)
    assert next_easiness(2.5, 3) == pytest.approx(2.36)
    assert next_easiness(2.5, 2) == pytest.approx(2.18)
    assert next_easiness(1.35, 2) == 1.3


def test_easiness_never_drops_below_floor() -> None:
    item = _adaptive(easiness_factor=1.4)
    for _ in range(10):
        result = evaluate(item, Rating.AGAIN, NOW)
        assert result.easiness_factor >= 1.3
        item = replace(
            item,
            easiness_factor=result.easiness_factor,
            interval=result.interval,
            repetition=result.repetition,
            lapse_count=result.lapse_count,
        )
    assert item.easiness_factor == 1.3


def test_evaluation_is_deterministic() -> None:
    item = _adaptive(easiness_factor=2.17, interval=9, repetition=3, lapse_count=1)

    assert evaluate(item, Rating.HARD, NOW) == evaluate(item, Rating.HARD, NOW)


@pytest.mark.parametrize("rating", ["meh", "", 3, None, "AGAIN!"])
def test_invalid_rating_is_rejected(rating) -> None:
    with pytest.raises(InvalidInputError):
        evaluate(_adaptive(), rating, NOW)


def test_rating_parsing_is_case_insensitive() -> None:
    assert Rating.parse(" Easy ") is Rating.EASY
    assert Rating.parse(Rating.HARD) is Rating.HARD


def test_missing_adaptive_fields_use_fallbacks() -> None:
    item = ReviewableItem(
        id=3,
        easiness_factor=None,
        interval=None,
        repetition=None,
        lapse_count=None,
    )

    result = evaluate(item, Rating.GOOD, NOW)

    assert result.easiness_factor == 2.5
    assert result.interval == 1
    assert result.repetition == 1
    assert result.lapse_count == 0


def test_malformed_values_are_clamped() -> None:
    item = _adaptive(easiness_factor=float("nan"), interval=-4, repetition=2, lapse_count=-1)

    result = evaluate(item, Rating.GOOD, NOW)

    assert math.isfinite(result.easiness_factor)
    assert result.easiness_factor == 1.3
    assert result.interval >= 0
    assert result.lapse_count == 0


def test_legacy_scheme_walks_the_stage_table() -> None:
    first = evaluate(_legacy(), Rating.GOOD, NOW)
    assert (first.repetition, first.interval) == (1, 4)

    jumped = evaluate(_legacy(repetition=1, interval=4), Rating.EASY, NOW)
    assert (jumped.repetition, jumped.interval) == (3, 30)
    assert jumped.is_graduated is False

    final = evaluate(_legacy(repetition=3, interval=30), Rating.EASY, NOW)
    assert (final.repetition, final.interval) == (4, 90)
    assert final.is_graduated is True
    assert final.next_review_date == NOW.date() + timedelta(days=90)


def test_legacy_scheme_treats_hard_like_good() -> None:
    item = _legacy(repetition=2, interval=7)

    hard = evaluate(item, Rating.HARD, NOW)
    good = evaluate(item, Rating.GOOD, NOW)

    assert (hard.repetition, hard.interval, hard.easiness_factor) == (
        good.repetition,
        good.interval,
        good.easiness_factor,
    )


def test_legacy_again_resets_stage_and_counts_lapse() -> None:
    result = evaluate(_legacy(repetition=3, interval=30, lapse_count=1), Rating.AGAIN, NOW)

    assert result.repetition == 0
    assert result.interval == 1
    assert result.lapse_count == 2


def test_legacy_scheme_keeps_easiness_untouched() -> None:
    result = calculate_legacy_schedule(
        rating="easy",
        easiness_factor=None,
        interval=None,
        repetition=None,
        lapse_count=None,
        now=NOW,
    )

    assert result.easiness_factor == 2.5
    assert result.repetition == 2


def test_legacy_stage_beyond_table_is_clamped() -> None:
    result = evaluate(_legacy(repetition=9, interval=90), Rating.GOOD, NOW)

    assert result.repetition == 4
    assert result.interval == 90


def test_dispatch_follows_scheduling_scheme() -> None:
    adaptive = evaluate(_adaptive(repetition=1, interval=1), Rating.GOOD, NOW)
    legacy = evaluate(_legacy(repetition=1, interval=1), Rating.GOOD, NOW)

    assert adaptive.interval == 6
    assert legacy.interval == 7


def test_unknown_scheme_is_rejected() -> None:
    with pytest.raises(InvalidInputError):
        evaluate(_adaptive(scheduling_scheme="fsrs"), Rating.GOOD, NOW)


def test_predicted_intervals_cover_every_rating() -> None:
    item = _adaptive(easiness_factor=2.5, interval=6, repetition=2)

    predictions = predict_intervals(item, NOW)

    assert {rating: result.interval for rating, result in predictions.items()} == {
        Rating.AGAIN: 1,
        Rating.HARD: 14,
        Rating.GOOD: 15,
        Rating.EASY: 16,
    }


def test_adaptive_calculation_accepts_keyword_state() -> None:
    result = calculate_adaptive_schedule(
        rating=Rating.HARD,
        easiness_factor=2.5,
        interval=6,
        repetition=2,
        lapse_count=0,
        now=NOW,
    )

    assert result.easiness_factor == pytest.approx(2.36)
    assert result.interval == 14
    assert result.quality == 3
