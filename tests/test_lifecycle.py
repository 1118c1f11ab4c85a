from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import List

import pytest

from remembra.scheduling import (
    ItemStatus,
    LifecyclePreconditionError,
    Rating,
    ReviewableItem,
    SchedulingPolicy,
    SweepResult,
    apply_sweep,
    evaluate,
    run_lifecycle_sweep,
    sweep,
    transition,
)


NOW = datetime(2026, 6, 15, 8, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


def _completed(
    item_id: object,
    *,
    archive_in: int,
    delete_in: int,
    status: ItemStatus = ItemStatus.COMPLETED,
) -> ReviewableItem:
    return ReviewableItem(
        id=item_id,
        repetition=5,
        interval=40,
        status=status,
        next_review_date=TODAY + timedelta(days=10),
        completed_at=NOW - timedelta(days=45),
        archive_at=TODAY + timedelta(days=archive_in),
        delete_at=TODAY + timedelta(days=delete_in),
    )


def test_graduated_review_completes_item() -> None:
    item = ReviewableItem(id=1, repetition=4, interval=20, next_review_date=TODAY)
    evaluation = evaluate(item, Rating.EASY, NOW)

    result = transition(item, NOW, evaluation)

    assert result.status is ItemStatus.COMPLETED
    assert result.completed_at == NOW
    assert result.archive_at == date(2026, 7, 15)
    assert result.delete_at == date(2026, 9, 13)
    assert result.delete is False


def test_grace_periods_come_from_policy() -> None:
    item = ReviewableItem(id=1, repetition=4, interval=20, next_review_date=TODAY)
    policy = SchedulingPolicy(archive_grace_days=7, delete_grace_days=3)
    evaluation = evaluate(item, Rating.EASY, NOW, policy)

    result = transition(item, NOW, evaluation, policy)

    assert result.archive_at == TODAY + timedelta(days=7)
    assert result.delete_at == TODAY + timedelta(days=10)


def test_policy_rejects_negative_grace_periods() -> None:
    with pytest.raises(ValueError):
        SchedulingPolicy(archive_grace_days=-1)


def test_ungraduated_review_keeps_item_active() -> None:
    item = ReviewableItem(id=1, repetition=1, interval=1, next_review_date=TODAY)
    evaluation = evaluate(item, Rating.GOOD, NOW)

    result = transition(item, NOW, evaluation)

    assert result.status is ItemStatus.ACTIVE
    assert (result.completed_at, result.archive_at, result.delete_at) == (None, None, None)


@pytest.mark.parametrize("status", [ItemStatus.COMPLETED, ItemStatus.ARCHIVED])
def test_review_reactivates_finished_item(status: ItemStatus) -> None:
    item = _completed(7, archive_in=-5, delete_in=30, status=status)
    evaluation = evaluate(item, Rating.GOOD, NOW)
    assert evaluation.is_graduated is True

    result = transition(item, NOW, evaluation)

    assert result.status is ItemStatus.ACTIVE
    assert (result.completed_at, result.archive_at, result.delete_at) == (None, None, None)


def test_completed_item_past_archive_date_is_archived() -> None:
    item = _completed(6, archive_in=-10, delete_in=50)

    assert transition(item, NOW).status is ItemStatus.ARCHIVED
    assert sweep([item], NOW).to_archive == [6]


def test_archived_item_past_delete_date_is_deleted() -> None:
    item = _completed(8, archive_in=-70, delete_in=-10, status=ItemStatus.ARCHIVED)

    outcome = transition(item, NOW)

    assert outcome.delete is True
    assert outcome.status is ItemStatus.ARCHIVED
    assert sweep([item], NOW).to_delete == [8]


def test_completed_item_past_delete_date_is_deleted_directly() -> None:
    item = _completed(9, archive_in=-70, delete_in=0)

    result = sweep([item], NOW)

    assert result.to_delete == [9]
    assert result.to_archive == []


def test_items_inside_grace_period_are_left_alone() -> None:
    items = [
        _completed(1, archive_in=1, delete_in=60),
        _completed(2, archive_in=-3, delete_in=5, status=ItemStatus.ARCHIVED),
        ReviewableItem(id=3, next_review_date=TODAY - timedelta(days=30)),
    ]

    result = sweep(items, NOW)

    assert result.is_empty
    assert result.errors == {}


def test_active_item_with_completion_dates_is_a_precondition_failure() -> None:
    item = ReviewableItem(id=4, archive_at=TODAY, next_review_date=TODAY)

    with pytest.raises(LifecyclePreconditionError):
        transition(item, NOW)


def test_completed_item_without_dates_is_a_precondition_failure() -> None:
    item = ReviewableItem(id=5, status=ItemStatus.COMPLETED, next_review_date=TODAY)

    with pytest.raises(LifecyclePreconditionError):
        transition(item, NOW, evaluate(item, Rating.GOOD, NOW))


def test_sweep_isolates_broken_items() -> None:
    broken = ReviewableItem(id="broken", status=ItemStatus.ARCHIVED, next_review_date=TODAY)
    items = [broken, _completed("ok", archive_in=-1, delete_in=59)]

    result = sweep(items, NOW)

    assert result.to_archive == ["ok"]
    assert list(result.errors) == ["broken"]


def test_sweep_lists_are_disjoint_and_never_reactivate() -> None:
    items = [
        _completed(1, archive_in=-1, delete_in=59),
        _completed(2, archive_in=-90, delete_in=-30, status=ItemStatus.ARCHIVED),
        _completed(3, archive_in=-90, delete_in=-30),
    ]

    result = sweep(items, NOW)

    assert result.to_archive == [1]
    assert sorted(result.to_delete) == [2, 3]
    assert result.to_reactivate == []
    assert not set(result.to_archive) & set(result.to_delete)


def test_sweep_is_idempotent_once_applied() -> None:
    items = [
        _completed(1, archive_in=-1, delete_in=59),
        _completed(2, archive_in=-90, delete_in=-30, status=ItemStatus.ARCHIVED),
        ReviewableItem(id=3, next_review_date=TODAY),
    ]

    first = sweep(items, NOW)
    remaining = apply_sweep(items, first)
    second = sweep(remaining, NOW)

    assert not first.is_empty
    assert second.is_empty
    assert [item.id for item in remaining] == [1, 3]
    assert remaining[0].status is ItemStatus.ARCHIVED


class _StubStore:
    def __init__(self, items: List[ReviewableItem]) -> None:
        self.items = items
        self.applied: List[SweepResult] = []

    async def fetch_due_items(self, now: datetime) -> List[ReviewableItem]:
        return []

    async def fetch_all_items(self) -> List[ReviewableItem]:
        return list(self.items)

    async def apply_sweep(self, result: SweepResult, now: datetime) -> None:
        self.applied.append(result)
        self.items = apply_sweep(self.items, result)


@pytest.mark.asyncio
async def test_run_lifecycle_sweep_hands_result_to_store() -> None:
    store = _StubStore([_completed(1, archive_in=-2, delete_in=58)])

    first = await run_lifecycle_sweep(store, NOW)
    second = await run_lifecycle_sweep(store, NOW)

    assert first.to_archive == [1]
    assert second.is_empty
    assert len(store.applied) == 1
    assert store.items[0].status is ItemStatus.ARCHIVED
