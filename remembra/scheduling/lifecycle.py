"""Lifecycle state machine: active -> completed -> archived -> deleted."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from .errors import LifecyclePreconditionError, SchedulingError
from .models import (
    EvaluationResult,
    ItemStatus,
    ReviewableItem,
    SweepResult,
    TransitionResult,
    ensure_aware,
)
from .policy import DEFAULT_POLICY, SchedulingPolicy
from .store import ItemStore


LOGGER = logging.getLogger(__name__)


def check_lifecycle_consistency(item: ReviewableItem) -> None:
    """Raise ``LifecyclePreconditionError`` when lifecycle fields contradict the status."""
    status = ItemStatus(item.status)
    if status is ItemStatus.ACTIVE:
        if item.has_lifecycle_dates:
            raise LifecyclePreconditionError(
                f"Active item {item.id!r} still carries completion dates."
            )
        return

    if item.completed_at is None or item.archive_at is None or item.delete_at is None:
        raise LifecyclePreconditionError(
            f"Item {item.id!r} is {status.value} but is missing completion dates."
        )
    if item.archive_at > item.delete_at:
        raise LifecyclePreconditionError(
            f"Item {item.id!r} is scheduled for deletion before archival."
        )


def _graduate(now: datetime, policy: SchedulingPolicy) -> TransitionResult:
    archive_at = now.date() + timedelta(days=policy.archive_grace_days)
    return TransitionResult(
        status=ItemStatus.COMPLETED,
        completed_at=ensure_aware(now),
        archive_at=archive_at,
        delete_at=archive_at + timedelta(days=policy.delete_grace_days),
    )


def _unchanged(item: ReviewableItem, *, delete: bool = False) -> TransitionResult:
    return TransitionResult(
        status=ItemStatus(item.status),
        completed_at=item.completed_at,
        archive_at=item.archive_at,
        delete_at=item.delete_at,
        delete=delete,
    )


def transition(
    item: ReviewableItem,
    now: datetime,
    evaluation: Optional[EvaluationResult] = None,
    policy: SchedulingPolicy = DEFAULT_POLICY,
) -> TransitionResult:
    """Return the lifecycle fields ``item`` should hold at ``now``.

    With ``evaluation`` the call reacts to a review: a graduated active item
    becomes completed, and a completed or archived item is reactivated. The
    reactivating review does not graduate the item again; the next successful
    review does. Without ``evaluation`` only the time-driven sweep edges
    apply. A completed item already past its deletion date is deleted
    directly so a single applied sweep leaves nothing behind.
    """
    check_lifecycle_consistency(item)
    status = ItemStatus(item.status)

    if evaluation is not None:
        if status is not ItemStatus.ACTIVE:
            return TransitionResult(status=ItemStatus.ACTIVE)
        if evaluation.is_graduated:
            return _graduate(now, policy)
        return TransitionResult(status=ItemStatus.ACTIVE)

    if status is ItemStatus.ACTIVE:
        return _unchanged(item)

    today = now.date()
    if today >= item.delete_at:
        return _unchanged(item, delete=True)
    if status is ItemStatus.COMPLETED and today >= item.archive_at:
        return replace(_unchanged(item), status=ItemStatus.ARCHIVED)
    return _unchanged(item)


def apply_transition(item: ReviewableItem, result: TransitionResult) -> ReviewableItem:
    """Copy the lifecycle fields of ``result`` onto a new snapshot of ``item``."""
    return replace(
        item,
        status=result.status,
        completed_at=result.completed_at,
        archive_at=result.archive_at,
        delete_at=result.delete_at,
    )


def sweep(
    items: Iterable[ReviewableItem],
    now: datetime,
    policy: SchedulingPolicy = DEFAULT_POLICY,
) -> SweepResult:
    """Age completed items into archived or deleted state.

    Reactivation only happens through a review, so ``to_reactivate`` is
    always empty here. A broken item is recorded in ``errors`` and the sweep
    moves on to the rest of the collection.
    """
    result = SweepResult()
    for item in items:
        try:
            outcome = transition(item, now, policy=policy)
        except SchedulingError as exc:
            LOGGER.warning("Skipping item %s during lifecycle sweep: %s", item.id, exc)
            result.errors[item.id] = str(exc)
            continue
        except Exception as exc:
            LOGGER.exception("Unexpected failure sweeping item %s.", item.id)
            result.errors[item.id] = str(exc) or exc.__class__.__name__
            continue

        if outcome.delete:
            result.to_delete.append(item.id)
        elif outcome.status is ItemStatus.ARCHIVED and ItemStatus(item.status) is ItemStatus.COMPLETED:
            result.to_archive.append(item.id)

    if not result.is_empty or result.errors:
        LOGGER.info(
            "Lifecycle sweep: %d to archive, %d to delete, %d failed.",
            len(result.to_archive),
            len(result.to_delete),
            len(result.errors),
        )
    return result


def apply_sweep(items: Iterable[ReviewableItem], result: SweepResult) -> List[ReviewableItem]:
    """Return the collection a store would hold after applying ``result``."""
    to_archive = set(result.to_archive)
    to_delete = set(result.to_delete)
    remaining: List[ReviewableItem] = []
    for item in items:
        if item.id in to_delete:
            continue
        if item.id in to_archive:
            item = replace(item, status=ItemStatus.ARCHIVED)
        remaining.append(item)
    return remaining


async def run_lifecycle_sweep(
    store: ItemStore,
    now: Optional[datetime] = None,
    policy: SchedulingPolicy = DEFAULT_POLICY,
) -> SweepResult:
    """Sweep every item held by ``store`` and let the store apply the result."""
    if now is None:
        now = datetime.now(timezone.utc)

    items = await store.fetch_all_items()
    result = sweep(items, now, policy)
    if not result.is_empty:
        await store.apply_sweep(result, now)
    return result
