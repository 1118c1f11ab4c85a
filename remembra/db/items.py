"""SQLAlchemy-backed store for memory items and their review history."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from remembra.scheduling import (
    DEFAULT_POLICY,
    ConcurrentModificationError,
    ItemNotFoundError,
    ItemStatus,
    Rating,
    ReviewableItem,
    ReviewLogEntry,
    ReviewOutcome,
    SchedulingPolicy,
    SchedulingScheme,
    SweepResult,
    apply_review,
)
from remembra.scheduling.models import ensure_aware

from . import MemoryItem, ReviewHistoryEntry


LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3


def to_snapshot(record: MemoryItem) -> ReviewableItem:
    """Convert a loaded ORM record into an engine snapshot."""
    history = tuple(
        ReviewLogEntry(
            date=ensure_aware(entry.reviewed_at),
            performance=Rating(entry.performance),
            time_spent_seconds=entry.time_spent_seconds,
            interval_after=entry.interval_after,
            easiness_after=entry.easiness_after,
        )
        for entry in record.history
    )
    return ReviewableItem(
        id=record.id,
        easiness_factor=record.easiness_factor,
        interval=record.interval,
        repetition=record.repetition,
        lapse_count=record.lapse_count,
        status=ItemStatus(record.status),
        next_review_date=record.next_review_date,
        last_reviewed_at=ensure_aware(record.last_reviewed_at),
        completed_at=ensure_aware(record.completed_at),
        archive_at=record.archive_at,
        delete_at=record.delete_at,
        review_history=history,
        scheduling_scheme=SchedulingScheme(record.scheduling_scheme),
        created_at=ensure_aware(record.created_at),
        version=record.version,
    )


def _convert_rows(records: Iterable[MemoryItem]) -> List[ReviewableItem]:
    snapshots: List[ReviewableItem] = []
    for record in records:
        try:
            snapshots.append(to_snapshot(record))
        except ValueError as exc:
            LOGGER.warning("Skipping unreadable memory item %s: %s", record.id, exc)
    return snapshots


def _copy_snapshot(record: MemoryItem, snapshot: ReviewableItem, now: datetime) -> None:
    stored_entries = len(record.history)
    if len(snapshot.review_history) < stored_entries:
        raise ConcurrentModificationError(
            f"Snapshot of item {snapshot.id!r} is missing stored review history."
        )

    record.easiness_factor = snapshot.easiness_factor
    record.interval = snapshot.interval
    record.repetition = snapshot.repetition
    record.lapse_count = snapshot.lapse_count
    record.status = ItemStatus(snapshot.status).value
    record.next_review_date = snapshot.next_review_date
    record.last_reviewed_at = snapshot.last_reviewed_at
    record.completed_at = snapshot.completed_at
    record.archive_at = snapshot.archive_at
    record.delete_at = snapshot.delete_at
    record.updated_at = now

    for entry in snapshot.review_history[stored_entries:]:
        record.history.append(
            ReviewHistoryEntry(
                reviewed_at=entry.date,
                performance=Rating(entry.performance).value,
                time_spent_seconds=entry.time_spent_seconds,
                interval_after=entry.interval_after,
                easiness_after=entry.easiness_after,
            )
        )


class SqlItemStore:
    """Item store that applies every snapshot with optimistic concurrency.

    Each row carries a ``version`` counter. A snapshot is only written when
    its version still matches the row, so a review and a concurrent sweep on
    the same item cannot interleave; the loser is rejected and may retry
    against the latest state.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        policy: SchedulingPolicy = DEFAULT_POLICY,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        self._session_factory = session_factory
        self._policy = policy
        self._max_retries = max(1, max_retries)

    async def create_item(
        self,
        title: str,
        *,
        user_id: Optional[str] = None,
        scheme: SchedulingScheme = SchedulingScheme.ADAPTIVE,
        now: Optional[datetime] = None,
    ) -> ReviewableItem:
        """Persist a new, never-reviewed item that is due immediately."""
        if now is None:
            now = datetime.now(timezone.utc)

        blank = ReviewableItem.new(None, now, scheme)
        record = MemoryItem(
            user_id=user_id,
            title=title.strip(),
            scheduling_scheme=SchedulingScheme(scheme).value,
            easiness_factor=blank.easiness_factor,
            interval=blank.interval,
            repetition=blank.repetition,
            lapse_count=blank.lapse_count,
            status=ItemStatus.ACTIVE.value,
            next_review_date=blank.next_review_date,
            created_at=now,
            updated_at=now,
            history=[],
        )
        async with self._session_factory() as session:
            async with session.begin():
                session.add(record)
                await session.flush()
                return to_snapshot(record)

    async def get_item(self, item_id: Any) -> ReviewableItem:
        """Return the current snapshot of ``item_id`` or raise ``ItemNotFoundError``."""
        async with self._session_factory() as session:
            record = await self._load(session, item_id)
            return to_snapshot(record)

    async def fetch_due_items(
        self,
        now: datetime,
        user_id: Optional[str] = None,
    ) -> List[ReviewableItem]:
        """Return active items due on or before ``now``."""
        stmt = (
            select(MemoryItem)
            .options(selectinload(MemoryItem.history))
            .where(
                MemoryItem.status == ItemStatus.ACTIVE.value,
                MemoryItem.next_review_date <= now.date(),
            )
            .order_by(MemoryItem.next_review_date, MemoryItem.id)
        )
        if user_id is not None:
            stmt = stmt.where(MemoryItem.user_id == user_id)

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return _convert_rows(result.scalars().all())

    async def fetch_all_items(self) -> List[ReviewableItem]:
        """Return every readable item; rows with unknown enum values are logged and skipped."""
        stmt = select(MemoryItem).options(selectinload(MemoryItem.history)).order_by(MemoryItem.id)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return _convert_rows(result.scalars().all())

    async def save_snapshot(
        self,
        snapshot: ReviewableItem,
        now: Optional[datetime] = None,
    ) -> ReviewableItem:
        """Write ``snapshot`` if it was derived from the row's current version."""
        if now is None:
            now = datetime.now(timezone.utc)

        async with self._session_factory() as session:
            try:
                async with session.begin():
                    record = await self._load(session, snapshot.id)
                    if record.version != snapshot.version:
                        raise ConcurrentModificationError(
                            f"Item {snapshot.id!r} changed since version {snapshot.version} "
                            f"(now {record.version})."
                        )
                    _copy_snapshot(record, snapshot, now)
                    await session.flush()
                    return to_snapshot(record)
            except StaleDataError as exc:
                raise ConcurrentModificationError(
                    f"Item {snapshot.id!r} was modified concurrently."
                ) from exc

    async def record_review(
        self,
        item_id: Any,
        rating: Any,
        *,
        now: Optional[datetime] = None,
        time_spent_seconds: int = 0,
    ) -> ReviewOutcome:
        """Apply a review to the stored item, retrying on concurrent updates."""
        rating = Rating.parse(rating)
        if now is None:
            now = datetime.now(timezone.utc)

        for attempt in range(1, self._max_retries + 1):
            snapshot = await self.get_item(item_id)
            outcome = apply_review(
                snapshot,
                rating,
                now,
                time_spent_seconds=time_spent_seconds,
                policy=self._policy,
            )
            try:
                saved = await self.save_snapshot(outcome.item, now)
            except ConcurrentModificationError:
                LOGGER.warning(
                    "Review of item %s lost a concurrent update (attempt %d/%d).",
                    item_id,
                    attempt,
                    self._max_retries,
                )
                continue

            if outcome.graduated:
                LOGGER.info("Item %s graduated; archive on %s.", item_id, saved.archive_at)
            elif outcome.reactivated:
                LOGGER.info("Item %s reactivated by a new review.", item_id)
            if outcome.is_leech:
                LOGGER.info("Item %s is a leech after %d lapses.", item_id, saved.lapse_count)
            return replace(outcome, item=saved)

        raise ConcurrentModificationError(
            f"Could not record review for item {item_id!r} after {self._max_retries} attempts."
        )

    async def apply_sweep(self, result: SweepResult, now: datetime) -> None:
        """Archive and delete swept items, re-checking each row's state."""
        today = now.date()
        async with self._session_factory() as session:
            async with session.begin():
                archived = 0
                if result.to_archive:
                    archive_stmt = (
                        update(MemoryItem)
                        .where(
                            MemoryItem.id.in_(result.to_archive),
                            MemoryItem.status == ItemStatus.COMPLETED.value,
                            MemoryItem.archive_at <= today,
                        )
                        .values(
                            status=ItemStatus.ARCHIVED.value,
                            version=MemoryItem.version + 1,
                            updated_at=now,
                        )
                        .execution_options(synchronize_session=False)
                    )
                    archived = (await session.execute(archive_stmt)).rowcount

                deleted: List[int] = []
                if result.to_delete:
                    deletable = await session.execute(
                        select(MemoryItem.id).where(
                            MemoryItem.id.in_(result.to_delete),
                            MemoryItem.status.in_(
                                (ItemStatus.COMPLETED.value, ItemStatus.ARCHIVED.value)
                            ),
                            MemoryItem.delete_at <= today,
                        )
                    )
                    deleted = list(deletable.scalars().all())
                if deleted:
                    await session.execute(
                        delete(ReviewHistoryEntry).where(ReviewHistoryEntry.memory_item_id.in_(deleted))
                    )
                    await session.execute(delete(MemoryItem).where(MemoryItem.id.in_(deleted)))

        skipped = len(result.to_archive) + len(result.to_delete) - archived - len(deleted)
        LOGGER.info(
            "Applied lifecycle sweep: %d archived, %d deleted, %d skipped as changed.",
            archived,
            len(deleted),
            skipped,
        )

    @staticmethod
    async def _load(session: AsyncSession, item_id: Any) -> MemoryItem:
        record = await session.get(
            MemoryItem,
            item_id,
            options=[selectinload(MemoryItem.history)],
        )
        if record is None:
            raise ItemNotFoundError(f"No memory item with id {item_id!r}.")
        return record
