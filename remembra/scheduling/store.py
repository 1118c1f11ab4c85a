"""Interface the scheduling engine expects from an item store."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .models import ReviewableItem, SweepResult


class ItemStore(Protocol):
    """Persistence collaborator used by the queue builder and the lifecycle sweep."""

    async def fetch_due_items(self, now: datetime) -> Sequence[ReviewableItem]:
        """Return active items whose next review date is on or before ``now``."""

    async def fetch_all_items(self) -> Sequence[ReviewableItem]:
        """Return every item the store holds."""

    async def apply_sweep(self, result: SweepResult, now: datetime) -> None:
        """Archive and delete the items named by a sweep result."""
