"""Review scheduling engine for Remembra items."""

from .errors import (
    ConcurrentModificationError,
    InvalidInputError,
    ItemNotFoundError,
    LifecyclePreconditionError,
    SchedulingError,
)
from .lifecycle import apply_sweep, run_lifecycle_sweep, sweep, transition
from .models import (
    EvaluationResult,
    ItemStatus,
    Rating,
    ReviewableItem,
    ReviewLogEntry,
    SchedulingScheme,
    SweepResult,
    TransitionResult,
)
from .policy import DEFAULT_POLICY, SchedulingPolicy
from .queue import build_queue, build_review_queue, priority_score
from .retention import estimate_retention
from .review import ReviewOutcome, apply_review
from .srs import evaluate, is_leech, predict_intervals
from .store import ItemStore

__all__ = [
    "ConcurrentModificationError",
    "DEFAULT_POLICY",
    "EvaluationResult",
    "InvalidInputError",
    "ItemNotFoundError",
    "ItemStatus",
    "ItemStore",
    "LifecyclePreconditionError",
    "Rating",
    "ReviewLogEntry",
    "ReviewOutcome",
    "ReviewableItem",
    "SchedulingError",
    "SchedulingPolicy",
    "SchedulingScheme",
    "SweepResult",
    "TransitionResult",
    "apply_review",
    "apply_sweep",
    "build_queue",
    "build_review_queue",
    "estimate_retention",
    "evaluate",
    "is_leech",
    "predict_intervals",
    "priority_score",
    "run_lifecycle_sweep",
    "sweep",
    "transition",
]
