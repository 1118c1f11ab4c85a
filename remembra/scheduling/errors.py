"""Exceptions raised by the review scheduling engine."""


class SchedulingError(Exception):
    """Base class for scheduling failures tied to a single item."""


class InvalidInputError(SchedulingError, ValueError):
    """Raised when a review rating is not one of the recognised values."""


class LifecyclePreconditionError(SchedulingError):
    """Raised when an item's lifecycle fields contradict its status."""


class ItemNotFoundError(SchedulingError, LookupError):
    """Raised when the store holds no item with the requested id."""


class ConcurrentModificationError(SchedulingError):
    """Raised when a snapshot is saved over a newer version of the same item."""
