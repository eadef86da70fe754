from __future__ import annotations


class TrackerError(RuntimeError):
    """Base class for failures surfaced to callers of the tracker services."""


class LoadError(TrackerError):
    """Raised when entries or profiles cannot be fetched from storage."""


class WriteError(TrackerError):
    """Raised when a create, update or delete call fails."""


class ValidationError(TrackerError):
    """Raised when a submission is missing required fields."""


class AccessDenied(TrackerError):
    """Raised when an admin operation is attempted without an unlocked gate."""
