"""Domain-level error types."""

from __future__ import annotations


class UserFacingError(Exception):
    """An error whose message is fit to show to the user as-is."""


class EntityNotFoundError(UserFacingError):
    """Raised when a mutation targets an entity missing from the cache."""


class AttachmentTooLargeError(UserFacingError):
    """Raised before upload when a file exceeds the size limit."""

    def __init__(self, filename: str, *, limit_bytes: int) -> None:
        limit_mb = limit_bytes // (1024 * 1024)
        super().__init__(f"{filename} exceeds {limit_mb}MB limit")
        self.filename = filename
        self.limit_bytes = limit_bytes


class TemporaryEntityError(UserFacingError):
    """Raised when a mutation targets a placeholder the server does not know yet."""
