"""Exception hierarchy for the moderation engine.

Every failure propagates to the caller of ``ModerationEngine.moderate``.
Callers must treat any of these as "do not persist the content".
"""

from __future__ import annotations

PUBLIC_ERROR_MESSAGE = "Content could not be processed, please try again."


class ModerationError(Exception):
    """Base class for all moderation failures."""

    retryable = False

    @property
    def public_message(self) -> str:
        """Message safe to show end users. Never includes rules or thresholds."""
        return PUBLIC_ERROR_MESSAGE


class InvalidRequestError(ModerationError):
    """Malformed moderation request (empty text, missing ids, too long)."""


class DetectionError(ModerationError):
    """The detector could not evaluate the text (bad rule, matcher crash)."""


class DuplicateContentError(ModerationError):
    """A moderation record already exists for this content id."""

    def __init__(self, content_id: str) -> None:
        super().__init__(f"Content {content_id!r} has already been moderated")
        self.content_id = content_id


class RepositoryError(ModerationError):
    """The moderation record store failed."""

    retryable = True


class StorageError(ModerationError):
    """The content archive failed."""

    retryable = True


class ReviewTransitionError(ModerationError):
    """A review status change that the record lifecycle does not allow."""


class ConfigError(ValueError):
    """Invalid moderation engine configuration."""
