"""Domain error taxonomy shared by the scoring engine, ledger and API.

Every error carries a stable ``error_code`` and the HTTP status the API layer
renders it with. Routes never build these responses by hand; ``main.py``
installs one exception handler for :class:`QuizError`.
"""

from typing import Any


class QuizError(Exception):
    """Base class for every error raised by the quiz core."""

    error_code = "quiz_error"
    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(QuizError):
    """Submitted ordering is malformed (empty, wrong size, unknown or repeated ids)."""

    error_code = "validation_error"
    status_code = 400


class NotFound(QuizError):
    """Session or topic is absent, or belongs to another owner."""

    error_code = "not_found"
    status_code = 404


class EmptyTopic(QuizError):
    """A session was requested for a topic with no questions."""

    error_code = "empty_topic"
    status_code = 400


class AlreadyCompleted(QuizError):
    """Submission against a session that has no remaining question."""

    error_code = "already_completed"
    status_code = 409


class SubmissionConflict(AlreadyCompleted):
    """Another submission for the same question index committed first."""

    error_code = "submission_conflict"


class StorageUnavailable(QuizError):
    """The persistence layer timed out or failed; the call may be retried."""

    error_code = "storage_unavailable"
    status_code = 503
