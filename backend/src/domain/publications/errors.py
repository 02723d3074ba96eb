"""Domain errors for the publication workflow.

Every error carries a machine-readable kind, a human-readable message and
the HTTP status the API layer maps it to. main.py renders them as
{"error": kind, "message": message, "details": details}.
"""

from typing import Any, Dict, Optional


class PublicationError(Exception):
    """Base class for publication workflow errors."""

    kind = "publication_error"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind, "message": self.message, "details": self.details}


class SubmissionValidationError(PublicationError):
    """Malformed filename, unsupported upload or invalid field value."""

    kind = "validation_error"
    status_code = 422


class IncompleteMetadata(SubmissionValidationError):
    """Year, month or day missing on a submission that is being approved."""


class DuplicateSubmission(PublicationError):
    """Same file already published or awaiting moderation.

    details["existing_file"] describes the conflicting record.
    """

    kind = "duplicate_submission"
    status_code = 409


class AuthorizationError(PublicationError):
    kind = "authorization_error"
    status_code = 403


class NotFound(PublicationError):
    kind = "not_found"
    status_code = 404


class StateError(PublicationError):
    """Transition not allowed from the record's current status."""

    kind = "state_error"
    status_code = 409


class InvalidTransition(StateError):
    pass


class AlreadyPending(StateError):
    status_code = 400


class ConcurrentTransition(PublicationError):
    """Another transition on the same submission is in progress."""

    kind = "conflict"
    status_code = 409


class StorageError(PublicationError):
    """Base exception for blob storage operations."""

    kind = "storage_error"
    status_code = 500


class FileNotFound(StorageError):
    status_code = 404


class StorageWriteError(StorageError):
    pass


class PlacementExhausted(StorageError):
    status_code = 507
