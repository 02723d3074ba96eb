"""Publications domain module - filename convention, file placement, moderation status"""

from .errors import (
    PublicationError,
    SubmissionValidationError,
    IncompleteMetadata,
    DuplicateSubmission,
    AuthorizationError,
    NotFound,
    StateError,
    InvalidTransition,
    AlreadyPending,
    ConcurrentTransition,
    StorageError,
    FileNotFound,
    StorageWriteError,
    PlacementExhausted,
)
from .filename import ParsedFilename, parse_publication_filename
from .placement import FilePlacementService, slugify
from .submission_status import SubmissionStatus, can_transition, validate_transition

__all__ = [
    "PublicationError",
    "SubmissionValidationError",
    "IncompleteMetadata",
    "DuplicateSubmission",
    "AuthorizationError",
    "NotFound",
    "StateError",
    "InvalidTransition",
    "AlreadyPending",
    "ConcurrentTransition",
    "StorageError",
    "FileNotFound",
    "StorageWriteError",
    "PlacementExhausted",
    "ParsedFilename",
    "parse_publication_filename",
    "FilePlacementService",
    "slugify",
    "SubmissionStatus",
    "can_transition",
    "validate_transition",
]
