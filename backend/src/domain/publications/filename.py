"""Publication filename convention and upload validation.

Uploaded files must be named ``{name}-{YYYY}-{MM}-{DD}[-{page}].pdf``; the
name, date and optional page number are taken from the filename itself.
"""

import os
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from .errors import SubmissionValidationError


FILENAME_PATTERN = re.compile(r"^(.*?)-(\d{4})-(\d{2})-(\d{2})(?:-(\d+))?$", re.IGNORECASE)

FILENAME_FORMAT_MESSAGE = "Invalid filename format. Expected format: name-YYYY-MM-DD[-page].pdf"

ALLOWED_EXTENSIONS = {".pdf"}

# Browsers and curl often send PDFs without a specific content type
GENERIC_MIME_TYPES = {"application/octet-stream", "binary/octet-stream", ""}

EXTENSION_MIME_TYPES = {".pdf": "application/pdf"}


@dataclass(frozen=True)
class ParsedFilename:
    """Metadata carried by a conforming filename.

    Attributes:
        name: Logical publication name (group 1, trimmed)
        year: Four-digit year
        month: Month number as written (not range-checked here)
        day: Day number as written (not range-checked here)
        page: Optional trailing page number
        extension: Lowercased extension including the dot
    """
    name: str
    year: int
    month: int
    day: int
    page: Optional[int]
    extension: str


def parse_publication_filename(filename: str) -> ParsedFilename:
    """Parse ``name-YYYY-MM-DD[-page].pdf`` into its parts.

    The stem (filename without extension) is matched case-insensitively.
    The name group is lazy, so for "a-b-2024-01-02-3.pdf" the name is "a-b"
    and the trailing 3 is the page.

    Args:
        filename: Client-supplied filename (directory components are ignored)

    Returns:
        ParsedFilename

    Raises:
        SubmissionValidationError: If the filename does not follow the convention

    Example:
        >>> parse_publication_filename("monthly-report-2024-03-15-2.pdf")
        ParsedFilename(name='monthly-report', year=2024, month=3, day=15, page=2, extension='.pdf')
    """
    basename = os.path.basename(filename or "")
    stem, extension = os.path.splitext(basename)
    extension = extension.lower()

    if extension not in ALLOWED_EXTENSIONS:
        raise SubmissionValidationError(
            FILENAME_FORMAT_MESSAGE,
            details={"filename": basename, "reason": "extension"},
        )

    match = FILENAME_PATTERN.match(stem)
    if not match or not match.group(1).strip():
        raise SubmissionValidationError(
            FILENAME_FORMAT_MESSAGE,
            details={"filename": stem},
        )

    return ParsedFilename(
        name=match.group(1).strip(),
        year=int(match.group(2)),
        month=int(match.group(3)),
        day=int(match.group(4)),
        page=int(match.group(5)) if match.group(5) is not None else None,
        extension=extension,
    )


def validate_date_parts(year: int, month: int, day: int) -> Tuple[bool, Optional[str]]:
    """Range-check the date parts taken from a filename.

    Only the individual ranges are checked; 2024-02-31 is accepted.
    """
    if year < 1900:
        return False, f"Year must be 1900 or later (got {year})"
    if not 1 <= month <= 12:
        return False, f"Month must be between 1 and 12 (got {month})"
    if not 1 <= day <= 31:
        return False, f"Day must be between 1 and 31 (got {day})"
    return True, None


def resolve_mime_type(mime_type: Optional[str], filename: str) -> str:
    """Return the declared MIME type, inferring it from the extension when generic."""
    mime_type = (mime_type or "").split(";")[0].strip().lower()
    if mime_type in GENERIC_MIME_TYPES:
        extension = os.path.splitext(filename or "")[1].lower()
        return EXTENSION_MIME_TYPES.get(extension, mime_type or "application/octet-stream")
    return mime_type


def validate_upload(
    size_bytes: int,
    mime_type: str,
    max_size: int,
    allowed_mime_types: Iterable[str],
) -> Tuple[bool, Optional[str]]:
    """Validate the upload size and MIME type.

    Args:
        size_bytes: File size in bytes
        mime_type: Resolved MIME type (see resolve_mime_type)
        max_size: Maximum allowed size in bytes
        allowed_mime_types: Accepted MIME types

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> validate_upload(0, "application/pdf", 1024, ["application/pdf"])
        (False, 'File is empty (0 bytes)')
    """
    if size_bytes == 0:
        return False, "File is empty (0 bytes)"

    if size_bytes > max_size:
        return False, f"File exceeds maximum size of {max_size} bytes (got {size_bytes} bytes)"

    if mime_type not in set(allowed_mime_types):
        return False, f"Unsupported file type: {mime_type}"

    return True, None


def validate_filename(filename: str) -> Tuple[bool, Optional[str]]:
    """Reject filenames that are unsafe to use as a storage key component.

    Example:
        >>> validate_filename('../../etc/passwd')
        (False, 'Filename contains path traversal or directory separators')
    """
    if not filename or len(filename.strip()) == 0:
        return False, "Filename cannot be empty"

    if len(filename) > 255:
        return False, f"Filename exceeds 255 characters (got {len(filename)})"

    if '..' in filename or '/' in filename or '\\' in filename:
        return False, "Filename contains path traversal or directory separators"

    if any(ord(c) < 32 for c in filename):
        return False, "Filename contains control characters"

    return True, None
