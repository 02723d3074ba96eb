"""Blob Storage Port - Domain interface for path-addressed file storage.

This port defines the contract for storing, moving and serving publication
files. Adapters implement it for the local filesystem and for S3-compatible
object stores.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod


class BlobStoragePort(ABC):
    """Port interface for a filesystem-like key/blob store.

    Paths are relative, forward-slash separated keys such as
    "temp_publications/monthly-report/2024/03/15/report.pdf".

    Implementations must guarantee that move() either leaves the file at the
    destination and removes the source, or raises and leaves the source
    untouched.

    Errors:
        FileNotFound: source path does not exist (get, move)
        StorageWriteError: the backend refused a write, move, delete or mkdir
    """

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Return True if a file is stored at path."""

    @abstractmethod
    def get(self, path: str) -> bytes:
        """Read the full content stored at path."""

    @abstractmethod
    def put(self, path: str, data: bytes) -> None:
        """Write data to path, replacing any existing content."""

    @abstractmethod
    def move(self, source: str, destination: str) -> None:
        """Move a file. The destination must not already exist."""

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Delete path. Returns False if nothing was stored there."""

    @abstractmethod
    def make_directory(self, path: str) -> None:
        """Create a directory (and its parents) if the backend has directories."""

    @abstractmethod
    def url(self, path: str) -> str:
        """Public URL for path."""

    def health_check(self) -> bool:
        """Check that the backend is reachable."""
        return True
