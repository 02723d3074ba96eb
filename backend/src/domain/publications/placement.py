"""File Placement Service - deterministic storage paths for publication files.

Files are laid out as ``{area}/{slug(name)}/{YYYY}/{MM}/{DD}/{filename}``
where area is the staging prefix (unapproved submissions), the permanent
prefix (published files) or the deleted prefix (archived publications).
Existing files are never overwritten: a clashing filename gets a ``-{n}``
suffix before its extension.
"""

import logging
import posixpath
import re
import unicodedata
from typing import Optional, Sequence

from domain.storage.ports.blob_storage_port import BlobStoragePort
from .errors import FileNotFound, PlacementExhausted, StorageError, StorageWriteError

logger = logging.getLogger(__name__)


def slugify(value: str) -> str:
    """Lowercase, ASCII-fold and hyphenate a name for use as a path segment.

    Example:
        >>> slugify("Monthly Report (Draft)")
        'monthly-report-draft'
        >>> slugify("Café_Notes")
        'cafe-notes'
    """
    value = unicodedata.normalize("NFKD", value or "").encode("ascii", "ignore").decode("ascii")
    value = value.lower()
    value = re.sub(r"[^\w\s-]", "", value)
    value = re.sub(r"[\s_-]+", "-", value)
    return value.strip("-")


class FilePlacementService:
    """Assigns storage paths and moves files between storage areas.

    Args:
        storage: Blob storage backend
        staging_prefix: Root for unapproved files (e.g. "temp_publications")
        permanent_prefix: Root for published files (e.g. "publications")
        max_attempts: Number of "-{n}" suffixes tried before giving up
        reserved_prefixes: Areas nested in the permanent root (e.g. "publications/deleted")
            that a publication directory must never fall into

    Example:
        placement = FilePlacementService(storage, "temp_publications", "publications")
        path = placement.place(data, "report-2024-03-15.pdf", "report", 2024, 3, 15)
        # temp_publications/report/2024/03/15/report-2024-03-15.pdf
        path = placement.promote(path, "report", 2024, 3, 15)
        # publications/report/2024/03/15/report-2024-03-15.pdf
    """

    def __init__(
        self,
        storage: BlobStoragePort,
        staging_prefix: str = "temp_publications",
        permanent_prefix: str = "publications",
        max_attempts: int = 100,
        reserved_prefixes: Sequence[str] = (),
    ):
        self.storage = storage
        self.staging_prefix = staging_prefix.strip("/")
        self.permanent_prefix = permanent_prefix.strip("/")
        self.max_attempts = max_attempts
        self.reserved_prefixes = tuple(p.strip("/") for p in reserved_prefixes if p.strip("/"))

    def directory_for(
        self,
        name: str,
        year: int,
        month: int,
        day: int,
        permanent: bool = False,
    ) -> str:
        """Directory for a publication in the staging or permanent area.

        A slug that would land inside a reserved area gets a "-publication"
        suffix, so "Deleted" is stored under "publications/deleted-publication".
        """
        root = self.permanent_prefix if permanent else self.staging_prefix
        slug = slugify(name) or "untitled"
        if self._is_reserved(f"{root}/{slug}"):
            slug = f"{slug}-publication"
        return f"{root}/{slug}/{year:04d}/{month:02d}/{day:02d}"

    def _is_reserved(self, directory: str) -> bool:
        return any(
            directory == prefix or directory.startswith(prefix + "/") or prefix.startswith(directory + "/")
            for prefix in self.reserved_prefixes
        )

    def available_path(self, directory: str, filename: str) -> str:
        """First free path for filename in directory.

        Tries ``filename`` itself, then ``{stem}-1{ext}`` up to
        ``{stem}-{max_attempts}{ext}``.

        Raises:
            PlacementExhausted: If every candidate is taken
        """
        candidate = posixpath.join(directory, filename)
        if not self.storage.exists(candidate):
            return candidate

        stem, ext = posixpath.splitext(filename)
        for n in range(1, self.max_attempts + 1):
            candidate = posixpath.join(directory, f"{stem}-{n}{ext}")
            if not self.storage.exists(candidate):
                return candidate

        raise PlacementExhausted(
            f"No free filename for {filename} in {directory} after {self.max_attempts} attempts",
            details={"directory": directory, "filename": filename},
        )

    def place(
        self,
        data: bytes,
        filename: str,
        name: str,
        year: int,
        month: int,
        day: int,
        permanent: bool = False,
    ) -> str:
        """Store new file content and return its path.

        Raises:
            StorageWriteError: If the directory or file cannot be written
            PlacementExhausted: If the collision budget is exhausted
        """
        directory = self.directory_for(name, year, month, day, permanent=permanent)
        self._ensure_directory(directory)

        path = self.available_path(directory, filename)
        self.storage.put(path, data)

        if not self.storage.exists(path):
            raise StorageWriteError(f"Failed to verify stored file: {path}", details={"path": path})

        logger.info(f"Placed file: path={path}, size={len(data)}")
        return path

    def promote(self, staging_path: str, name: str, year: int, month: int, day: int) -> str:
        """Move a staged file into the permanent area.

        Returns:
            str: The new permanent path

        Raises:
            FileNotFound: If the staged file does not exist
            StorageWriteError: If the move fails (source left in place)
            PlacementExhausted: If the collision budget is exhausted
        """
        if not self.storage.exists(staging_path):
            raise FileNotFound(f"File not found: {staging_path}", details={"path": staging_path})

        directory = self.directory_for(name, year, month, day, permanent=True)
        self._ensure_directory(directory)
        destination = self.available_path(directory, posixpath.basename(staging_path))
        self._move(staging_path, destination)
        return destination

    def relocate(self, path: str, source_prefix: str, target_prefix: str) -> str:
        """Move a file to another area, keeping its relative layout.

        "publications/x/2024/01/02/a.pdf" relocated from "publications" to
        "publications/deleted" becomes "publications/deleted/x/2024/01/02/a.pdf".
        Paths outside source_prefix keep their directory below target_prefix
        as a whole.

        Raises:
            FileNotFound: If path does not exist
            StorageWriteError: If the move fails (source left in place)
            PlacementExhausted: If the collision budget is exhausted
        """
        if not self.storage.exists(path):
            raise FileNotFound(f"File not found: {path}", details={"path": path})

        relative = self._relative_to(path, source_prefix)
        target = target_prefix.strip("/")
        head, _, rest = relative.partition("/")
        if rest and target == self.permanent_prefix and self._is_reserved(f"{target}/{head}"):
            relative = f"{head}-publication/{rest}"
        directory = posixpath.join(target, posixpath.dirname(relative))
        self._ensure_directory(directory)
        destination = self.available_path(directory, posixpath.basename(path))
        self._move(path, destination)
        return destination

    def move_back(self, path: str, original_path: str) -> Optional[str]:
        """Best-effort move of a file back to where it was.

        Used as compensation when a database write fails after a move.
        Returns the path the file ended up at, or None if it could not be moved.
        """
        try:
            self._ensure_directory(posixpath.dirname(original_path))
            self._move(path, original_path)
            return original_path
        except StorageError:
            logger.error(
                f"Failed to move file back after rollback: {path} -> {original_path}",
                exc_info=True,
            )
            return None

    def _move(self, source: str, destination: str) -> None:
        self.storage.move(source, destination)
        logger.info(f"Moved file: {source} -> {destination}")

    def _ensure_directory(self, directory: str) -> None:
        try:
            self.storage.make_directory(directory)
        except StorageWriteError:
            raise
        except OSError as e:
            raise StorageWriteError(
                f"Failed to create directory: {directory}",
                details={"directory": directory},
            ) from e

    @staticmethod
    def _relative_to(path: str, prefix: str) -> str:
        prefix = prefix.strip("/") + "/"
        if path.startswith(prefix):
            return path[len(prefix):]
        # A path from another area: keep everything after that area's root
        return path.split("/", 1)[1] if "/" in path else path
