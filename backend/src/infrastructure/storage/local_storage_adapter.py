"""Local Storage Adapter - Implementation of BlobStoragePort on the local filesystem.

Architecture: Hexagonal - Adapter implementation in infrastructure layer
"""

import logging
import os
from pathlib import Path

from domain.publications.errors import FileNotFound, StorageWriteError
from domain.storage.ports.blob_storage_port import BlobStoragePort

logger = logging.getLogger(__name__)


class LocalStorageAdapter(BlobStoragePort):
    """Filesystem storage rooted at a single directory.

    Storage paths are interpreted relative to root and may not escape it.
    move() uses os.replace, which is atomic within one filesystem.

    Example:
        storage = LocalStorageAdapter("/var/lib/publib", base_url="/storage")
        storage.put("publications/a/2024/01/02/a.pdf", data)
        storage.url("publications/a/2024/01/02/a.pdf")
        # "/storage/publications/a/2024/01/02/a.pdf"
    """

    def __init__(self, root: str, base_url: str = "/storage"):
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info(f"Initialized local storage adapter: root={self.root}")

    def _full_path(self, path: str) -> Path:
        full = (self.root / path.lstrip("/")).resolve()
        if full != self.root and self.root not in full.parents:
            raise StorageWriteError(f"Path escapes storage root: {path}", details={"path": path})
        return full

    def exists(self, path: str) -> bool:
        return self._full_path(path).is_file()

    def get(self, path: str) -> bytes:
        full = self._full_path(path)
        if not full.is_file():
            raise FileNotFound(f"File not found: {path}", details={"path": path})
        return full.read_bytes()

    def put(self, path: str, data: bytes) -> None:
        full = self._full_path(path)
        try:
            full.parent.mkdir(parents=True, exist_ok=True)
            full.write_bytes(data)
        except OSError as e:
            raise StorageWriteError(f"Failed to write file: {path}", details={"path": path}) from e

    def move(self, source: str, destination: str) -> None:
        src = self._full_path(source)
        dst = self._full_path(destination)
        if not src.is_file():
            raise FileNotFound(f"File not found: {source}", details={"path": source})
        if dst.exists():
            raise StorageWriteError(
                f"Destination already exists: {destination}",
                details={"path": destination},
            )
        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
            os.replace(src, dst)
        except OSError as e:
            raise StorageWriteError(
                f"Failed to move file: {source} -> {destination}",
                details={"source": source, "destination": destination},
            ) from e

    def delete(self, path: str) -> bool:
        full = self._full_path(path)
        if not full.is_file():
            return False
        try:
            full.unlink()
        except OSError as e:
            raise StorageWriteError(f"Failed to delete file: {path}", details={"path": path}) from e
        return True

    def make_directory(self, path: str) -> None:
        try:
            self._full_path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageWriteError(
                f"Failed to create directory: {path}",
                details={"directory": path},
            ) from e

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def health_check(self) -> bool:
        return self.root.is_dir() and os.access(self.root, os.W_OK)
