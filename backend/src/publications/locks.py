"""Per-key locks for moderation transitions and uploads.

Only one approve/reject/revert may run for a given submission id at a time.
A second caller does not wait: it gets ConcurrentTransition immediately.
Within the database transaction the row is additionally locked with
SELECT ... FOR UPDATE, which covers multiple worker processes on PostgreSQL.

Uploads of the same file (same duplicate key) are serialised instead: the
second caller waits, then runs its duplicate check against the first
caller's committed row.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator, List

from domain.publications.errors import ConcurrentTransition


class TransitionLocks:
    """Registry of mutexes keyed by record id.

    Entries are reference counted and dropped once no caller holds or waits
    on them, so the registry does not grow with the number of records.

    Args:
        wait: Block until the lock is free instead of raising ConcurrentTransition
    """

    def __init__(self, wait: bool = False):
        self.wait = wait
        self._guard = threading.Lock()
        self._entries: Dict[Hashable, List] = {}  # key -> [lock, refcount]

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """Hold the lock for key for the duration of the block.

        Raises:
            ConcurrentTransition: If another caller holds the lock for key
                and the registry does not wait
        """
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = [threading.Lock(), 0]
            entry[1] += 1

        acquired = entry[0].acquire(blocking=self.wait)
        try:
            if not acquired:
                raise ConcurrentTransition(
                    "Another moderation action on this submission is in progress",
                    details={"id": str(key)},
                )
            yield
        finally:
            if acquired:
                entry[0].release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    self._entries.pop(key, None)

    def is_locked(self, key: Hashable) -> bool:
        with self._guard:
            entry = self._entries.get(key)
            return entry is not None and entry[0].locked()


# Process-wide registry used by the moderation service
transition_locks = TransitionLocks()

# Serialises duplicate check and insert for identical uploads
upload_locks = TransitionLocks(wait=True)
