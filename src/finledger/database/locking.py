"""Per-store advisory locks.

Stores are rewritten in full on every save, so two uploads interleaving their
load and save would lose one upload's changes. Every read-modify-write runs
under the lock registered for the store's identity.

The lock is held across threads with an ``RLock`` and across processes with
``flock`` on a sidecar file next to the store, so two ``finledger`` commands
against the same ledger run one after the other.
"""

import fcntl
import os
import threading
from pathlib import Path
from typing import Optional

_registry_lock = threading.Lock()
_locks: dict[str, "StoreLock"] = {}


class StoreLock:
    """Re-entrant lock shared by threads and, through a lock file, processes.

    Only the outermost acquisition in a process takes the file lock, since
    ``flock`` on a second descriptor of the same file would block on the
    first one.
    """

    def __init__(self, lock_path: Optional[Path] = None):
        self.lock_path = lock_path
        self._thread_lock = threading.RLock()
        self._depth = 0
        self._fd: Optional[int] = None

    def __enter__(self) -> "StoreLock":
        self._thread_lock.acquire()
        try:
            if self._depth == 0:
                self._acquire_file()
        except BaseException:
            self._thread_lock.release()
            raise
        self._depth += 1
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._depth -= 1
        try:
            if self._depth == 0:
                self._release_file()
        finally:
            self._thread_lock.release()

    def _acquire_file(self) -> None:
        if self.lock_path is None:
            return
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.lock_path, os.O_RDWR | os.O_CREAT, 0o600)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX)
        except OSError:
            os.close(fd)
            raise
        self._fd = fd

    def _release_file(self) -> None:
        if self._fd is None:
            return
        fd, self._fd = self._fd, None
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)


def store_lock(identity: str, lock_path: Optional[Path] = None) -> StoreLock:
    """Return the process-wide lock for a store identity.

    The same identity always yields the same lock object. Locks are
    re-entrant so a service can call another service on the same store.

    Args:
        identity: Stable key of the store (URL or resolved file path)
        lock_path: Sidecar file used to lock out other processes. None for
            stores that only live in this process, such as in-memory SQLite.
    """
    with _registry_lock:
        lock = _locks.get(identity)
        if lock is None:
            lock = StoreLock(lock_path)
            _locks[identity] = lock
        return lock
