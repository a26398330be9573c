"""In-memory configuration database and its client handle.

``MemoryDatabase`` holds a flat mapping of absolute key paths to raw values
and may be shared by several ``MemoryStore`` handles, the way several
processes share one settings daemon. Each handle buffers asynchronous writes
until ``sync_flush``; its own reads see its pending writes immediately.
"""

import itertools
import logging
import threading

from .backend import ChangeCallback
from .exceptions import BackendError
from .utils import SEPARATOR

logger = logging.getLogger(__name__)


def _covers(prefix: str, path: str) -> bool:
    """Whether ``prefix`` (a key, or a directory ending with a separator) covers ``path``."""
    if prefix.endswith(SEPARATOR):
        return path.startswith(prefix)
    return path == prefix


def _as_dir(path: str) -> str:
    return path if path.endswith(SEPARATOR) else path + SEPARATOR


class MemoryDatabase:
    """Thread-safe flat key space with locks and change watchers.

    Watch callbacks run on the thread that committed the change, after the
    database lock has been released.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._values: dict[str, bytes] = {}
        self._locks: set[str] = set()
        self._watchers: list[tuple[str, ChangeCallback]] = []
        self._tags = itertools.count(1)
        self._opened = False

    # ===== Lifecycle =====

    def open(self) -> None:
        """Load the initial contents. Later calls do nothing.

        Raises:
            BackendError: If the contents cannot be loaded
        """
        with self._lock:
            if self._opened:
                return
            self._values = self._load()
            self._opened = True

    def refresh(self) -> None:
        """Pick up changes made outside this process. Nothing to do in memory."""
        pass

    # ===== Data =====

    def get(self, path: str) -> bytes | None:
        with self._lock:
            return self._values.get(path)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._values)

    def commit(self, changes: dict[str, bytes | None]) -> str:
        """Apply a batch of writes (None deletes) and notify watchers.

        Args:
            changes: Mapping of absolute key path to new value

        Returns:
            Tag identifying this commit

        Raises:
            BackendError: If any key is locked; nothing is applied then
        """
        with self._lock:
            locked = [path for path in changes if not self.is_writable(path)]
            if locked:
                raise BackendError(f"Keys are not writable: {', '.join(sorted(locked))}")

            values = dict(self._values)
            changed = [path for path, data in changes.items() if values.get(path) != data]
            for path, data in changes.items():
                if data is None:
                    values.pop(path, None)
                else:
                    values[path] = data

            self._persist(values)
            self._values = values
            tag = str(next(self._tags))
            watchers = list(self._watchers)

        self._notify(watchers, changed, tag)
        return tag

    # ===== Locks =====

    def lock(self, path: str) -> None:
        """Make a key, or every key under a directory path ending with ``/``, read-only."""
        with self._lock:
            self._locks.add(path)

    def unlock(self, path: str) -> None:
        with self._lock:
            self._locks.discard(path)

    def is_writable(self, path: str) -> bool:
        with self._lock:
            return not any(_covers(prefix, path) for prefix in self._locks)

    # ===== Watches =====

    def add_watch(self, path: str, callback: ChangeCallback) -> None:
        with self._lock:
            self._watchers.append((path, callback))

    def remove_watch(self, path: str, callback: ChangeCallback) -> None:
        with self._lock:
            try:
                self._watchers.remove((path, callback))
            except ValueError:
                logger.debug(f"No watch registered on {path}")

    # ===== Persistence hooks =====

    def _load(self) -> dict[str, bytes]:
        return dict(self._values)

    def _persist(self, values: dict[str, bytes]) -> None:
        pass

    def _notify(self, watchers: list[tuple[str, ChangeCallback]], paths: list[str], tag: str) -> None:
        for path in paths:
            for prefix, callback in watchers:
                if _covers(prefix, path):
                    callback(path, [""], tag)


class MemoryStore:
    """ConfigStore handle on a MemoryDatabase.

    Args:
        database: Database to connect to; a private one is created if omitted
    """

    def __init__(self, database: MemoryDatabase | None = None):
        self.database = database if database is not None else MemoryDatabase()
        self._pending: dict[str, bytes] = {}
        self._pending_lock = threading.Lock()
        self._watches: dict[str, ChangeCallback] = {}
        self._connected = False
        self._closed = False

    def connect(self) -> "MemoryStore":
        if self._closed:
            raise BackendError("Store handle has been closed")
        self.database.open()
        self._connected = True
        return self

    def close(self) -> None:
        if self._closed:
            return
        for path in list(self._watches):
            self.unwatch(path)
        with self._pending_lock:
            if self._pending:
                logger.warning(f"Discarding {len(self._pending)} unflushed write(s) on close")
            self._pending.clear()
        self._closed = True
        self._connected = False

    def read(self, path: str) -> bytes | None:
        self._check_connected()
        with self._pending_lock:
            if path in self._pending:
                return self._pending[path]
        return self.database.get(path)

    def write_async(self, path: str, data: bytes) -> None:
        self._check_connected()
        with self._pending_lock:
            self._pending[path] = data

    def write_sync(self, path: str, data: bytes | None) -> None:
        self._check_connected()
        with self._pending_lock:
            self._pending.pop(path, None)
        self.database.commit({path: data})

    def list(self, path: str) -> list[tuple[str, bool]]:
        self._check_connected()
        directory = _as_dir(path)
        with self._pending_lock:
            keys = set(self._pending)
        keys.update(self.database.keys())

        entries = set()
        for key in keys:
            if not key.startswith(directory):
                continue
            name, sep, _ = key[len(directory) :].partition(SEPARATOR)
            entries.add((name, bool(sep)))
        return sorted(entries)

    def is_writable(self, path: str) -> bool:
        self._check_connected()
        return self.database.is_writable(path)

    def watch(self, path: str, callback: ChangeCallback) -> None:
        self._check_connected()
        if path in self._watches:
            self.unwatch(path)
        self.database.add_watch(path, callback)
        self._watches[path] = callback

    def unwatch(self, path: str) -> None:
        callback = self._watches.pop(path, None)
        if callback is not None:
            self.database.remove_watch(path, callback)

    def sync_flush(self) -> None:
        """Commit pending writes, then refresh from the database.

        Writes to locked keys are dropped and reported after the others have
        been committed.

        Raises:
            BackendError: If some pending writes were rejected
        """
        self._check_connected()
        with self._pending_lock:
            pending, self._pending = self._pending, {}

        rejected = sorted(path for path in pending if not self.database.is_writable(path))
        accepted = {path: data for path, data in pending.items() if path not in rejected}
        if accepted:
            self.database.commit(accepted)
        self.database.refresh()

        if rejected:
            raise BackendError(f"Keys are not writable: {', '.join(rejected)}")

    def _check_connected(self) -> None:
        if self._closed:
            raise BackendError("Store handle has been closed")
        if not self._connected:
            raise BackendError("Store is not connected")
