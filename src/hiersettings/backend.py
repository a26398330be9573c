"""Contract of the configuration store used by Settings.

A store is a key-value database addressed by absolute slash-separated paths.
Keys never end with a separator; directories are implied by the keys below
them. Values are raw bytes.
"""

from collections.abc import Callable
from typing import Protocol
from typing import runtime_checkable

# (absolute_path, changed_names, tag)
ChangeCallback = Callable[[str, list[str], str], None]


@runtime_checkable
class ConfigStore(Protocol):
    """Protocol for a connection to a configuration database.

    Errors are reported by raising ``BackendError``.
    """

    def connect(self) -> "ConfigStore":
        """Open the connection and return the handle to use."""
        ...

    def close(self) -> None:
        """Release the connection. Further calls raise BackendError."""
        ...

    def read(self, path: str) -> bytes | None:
        """Value of the key at ``path``, or None if absent."""
        ...

    def write_async(self, path: str, data: bytes) -> None:
        """Queue a write. Failures are not reported to the caller."""
        ...

    def write_sync(self, path: str, data: bytes | None) -> None:
        """Write (or delete, when ``data`` is None) and wait for the result."""
        ...

    def list(self, path: str) -> list[tuple[str, bool]]:
        """Immediate children of the directory ``path`` as (name, is_directory)."""
        ...

    def is_writable(self, path: str) -> bool:
        """Whether keys at or below ``path`` may be written."""
        ...

    def watch(self, path: str, callback: ChangeCallback) -> None:
        """Call ``callback`` for every change at or below ``path``."""
        ...

    def unwatch(self, path: str) -> None:
        """Stop a watch started with ``watch``."""
        ...

    def sync_flush(self) -> None:
        """Block until queued writes are applied and visible to all readers."""
        ...
