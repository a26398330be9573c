"""Settings facade: groups, arrays and typed values over a ConfigStore."""

import logging
import queue
import threading
from collections.abc import Callable
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from .backend import ConfigStore
from .codec import convert
from .codec import decode
from .codec import encode
from .enumerator import KeyEnumerator
from .exceptions import BackendError
from .exceptions import InvalidKeyError
from .exceptions import ScopeMismatchError
from .memory import MemoryStore
from .models import ChangeEvent
from .models import SettingsOptions
from .models import Status
from .models import WriteMode
from .path_stack import PathStack
from .utils import SEPARATOR
from .utils import normalize_path
from .utils import root_path
from .values import Opaque

logger = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """Ordered channel of ChangeEvents for one subscriber.

    Events are queued by the store's notification thread and consumed on the
    subscriber's own thread, in the order the store produced them. Closing
    the subscription ends iteration once the queued events have been read.
    """

    def __init__(self, on_close: Callable[["Subscription"], None]):
        self._queue: queue.Queue = queue.Queue()
        self._on_close = on_close
        self.closed = False

    def get(self, timeout: float | None = None) -> ChangeEvent | None:
        """Wait for the next event.

        Args:
            timeout: Seconds to wait; None waits until an event arrives or the
                subscription is closed

        Returns:
            The next event, or None on timeout or after close
        """
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is _CLOSED:
            self._queue.put(_CLOSED)
            return None
        return item

    def drain(self) -> list[ChangeEvent]:
        """Return every event queued so far without waiting."""
        events = []
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break
            if item is _CLOSED:
                self._queue.put(_CLOSED)
                break
            events.append(item)
        return events

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._queue.put(_CLOSED)
        self._on_close(self)

    def _deliver(self, event: ChangeEvent) -> None:
        if not self.closed:
            self._queue.put(event)

    def __iter__(self) -> Iterator[ChangeEvent]:
        while True:
            event = self.get()
            if event is None:
                return
            yield event

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *_) -> None:
        self.close()


class Settings:
    """Hierarchical typed settings stored in a ConfigStore.

    Keys are resolved against the current scope: the root derived from the
    organization and application names, followed by every open group and
    array. Values are stored as wire strings (see ``codec``).

    Backend failures never raise: they are logged and reported by
    ``status()``. A Settings instance is not thread-safe; use one per thread.

    Args:
        organization: Organization name, first root segment
        application: Application name, second root segment (optional)
        store: Store to use; a private in-memory store if omitted. The
            instance takes ownership and closes it in ``close()``.
        options: Behavioural options
    """

    def __init__(
        self,
        organization: str,
        application: str = "",
        store: ConfigStore | None = None,
        options: SettingsOptions | None = None,
    ):
        self._organization = organization
        self._application = application
        self.options = options or SettingsOptions()
        self.root = root_path(organization, application)
        self._stack = PathStack(self.root)
        self._status = Status.NO_ERROR
        self._subscriptions: list[Subscription] = []
        self._subscriptions_lock = threading.RLock()
        self._watching = False
        self._closed = False

        self.store = store if store is not None else MemoryStore()
        try:
            self.store = self.store.connect()
        except BackendError as e:
            self._backend_failed("connect", e)
        self._enumerator = KeyEnumerator(self.store)

    # ===== Identity and Status =====

    def organization_name(self) -> str:
        return self._organization

    def application_name(self) -> str:
        return self._application

    def status(self) -> Status:
        """First backend error met since construction or the last ``sync()``."""
        return self._status

    # ===== Groups =====

    def begin_group(self, name: str) -> None:
        """Open a group; keys are resolved inside it until ``end_group()``.

        An empty name (after normalization) is ignored.
        """
        self._stack.begin_group(name)

    def end_group(self) -> None:
        """Close the innermost group.

        Raises:
            ScopeMismatchError: Only with ``strict_scopes``, if the innermost
                scope is not a group; otherwise a warning is logged
        """
        try:
            self._stack.end_group()
        except ScopeMismatchError as e:
            if self.options.strict_scopes:
                raise
            logger.warning(f"Ignoring unbalanced call: {e}")

    def group(self) -> str:
        """Current group path relative to the root."""
        return self._stack.group()

    @contextmanager
    def in_group(self, name: str) -> Iterator["Settings"]:
        """Context manager pairing ``begin_group`` and ``end_group``."""
        pushed = self._stack.begin_group(name)
        try:
            yield self
        finally:
            if pushed:
                self.end_group()

    # ===== Arrays =====

    def begin_read_array(self, name: str) -> int:
        """Open an array positioned at index 0 and return its size.

        The size is one more than the largest numeric group stored under the
        array, 0 if there is none.

        Args:
            name: Array name

        Returns:
            Number of entries
        """
        name = normalize_path(name)
        if not name:
            logger.warning("begin_read_array() called with an empty name")
            return 0

        size = 0
        try:
            groups = self._enumerator.list_immediate_groups(self._stack.current_path() + name + SEPARATOR)
        except BackendError as e:
            self._backend_failed("begin_read_array", e)
        else:
            indices = [int(group) for group in groups if group.isascii() and group.isdigit()]
            if indices:
                size = max(indices) + 1

        self._stack.begin_array(name)
        return size

    def begin_write_array(self, name: str) -> None:
        """Open an array positioned at index 0 for writing."""
        if not self._stack.begin_array(name):
            logger.warning("begin_write_array() called with an empty name")

    def end_array(self) -> None:
        """Close the innermost array.

        Raises:
            ScopeMismatchError: Only with ``strict_scopes``, if the innermost
                scope is not an array; otherwise a warning is logged
        """
        try:
            self._stack.end_array()
        except ScopeMismatchError as e:
            if self.options.strict_scopes:
                raise
            logger.warning(f"Ignoring unbalanced call: {e}")

    def set_array_index(self, index: int) -> None:
        """Select an entry of the innermost array.

        The index is not checked against the size returned by
        ``begin_read_array``.

        Raises:
            ValueError: If index is negative
            ScopeMismatchError: Only with ``strict_scopes``, if the innermost
                scope is not an array; otherwise a warning is logged
        """
        try:
            self._stack.set_array_index(index)
        except ScopeMismatchError as e:
            if self.options.strict_scopes:
                raise
            logger.warning(f"Ignoring unbalanced call: {e}")

    # ===== Values =====

    def set_value(self, key: str, value: Any) -> None:
        """Store a value under ``key`` in the current scope.

        Args:
            key: Key, may contain separators
            value: Value to store (see ``codec.encode`` for supported types)

        Raises:
            InvalidKeyError: If key is empty
            TypeError: If the value cannot be encoded
        """
        path = self._key_path(key)
        wire = encode(value)
        logger.debug(f"set_value: path: {path}, value: {wire!r}")
        try:
            if self.options.write_mode is WriteMode.SYNC:
                self.store.write_sync(path, wire.encode("utf-8"))
            else:
                self.store.write_async(path, wire.encode("utf-8"))
        except BackendError as e:
            self._backend_failed("set_value", e)

    def value(self, key: str, default: Any = None, type: type | None = None) -> Any:
        """Read the value stored under ``key`` in the current scope.

        Scalars are stored as text: pass ``type`` to get an int, float,
        bool... back.

        Args:
            key: Key, may contain separators
            default: Returned when the key is absent or cannot be converted
            type: Type to convert the stored value to

        Returns:
            Stored value, or default

        Raises:
            InvalidKeyError: If key is empty
        """
        path = self._key_path(key)
        try:
            data = self.store.read(path)
        except BackendError as e:
            self._backend_failed("value", e)
            return default

        logger.debug(f"value: path: {path}, found: {data is not None}")
        if data is None:
            return default

        try:
            wire = data.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning(f"Value at {path} is not valid UTF-8, reading it as Latin-1")
            wire = data.decode("latin-1")

        result = decode(wire)
        if isinstance(result, Opaque):
            result = result.data

        if type is not None:
            try:
                result = convert(result, type)
            except ValueError as e:
                logger.warning(f"Cannot read {path} as {type.__name__}: {e}")
                return default
        return result

    def remove(self, key: str) -> None:
        """Remove ``key`` and every key below it.

        An empty key removes everything in the current group.
        """
        key = normalize_path(key)
        scope = self._stack.current_path()
        try:
            if key:
                path = scope + key
                paths = [path] + [path + SEPARATOR + sub for sub in self._enumerator.list_all_keys(path)]
            else:
                paths = [scope + sub for sub in self._enumerator.list_all_keys(scope)]

            for path in paths:
                self.store.write_sync(path, None)
        except BackendError as e:
            self._backend_failed("remove", e)
            return

        if len(paths) > 1:
            logger.info(f"Removed {len(paths)} key(s) under {scope + key}")

    def contains(self, key: str) -> bool:
        """Whether ``key`` exists in the current scope. Flushes pending writes first."""
        path = self._key_path(key)
        self.sync()
        try:
            return self.store.read(path) is not None
        except BackendError as e:
            self._backend_failed("contains", e)
            return False

    def clear(self) -> None:
        """Remove every key under the root, whatever the current group."""
        try:
            paths = [self.root + key for key in self._enumerator.list_all_keys(self.root)]
            for path in paths:
                self.store.write_sync(path, None)
        except BackendError as e:
            self._backend_failed("clear", e)
            return
        logger.info(f"Cleared {len(paths)} key(s) under {self.root}")

    def is_writable(self) -> bool:
        """Whether keys in the current group can be written."""
        try:
            return self.store.is_writable(self._stack.current_path())
        except BackendError as e:
            self._backend_failed("is_writable", e)
            return False

    # ===== Enumeration =====

    def all_keys(self) -> list[str]:
        """Every key below the current group, relative to it."""
        try:
            return self._enumerator.list_all_keys(self._stack.current_path())
        except BackendError as e:
            self._backend_failed("all_keys", e)
            return []

    def child_keys(self) -> list[str]:
        """Keys directly inside the current group."""
        try:
            return self._enumerator.list_immediate_keys(self._stack.current_path())
        except BackendError as e:
            self._backend_failed("child_keys", e)
            return []

    def child_groups(self) -> list[str]:
        """Groups directly inside the current group."""
        try:
            return self._enumerator.list_immediate_groups(self._stack.current_path())
        except BackendError as e:
            self._backend_failed("child_groups", e)
            return []

    # ===== Synchronization =====

    def sync(self) -> None:
        """Flush pending writes and pick up changes from other writers.

        Resets ``status()`` before flushing.
        """
        self._status = Status.NO_ERROR
        try:
            self.store.sync_flush()
        except BackendError as e:
            self._backend_failed("sync", e)

    # ===== Change Notification =====

    def subscribe(self) -> Subscription:
        """Subscribe to changes of keys under the root.

        Returns:
            Subscription to read ChangeEvents from; close it when done
        """
        subscription = Subscription(self._unsubscribe)
        with self._subscriptions_lock:
            self._subscriptions.append(subscription)
            if not self._watching:
                try:
                    self.store.watch(self.root, self._on_store_change)
                    self._watching = True
                except BackendError as e:
                    self._backend_failed("subscribe", e)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        with self._subscriptions_lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
            if not self._subscriptions:
                self._release_watch()

    def _release_watch(self) -> None:
        if not self._watching:
            return
        self._watching = False
        try:
            self.store.unwatch(self.root)
        except BackendError as e:
            self._backend_failed("unwatch", e)

    def _on_store_change(self, path: str, names: list[str], tag: str) -> None:
        if not path.startswith(self.root):
            return
        relative = path[len(self.root) :]
        if not relative:
            return

        event = ChangeEvent(path=relative, keys=tuple(names), tag=tag)
        with self._subscriptions_lock:
            for subscription in self._subscriptions:
                subscription._deliver(event)

    # ===== Teardown =====

    def close(self) -> None:
        """Flush pending writes, end subscriptions and release the store."""
        if self._closed:
            return
        self.sync()

        with self._subscriptions_lock:
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            subscription.close()
        with self._subscriptions_lock:
            self._release_watch()

        try:
            self.store.close()
        except BackendError as e:
            self._backend_failed("close", e)
        self._closed = True

    def __enter__(self) -> "Settings":
        return self

    def __exit__(self, *_) -> None:
        self.close()

    # ===== Private Helpers =====

    def _key_path(self, key: str) -> str:
        """Absolute path of ``key`` in the current scope.

        Raises:
            InvalidKeyError: If key is empty after normalization
        """
        key = normalize_path(key)
        if not key:
            raise InvalidKeyError("Settings key cannot be empty")
        return self._stack.current_path() + key

    def _backend_failed(self, operation: str, error: BackendError) -> None:
        logger.warning(f"{operation} failed: {error}")
        if self._status is Status.NO_ERROR:
            self._status = Status.FORMAT_ERROR if error.format_error else Status.ACCESS_ERROR
