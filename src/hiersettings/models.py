"""Data models for hiersettings."""

from dataclasses import dataclass
from enum import Enum


class Status(Enum):
    """Error status of a Settings instance.

    Set by the last failing backend operation and reported by
    ``Settings.status()``.
    """

    NO_ERROR = "no_error"
    ACCESS_ERROR = "access_error"
    FORMAT_ERROR = "format_error"


class WriteMode(Enum):
    """How ``Settings.set_value`` hands values to the store.

    ASYNC writes are buffered by the store and only reach other handles after
    ``sync()``; delivery failures surface at the next flush. SYNC writes are
    committed immediately and fail loudly.
    """

    ASYNC = "async"
    SYNC = "sync"


@dataclass(frozen=True)
class SettingsOptions:
    """Behavioural options for a Settings instance.

    Attributes:
        write_mode: Whether set_value writes asynchronously or synchronously
        strict_scopes: Raise ScopeMismatchError on unbalanced end_group /
            end_array / set_array_index calls instead of logging a warning
    """

    write_mode: WriteMode = WriteMode.ASYNC
    strict_scopes: bool = False


@dataclass(frozen=True)
class ChangeEvent:
    """A change reported by the store, relative to the Settings root.

    Attributes:
        path: Changed path relative to the root (a key, or a group ending
            with a separator)
        keys: Names below ``path`` that changed; ``("",)`` when ``path``
            itself is the changed key
        tag: Opaque tag identifying the write that caused the change
    """

    path: str
    keys: tuple[str, ...] = ("",)
    tag: str = ""
