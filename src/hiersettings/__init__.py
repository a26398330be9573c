"""hiersettings: Hierarchical typed settings over a path-addressed store.

This library provides a desktop-style settings API on top of a key-value
configuration database addressed by slash-separated paths:
- Nested groups and repeating indexed arrays
- Typed values stored as tagged wire strings (``@Rect(0 0 10 20)``...)
- Recursive key enumeration and change subscriptions

Applications inject the store to define where settings live. The library
provides the mechanism for scoping, encoding and enumerating keys.

Public API:
    Settings: Main class for settings operations
    Subscription: Ordered channel of ChangeEvents
    SettingsOptions, WriteMode, Status, ChangeEvent: Configuration and results
    ConfigStore: Protocol implemented by stores
    MemoryDatabase, MemoryStore: In-memory store
    YamlDatabase, YamlStore: YAML-file store
    PathStack, KeyEnumerator, encode, decode, convert: Building blocks
    Rect, Size, Point, KeyShortcut, UInt, Opaque: Typed values
    SettingsError, ScopeMismatchError, BackendError, InvalidKeyError: Exception types

Example:
    ```python
    from pathlib import Path
    from hiersettings import Rect, Settings, YamlStore

    # Application injects the store (policy)
    store = YamlStore(Path.home() / ".config" / "settings.yaml")

    # Library provides mechanism
    with Settings("lxde", "panel", store=store) as settings:
        with settings.in_group("mainwindow"):
            settings.set_value("geometry", Rect(0, 0, 640, 480))
            settings.set_value("maximized", True)

        settings.sync()
        maximized = settings.value("mainwindow/maximized", type=bool)
    ```
"""

from .backend import ConfigStore
from .codec import convert
from .codec import decode
from .codec import encode
from .enumerator import KeyEnumerator
from .exceptions import BackendError
from .exceptions import InvalidKeyError
from .exceptions import ScopeMismatchError
from .exceptions import SettingsError
from .memory import MemoryDatabase
from .memory import MemoryStore
from .models import ChangeEvent
from .models import SettingsOptions
from .models import Status
from .models import WriteMode
from .path_stack import PathStack
from .settings import Settings
from .settings import Subscription
from .utils import normalize_path
from .utils import root_path
from .values import KeyShortcut
from .values import Opaque
from .values import Point
from .values import Rect
from .values import Size
from .values import UInt
from .yaml_store import YamlDatabase
from .yaml_store import YamlStore

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "Subscription",
    "SettingsOptions",
    "WriteMode",
    "Status",
    "ChangeEvent",
    "ConfigStore",
    "MemoryDatabase",
    "MemoryStore",
    "YamlDatabase",
    "YamlStore",
    "PathStack",
    "KeyEnumerator",
    "encode",
    "decode",
    "convert",
    "normalize_path",
    "root_path",
    "Rect",
    "Size",
    "Point",
    "KeyShortcut",
    "UInt",
    "Opaque",
    "SettingsError",
    "ScopeMismatchError",
    "BackendError",
    "InvalidKeyError",
]
