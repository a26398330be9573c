"""YAML-file backed configuration database.

The file holds one flat mapping of absolute key paths to wire strings::

    /lxde/setting_test/testGroup2/TestInt: '123'
    /lxde/setting_test/testGroup2/TestStr: Test
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from .exceptions import BackendError
from .memory import MemoryDatabase
from .memory import MemoryStore
from .utils import SEPARATOR
from .utils import normalize_path

logger = logging.getLogger(__name__)


class YamlDatabase(MemoryDatabase):
    """MemoryDatabase persisted to a YAML file.

    The file is read on open and by every ``refresh``, and rewritten on every
    commit. The last writer wins: concurrent writers are not merged.

    Args:
        path: Path to the YAML file (created on first write)
    """

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)

    def refresh(self) -> None:
        """Reload the file and notify watchers of keys changed by other writers."""
        with self._lock:
            previous = self._values
            self._values = self._load()
            changed = sorted(
                key for key in previous.keys() | self._values.keys() if previous.get(key) != self._values.get(key)
            )
            if not changed:
                return
            tag = str(next(self._tags))
            watchers = list(self._watchers)

        logger.debug(f"Reloaded {self.path}: {len(changed)} key(s) changed")
        self._notify(watchers, changed, tag)

    def _load(self) -> dict[str, bytes]:
        """Read the YAML file.

        Returns:
            Flat mapping of key paths to values, empty if the file doesn't exist

        Raises:
            BackendError: If the file cannot be read or is not a flat mapping
        """
        if not self.path.exists():
            return {}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise BackendError(f"Malformed configuration file {self.path}: {e}", format_error=True) from e
        except OSError as e:
            raise BackendError(f"Failed to read configuration from {self.path}: {e}") from e

        if not data:
            return {}
        if not isinstance(data, dict):
            raise BackendError(f"Configuration file {self.path} must contain a mapping", format_error=True)

        values = {}
        for key, value in data.items():
            if not isinstance(key, str) or isinstance(value, (dict, list)):
                raise BackendError(f"Invalid entry {key!r} in {self.path}", format_error=True)
            if value is None:
                continue
            values[SEPARATOR + normalize_path(key)] = _scalar_text(value).encode("utf-8")
        return values

    def _persist(self, values: dict[str, bytes]) -> None:
        """Write the YAML file.

        Raises:
            BackendError: If write fails
        """
        try:
            data = {key: values[key].decode("utf-8") for key in sorted(values)}
        except UnicodeDecodeError as e:
            raise BackendError(f"Cannot store non UTF-8 value in {self.path}: {e}") from e

        try:
            # Ensure directory exists
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        except OSError as e:
            raise BackendError(f"Failed to write configuration to {self.path}: {e}") from e


class YamlStore(MemoryStore):
    """ConfigStore handle on a YAML file.

    Args:
        path: Path to the YAML file, or an existing YamlDatabase to share
    """

    def __init__(self, path: Path | YamlDatabase):
        database = path if isinstance(path, YamlDatabase) else YamlDatabase(path)
        super().__init__(database)


def _scalar_text(value: Any) -> str:
    # Hand-edited files may hold unquoted scalars
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
