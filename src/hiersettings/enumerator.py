"""Key enumeration over store listings."""

import logging

from .backend import ConfigStore
from .utils import SEPARATOR

logger = logging.getLogger(__name__)


class KeyEnumerator:
    """Lists keys and groups below a directory of a ConfigStore.

    Args:
        store: Connected store to list from
    """

    def __init__(self, store: ConfigStore):
        self.store = store

    def list_immediate_keys(self, path: str) -> list[str]:
        """Names of the keys directly inside ``path``."""
        return [name for name, is_dir in self.store.list(path) if name and not is_dir]

    def list_immediate_groups(self, path: str) -> list[str]:
        """Names of the directories directly inside ``path``."""
        return [name for name, is_dir in self.store.list(path) if name and is_dir]

    def list_all_keys(self, path: str, relative_prefix: str = "") -> list[str]:
        """Every key below ``path``, relative to it.

        Walks directories with an explicit work-list, so arbitrarily deep
        hierarchies do not grow the call stack. A directory reached twice is
        listed only once.

        Args:
            path: Absolute directory path
            relative_prefix: Prefix prepended to every returned key

        Returns:
            Keys as ``relative_prefix + "sub/dir/name"``
        """
        if not path.endswith(SEPARATOR):
            path += SEPARATOR

        keys = []
        visited = set()
        pending = [(path, relative_prefix)]
        while pending:
            directory, prefix = pending.pop()
            if directory in visited:
                logger.warning(f"Directory {directory} listed twice, skipping")
                continue
            visited.add(directory)

            subdirectories = []
            for name, is_dir in self.store.list(directory):
                if not name:
                    continue
                if is_dir:
                    subdirectories.append((directory + name + SEPARATOR, prefix + name + SEPARATOR))
                else:
                    keys.append(prefix + name)
            # Reversed so directories are visited in listing order
            pending.extend(reversed(subdirectories))

        return keys
