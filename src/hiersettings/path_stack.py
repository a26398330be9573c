"""Scope stack tracking the current group/array path."""

import logging
from dataclasses import dataclass
from dataclasses import replace

from .exceptions import ScopeMismatchError
from .utils import SEPARATOR
from .utils import normalize_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroupFrame:
    """A named group contributing its (normalized) name to the path."""

    name: str

    @property
    def segment(self) -> str:
        return self.name


@dataclass(frozen=True)
class ArrayFrame:
    """A repeating scope: the array name followed by the current index."""

    name: str
    index: int = 0

    @property
    def segment(self) -> str:
        return f"{self.name}{SEPARATOR}{self.index}"


ScopeFrame = GroupFrame | ArrayFrame


class PathStack:
    """Stack of group and array frames on top of a fixed root prefix.

    All end/index operations check the top frame before touching the stack,
    so a mismatched call leaves the stack exactly as it was.

    Args:
        root: Absolute root prefix, starting and ending with a separator
    """

    def __init__(self, root: str = SEPARATOR):
        self.root = root
        self._frames: list[ScopeFrame] = []

    @property
    def frames(self) -> tuple[ScopeFrame, ...]:
        return tuple(self._frames)

    @property
    def depth(self) -> int:
        return len(self._frames)

    # ===== Groups =====

    def begin_group(self, name: str) -> bool:
        """Push a group frame.

        Args:
            name: Group name; may contain separators

        Returns:
            True if a frame was pushed, False if the name normalized to empty
        """
        name = normalize_path(name)
        if not name:
            return False
        self._frames.append(GroupFrame(name))
        logger.debug(f"begin_group, current path: {self.current_path()}")
        return True

    def end_group(self) -> None:
        """Pop the top group frame.

        Raises:
            ScopeMismatchError: If the stack is empty or the top is an array
        """
        self._require_top(GroupFrame, "end_group")
        self._frames.pop()
        logger.debug(f"end_group, current path: {self.current_path()}")

    # ===== Arrays =====

    def begin_array(self, name: str) -> bool:
        """Push an array frame positioned at index 0.

        Returns:
            True if a frame was pushed, False if the name normalized to empty
        """
        name = normalize_path(name)
        if not name:
            return False
        self._frames.append(ArrayFrame(name))
        logger.debug(f"begin_array, current path: {self.current_path()}")
        return True

    def end_array(self) -> None:
        """Pop the top array frame (its index and its name).

        Raises:
            ScopeMismatchError: If the stack is empty or the top is a group
        """
        self._require_top(ArrayFrame, "end_array")
        self._frames.pop()
        logger.debug(f"end_array, current path: {self.current_path()}")

    def set_array_index(self, index: int) -> None:
        """Move the top array frame to ``index``.

        There is no upper bound: callers may go past the size reported when
        the array was opened.

        Raises:
            ScopeMismatchError: If the stack is empty or the top is a group
            ValueError: If index is negative
        """
        top = self._require_top(ArrayFrame, "set_array_index")
        if index < 0:
            raise ValueError(f"Array index cannot be negative: {index}")
        self._frames[-1] = replace(top, index=index)

    # ===== Paths =====

    def group(self) -> str:
        """Current group path relative to the root, empty at the root."""
        return SEPARATOR.join(frame.segment for frame in self._frames)

    def current_path(self) -> str:
        """Absolute path of the current scope, ending with a separator."""
        group = self.group()
        if not group:
            return self.root
        return self.root + group + SEPARATOR

    def _require_top(self, kind: type, operation: str) -> ScopeFrame:
        if not self._frames:
            raise ScopeMismatchError(f"{operation}() called with no open group or array")
        top = self._frames[-1]
        if not isinstance(top, kind):
            raise ScopeMismatchError(f"{operation}() called while '{top.name}' is the innermost scope")
        return top
