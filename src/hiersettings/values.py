"""Typed value classes with a dedicated wire form.

Plain Python values cover most kinds: ``None`` (invalid), ``str``, ``int``,
``bool``, ``float`` and ``bytes``. The classes here cover the rest.
"""

from dataclasses import dataclass
from typing import Any


class UInt(int):
    """Unsigned integer. Encoded exactly like ``int``."""

    def __new__(cls, value: int = 0):
        obj = super().__new__(cls, value)
        if obj < 0:
            raise ValueError(f"UInt cannot be negative: {value}")
        return obj

    def __repr__(self) -> str:
        return f"UInt({int(self)})"


@dataclass(frozen=True)
class KeyShortcut:
    """Keyboard shortcut in portable text form, e.g. ``Ctrl+Shift+S``."""

    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Point:
    x: int
    y: int


@dataclass(frozen=True)
class Size:
    width: int
    height: int


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class Opaque:
    """Structured value stored as a versioned blob.

    Any value without a dedicated wire form (lists, dicts, tuples...) is
    wrapped in Opaque when encoded. ``data`` must be representable by
    ``yaml.safe_dump``.
    """

    data: Any
