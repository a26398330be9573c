"""Wire format for typed setting values.

Every value is stored as a single string. Scalars are stored in their
canonical text form; other kinds use a tagged form ``@Tag(payload)``. A
scalar whose text starts with ``@`` is escaped with a second ``@``.

Decoding is lenient: anything that is not a well-formed tagged form decodes
to the literal string. This matches how desktop settings files have always
been read and must not be tightened.
"""

import logging
import re
from typing import Any

import yaml

from .values import KeyShortcut
from .values import Opaque
from .values import Point
from .values import Rect
from .values import Size
from .values import UInt

logger = logging.getLogger(__name__)

# Version of the @Variant blob layout: 4-byte big-endian version, then UTF-8 YAML
STREAM_VERSION = 1
_VERSION_BYTES = 4

_INTEGER = re.compile(r"[+-]?[0-9]+")
_FALSE_STRINGS = ("", "0", "false")


def encode(value: Any) -> str:
    """Encode a typed value into its wire string.

    Args:
        value: None, str, int, UInt, bool, float, KeyShortcut, bytes,
            Rect, Size, Point, Opaque, or any YAML-representable structure

    Returns:
        Wire string

    Raises:
        TypeError: If the value needs a blob and cannot be serialized
    """
    if value is None:
        return "@Invalid()"

    if isinstance(value, (bytes, bytearray)):
        return "@ByteArray(" + bytes(value).decode("latin-1") + ")"

    if isinstance(value, (str, int, float, KeyShortcut)):
        text = _scalar_text(value)
        if text.startswith("@"):
            text = "@" + text
        return text

    if isinstance(value, Rect):
        return f"@Rect({value.x} {value.y} {value.width} {value.height})"
    if isinstance(value, Size):
        return f"@Size({value.width} {value.height})"
    if isinstance(value, Point):
        return f"@Point({value.x} {value.y})"

    data = value.data if isinstance(value, Opaque) else value
    return "@Variant(" + _dump_blob(data).decode("latin-1") + ")"


def decode(text: str) -> Any:
    """Decode a wire string into a typed value.

    Never raises: malformed tagged forms decode to the literal string.
    Integers, booleans and floats come back as strings; use ``convert`` to
    recover them.

    Args:
        text: Wire string

    Returns:
        Decoded value
    """
    if text.startswith("@"):
        if text.endswith(")"):
            if text.startswith("@ByteArray("):
                try:
                    return text[11:-1].encode("latin-1")
                except UnicodeEncodeError:
                    logger.debug(f"Non Latin-1 @ByteArray payload kept as string: {text!r}")
            elif text.startswith("@Variant("):
                blob = _load_blob(text[9:-1])
                if blob is not None:
                    return blob
            elif text.startswith("@Rect("):
                args = _int_args(text, 5, 4)
                if args is not None:
                    return Rect(*args)
            elif text.startswith("@Size("):
                args = _int_args(text, 5, 2)
                if args is not None:
                    return Size(*args)
            elif text.startswith("@Point("):
                args = _int_args(text, 6, 2)
                if args is not None:
                    return Point(*args)
            elif text == "@Invalid()":
                return None

        if text.startswith("@@"):
            return text[1:]

    return text


def split_args(text: str, idx: int) -> list[str]:
    """Split the payload of a tagged form into space-separated tokens.

    Args:
        text: Tagged wire string; its last character must be ``)``
        idx: Index of the opening ``(``

    Returns:
        Tokens between the parentheses

    Examples:
        >>> split_args("@Rect(1 2 3 4)", 5)
        ['1', '2', '3', '4']
    """
    return text[idx + 1 : -1].split(" ")


def convert(value: Any, target: type) -> Any:
    """Convert a decoded value to the requested type.

    Strings are parsed the way stored scalars are written by ``encode``.

    Args:
        value: Decoded value
        target: Requested type

    Returns:
        Value of type ``target``

    Raises:
        ValueError: If the value cannot be converted
    """
    if isinstance(value, target) and not (target is int and isinstance(value, bool)):
        return value

    if target is bool:
        if isinstance(value, str):
            return value.strip().lower() not in _FALSE_STRINGS
        if isinstance(value, (int, float)):
            return bool(value)
    elif target in (int, UInt):
        if isinstance(value, str) and _INTEGER.fullmatch(value.strip()):
            return target(int(value))
        if isinstance(value, int):
            return target(int(value))
    elif target is float:
        if isinstance(value, (str, int)):
            return float(value)
    elif target is str:
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode("latin-1")
        if isinstance(value, (int, float, KeyShortcut)):
            return _scalar_text(value)
    elif target is KeyShortcut:
        if isinstance(value, str):
            return KeyShortcut(value)
    elif target is bytes:
        if isinstance(value, str):
            return value.encode("latin-1")

    raise ValueError(f"Cannot convert {type(value).__name__} value {value!r} to {target.__name__}")


def _scalar_text(value: Any) -> str:
    """Canonical text of a scalar value."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        return repr(value)
    return str(value)


def _int_args(text: str, idx: int, arity: int) -> list[int] | None:
    args = split_args(text, idx)
    if len(args) != arity or not all(_INTEGER.fullmatch(arg) for arg in args):
        return None
    return [int(arg) for arg in args]


def _dump_blob(data: Any) -> bytes:
    try:
        payload = yaml.safe_dump(data, default_flow_style=True, sort_keys=False)
    except yaml.YAMLError as e:
        raise TypeError(f"Cannot encode value of type {type(data).__name__}: {e}") from e
    return STREAM_VERSION.to_bytes(_VERSION_BYTES, "big") + payload.encode("utf-8")


def _load_blob(payload: str) -> Opaque | None:
    try:
        blob = payload.encode("latin-1")
    except UnicodeEncodeError:
        return None

    if len(blob) < _VERSION_BYTES:
        return None

    version = int.from_bytes(blob[:_VERSION_BYTES], "big")
    if version != STREAM_VERSION:
        logger.debug(f"Unsupported @Variant stream version {version}")
        return None

    try:
        return Opaque(yaml.safe_load(blob[_VERSION_BYTES:].decode("utf-8")))
    except (UnicodeDecodeError, yaml.YAMLError) as e:
        logger.debug(f"Unreadable @Variant payload: {e}")
        return None
