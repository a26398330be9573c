"""Tests for the wire format codec."""

import pytest
from hiersettings import KeyShortcut
from hiersettings import Opaque
from hiersettings import Point
from hiersettings import Rect
from hiersettings import Size
from hiersettings import UInt
from hiersettings.codec import STREAM_VERSION
from hiersettings.codec import convert
from hiersettings.codec import decode
from hiersettings.codec import encode
from hiersettings.codec import split_args


class TestEncode:
    """Test encode function."""

    def test_invalid(self):
        """Test None encodes to the invalid marker."""
        assert encode(None) == "@Invalid()"

    def test_byte_array(self):
        """Test bytes are embedded as Latin-1 text."""
        assert encode(b"\x00\xffab") == "@ByteArray(\x00\xffab)"
        assert encode(bytearray(b"xy")) == "@ByteArray(xy)"

    def test_scalars_use_canonical_text(self):
        """Test scalars are stored in their canonical text form."""
        assert encode("Test") == "Test"
        assert encode(123) == "123"
        assert encode(-7) == "-7"
        assert encode(UInt(7)) == "7"
        assert encode(123.45) == "123.45"
        assert encode(KeyShortcut("Ctrl+S")) == "Ctrl+S"

    def test_bool_is_lowercase(self):
        """Test booleans use true/false, not Python's repr."""
        assert encode(True) == "true"
        assert encode(False) == "false"

    def test_leading_at_is_escaped(self):
        """Test text starting with @ gets a second @."""
        assert encode("@foo") == "@@foo"
        assert encode("@Rect(1 2 3 4)") == "@@Rect(1 2 3 4)"
        assert encode(KeyShortcut("@x")) == "@@x"

    def test_at_inside_text_is_not_escaped(self):
        """Test only a leading @ is escaped."""
        assert encode("mail@example.com") == "mail@example.com"

    def test_geometry(self):
        """Test rect, size and point use space-separated integers."""
        assert encode(Rect(1, 2, 3, 4)) == "@Rect(1 2 3 4)"
        assert encode(Size(640, 480)) == "@Size(640 480)"
        assert encode(Point(-1, 5)) == "@Point(-1 5)"

    def test_variant_blob_layout(self):
        """Test opaque values are a version header followed by the payload."""
        wire = encode(Opaque({"x": 1}))
        assert wire.startswith("@Variant(" + STREAM_VERSION.to_bytes(4, "big").decode("latin-1"))
        assert wire.endswith(")")

    def test_structures_are_wrapped_as_opaque(self):
        """Test values without a dedicated form are encoded like Opaque."""
        assert encode([1, 2]) == encode(Opaque([1, 2]))

    def test_unencodable_value(self):
        """Test values that cannot be serialized raise TypeError."""
        with pytest.raises(TypeError):
            encode(object())


class TestDecode:
    """Test decode function."""

    def test_plain_string(self):
        """Test text without @ is returned unchanged."""
        assert decode("plain") == "plain"
        assert decode("") == ""

    def test_unescape(self):
        """Test @@ loses one @."""
        assert decode("@@foo") == "@foo"
        assert decode("@@Rect(1 2 3 4)") == "@Rect(1 2 3 4)"

    def test_invalid(self):
        """Test the invalid marker decodes to None."""
        assert decode("@Invalid()") is None

    def test_byte_array(self):
        """Test byte array payload is returned as bytes."""
        assert decode("@ByteArray(\x00\xffab)") == b"\x00\xffab"
        assert decode("@ByteArray()") == b""

    def test_geometry(self):
        """Test rect, size and point are parsed."""
        assert decode("@Rect(1 2 3 4)") == Rect(1, 2, 3, 4)
        assert decode("@Size(640 480)") == Size(640, 480)
        assert decode("@Point(-1 5)") == Point(-1, 5)

    def test_scalars_come_back_as_text(self):
        """Test integers and booleans are not guessed from text."""
        assert decode("123") == "123"
        assert decode("true") == "true"


class TestDecodeLeniency:
    """Malformed wire strings decode to the literal string, never raise."""

    @pytest.mark.parametrize(
        "wire",
        [
            "@",
            "@foo",
            "@Rect(1 2 3)",
            "@Rect(1 2 3 4 5)",
            "@Rect(a b c d)",
            "@Rect(1  2 3 4)",
            "@Size()",
            "@Size(1.5 2)",
            "@Point(1 2",
            "@Point(1)",
            "@Unknown(1 2)",
            "@Invalid()x",
            "@Invalid(1)",
            "@ByteArray(ħ)",
            "@Variant(ab)",
            "@Variant()",
        ],
    )
    def test_malformed_is_literal_string(self, wire):
        """Test malformed tagged forms are kept as text."""
        assert decode(wire) == wire

    def test_unsupported_variant_version(self):
        """Test a blob from an unknown stream version is kept as text."""
        wire = "@Variant(" + (STREAM_VERSION + 1).to_bytes(4, "big").decode("latin-1") + "[1])"
        assert decode(wire) == wire

    def test_unparseable_variant_payload(self):
        """Test a blob with broken YAML is kept as text."""
        wire = "@Variant(" + STREAM_VERSION.to_bytes(4, "big").decode("latin-1") + "[1, {)"
        assert decode(wire) == wire


class TestRoundTrip:
    """Test decode(encode(value)) recovers the value."""

    @pytest.mark.parametrize(
        "value",
        [
            None,
            "",
            "Test",
            "@foo",
            "@@double",
            "@Invalid()",
            "ünïcödé",
            b"",
            bytes(range(256)),
            Rect(0, 0, 640, 480),
            Rect(-10, -20, 0, 0),
            Size(0, 0),
            Point(3, -4),
        ],
    )
    def test_exact(self, value):
        """Test tagged kinds and strings round-trip exactly."""
        assert decode(encode(value)) == value

    @pytest.mark.parametrize(
        "value",
        [0, -42, 123, UInt(7), True, False, 123.45, -0.5, KeyShortcut("Ctrl+Shift+S")],
    )
    def test_scalars_through_convert(self, value):
        """Test scalars round-trip once converted back to their type."""
        assert convert(decode(encode(value)), type(value)) == value

    def test_opaque(self):
        """Test structured values come back wrapped in Opaque."""
        data = {"names": ["a", "b"], "nested": {"count": 3, "flag": True}, "empty": None}
        assert decode(encode(Opaque(data))) == Opaque(data)

    def test_opaque_with_parentheses_and_at(self):
        """Test payload text that looks like wire syntax survives."""
        data = ["@Rect(1 2 3 4)", ")", "(", "@@"]
        assert decode(encode(data)) == Opaque(data)

    def test_tuple_comes_back_as_list(self):
        """Test tuples are stored as YAML sequences."""
        assert decode(encode((1, 2))) == Opaque([1, 2])


class TestSplitArgs:
    """Test split_args function."""

    def test_splits_on_space(self):
        """Test payload tokens are split on spaces."""
        assert split_args("@Rect(1 2 3 4)", 5) == ["1", "2", "3", "4"]
        assert split_args("@Point(7 8)", 6) == ["7", "8"]

    def test_empty_payload(self):
        """Test empty parentheses give one empty token."""
        assert split_args("@Size()", 5) == [""]


class TestConvert:
    """Test convert function."""

    def test_bool_from_text(self):
        """Test false-like strings convert to False, others to True."""
        assert convert("true", bool) is True
        assert convert("false", bool) is False
        assert convert("FALSE", bool) is False
        assert convert("0", bool) is False
        assert convert("", bool) is False
        assert convert("yes", bool) is True

    def test_numbers_from_text(self):
        """Test integers and floats are parsed."""
        assert convert("123", int) == 123
        assert convert("-5", int) == -5
        assert convert("123.45", float) == 123.45
        assert convert("3", float) == 3.0

    def test_uint_from_text(self):
        """Test UInt conversion rejects negatives."""
        assert convert("7", UInt) == UInt(7)
        assert isinstance(convert("7", UInt), UInt)
        with pytest.raises(ValueError):
            convert("-1", UInt)

    def test_invalid_number(self):
        """Test unparseable numbers raise ValueError."""
        with pytest.raises(ValueError):
            convert("abc", int)
        with pytest.raises(ValueError):
            convert("12.5", int)
        with pytest.raises(ValueError):
            convert("abc", float)

    def test_text_conversions(self):
        """Test conversions to and from text."""
        assert convert(b"\xffa", str) == "\xffa"
        assert convert("\xffa", bytes) == b"\xffa"
        assert convert(True, str) == "true"
        assert convert("Ctrl+Q", KeyShortcut) == KeyShortcut("Ctrl+Q")

    def test_same_type_is_returned(self):
        """Test values already of the requested type pass through."""
        rect = Rect(1, 2, 3, 4)
        assert convert(rect, Rect) is rect

    def test_incompatible_types(self):
        """Test unsupported conversions raise ValueError."""
        with pytest.raises(ValueError):
            convert(Rect(1, 2, 3, 4), int)
        with pytest.raises(ValueError):
            convert(None, str)
