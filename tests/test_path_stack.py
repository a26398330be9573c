"""Tests for PathStack."""

import pytest
from hiersettings import PathStack
from hiersettings import ScopeMismatchError
from hiersettings.path_stack import ArrayFrame
from hiersettings.path_stack import GroupFrame


class TestPathStack:
    """Test PathStack class."""

    @pytest.fixture
    def stack(self):
        """Create a PathStack with a typical root."""
        return PathStack("/lxde/app/")

    # ===== Group Tests =====

    def test_empty_stack(self, stack):
        """Test a new stack sits at the root."""
        assert stack.group() == ""
        assert stack.current_path() == "/lxde/app/"
        assert stack.depth == 0

    def test_group_nesting(self, stack):
        """Test groups nest and unwind in order."""
        stack.begin_group("a")
        stack.begin_group("b")
        assert stack.group() == "a/b"
        assert stack.current_path() == "/lxde/app/a/b/"

        stack.end_group()
        assert stack.group() == "a"

        stack.end_group()
        assert stack.group() == ""
        assert stack.current_path() == "/lxde/app/"

    def test_group_name_is_normalized(self, stack):
        """Test separators in group names are normalized."""
        stack.begin_group("//a//b/")
        assert stack.frames == (GroupFrame("a/b"),)
        assert stack.group() == "a/b"

    def test_multi_segment_group_ends_at_once(self, stack):
        """Test a group named with separators is one frame."""
        stack.begin_group("a/b")
        stack.end_group()
        assert stack.group() == ""

    def test_empty_group_name_is_ignored(self, stack):
        """Test empty names push nothing."""
        assert stack.begin_group("") is False
        assert stack.begin_group("///") is False
        assert stack.depth == 0

    def test_end_group_on_empty_stack(self, stack):
        """Test end_group without a group raises and changes nothing."""
        with pytest.raises(ScopeMismatchError):
            stack.end_group()
        assert stack.depth == 0
        assert stack.current_path() == "/lxde/app/"

    def test_end_group_on_array(self, stack):
        """Test end_group while an array is innermost leaves the stack intact."""
        stack.begin_group("g")
        stack.begin_array("arr")
        stack.set_array_index(3)
        before = stack.frames

        with pytest.raises(ScopeMismatchError):
            stack.end_group()
        assert stack.frames == before
        assert stack.group() == "g/arr/3"

    # ===== Array Tests =====

    def test_array_starts_at_zero(self, stack):
        """Test a new array frame is positioned at index 0."""
        stack.begin_array("arr")
        assert stack.frames == (ArrayFrame("arr", 0),)
        assert stack.group() == "arr/0"
        assert stack.current_path() == "/lxde/app/arr/0/"

    def test_set_array_index(self, stack):
        """Test set_array_index replaces the index segment."""
        stack.begin_array("arr")
        stack.set_array_index(5)
        assert stack.group() == "arr/5"
        stack.set_array_index(1)
        assert stack.group() == "arr/1"

    def test_set_array_index_has_no_upper_bound(self, stack):
        """Test indices past any reported size are accepted."""
        stack.begin_array("arr")
        stack.set_array_index(10_000)
        assert stack.group() == "arr/10000"

    def test_negative_index_rejected(self, stack):
        """Test negative indices raise and leave the index unchanged."""
        stack.begin_array("arr")
        stack.set_array_index(2)
        with pytest.raises(ValueError):
            stack.set_array_index(-1)
        assert stack.group() == "arr/2"

    def test_end_array_removes_name_and_index(self, stack):
        """Test end_array pops both path levels of the array."""
        stack.begin_group("g")
        stack.begin_array("arr")
        stack.set_array_index(4)
        stack.end_array()
        assert stack.group() == "g"

    def test_end_array_on_group(self, stack):
        """Test end_array while a group is innermost raises and changes nothing."""
        stack.begin_group("a")
        stack.begin_group("b")
        before = stack.frames

        with pytest.raises(ScopeMismatchError):
            stack.end_array()
        assert stack.depth == 2
        assert stack.frames == before

    def test_end_array_on_empty_stack(self, stack):
        """Test end_array without an array raises."""
        with pytest.raises(ScopeMismatchError):
            stack.end_array()
        assert stack.depth == 0

    def test_set_array_index_on_group(self, stack):
        """Test set_array_index outside an array raises and changes nothing."""
        stack.begin_group("a")
        with pytest.raises(ScopeMismatchError):
            stack.set_array_index(1)
        assert stack.frames == (GroupFrame("a"),)

    def test_set_array_index_on_empty_stack(self, stack):
        """Test set_array_index with no scope raises."""
        with pytest.raises(ScopeMismatchError):
            stack.set_array_index(0)

    def test_groups_inside_arrays(self, stack):
        """Test groups can be opened inside an array entry."""
        stack.begin_array("servers")
        stack.set_array_index(1)
        stack.begin_group("auth")
        assert stack.group() == "servers/1/auth"
        stack.end_group()
        stack.end_array()
        assert stack.group() == ""

    def test_empty_array_name_is_ignored(self, stack):
        """Test empty array names push nothing."""
        assert stack.begin_array("/") is False
        assert stack.depth == 0

    def test_bare_root(self):
        """Test a stack on the bare separator root."""
        stack = PathStack("/")
        assert stack.current_path() == "/"
        stack.begin_group("a")
        assert stack.current_path() == "/a/"
