"""Exceptions for hiersettings."""


class SettingsError(Exception):
    """Base exception for settings errors."""

    pass


class ScopeMismatchError(SettingsError):
    """End of a group or array requested against the wrong kind of scope.

    Raised when ``end_group``, ``end_array`` or ``set_array_index`` is called
    while the scope stack is empty or its top frame has a different kind.
    The stack is never modified when this is raised.
    """

    pass


class BackendError(SettingsError):
    """Error surfaced by the configuration store.

    Attributes:
        format_error: True when stored data could not be parsed, False for
            access failures (connection, permissions, closed handle)
    """

    def __init__(self, message: str, format_error: bool = False):
        super().__init__(message)
        self.format_error = format_error


class InvalidKeyError(SettingsError, ValueError):
    """Key is empty after normalization."""

    pass
