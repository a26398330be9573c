"""Path helpers for hiersettings."""

SEPARATOR = "/"


def normalize_path(path: str) -> str:
    """Normalize a slash-separated path.

    Strips leading and trailing separators and collapses runs of separators
    inside the path. Normalization is idempotent.

    Args:
        path: Path to normalize

    Returns:
        Normalized path, empty string if no segment remains

    Examples:
        >>> normalize_path("/a//b/")
        'a/b'

        >>> normalize_path("///")
        ''
    """
    return SEPARATOR.join(segment for segment in path.split(SEPARATOR) if segment)


def root_path(organization: str, application: str = "") -> str:
    """Build the absolute root path for an organization and application.

    The root always starts and ends with a separator. Empty organization and
    application names yield the bare separator.

    Examples:
        >>> root_path("lxde", "setting_test")
        '/lxde/setting_test/'

        >>> root_path("lxde")
        '/lxde/'
    """
    name = organization
    if application:
        name += SEPARATOR + application
    name = normalize_path(name)
    if not name:
        return SEPARATOR
    return SEPARATOR + name + SEPARATOR
