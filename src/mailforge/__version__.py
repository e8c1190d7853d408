"""Version information for mailforge."""

__version__ = "0.1.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Release information
__title__ = "mailforge"
__description__ = "Email composition and SMTP session helper"
__author__ = "mailforge developers"
__license__ = "MIT"
__copyright__ = "Copyright 2026 mailforge developers"


def get_version() -> str:
    """Return the current version string."""
    return __version__


def get_version_info() -> tuple[int, ...]:
    """Return the version as a tuple of integers."""
    return __version_info__
