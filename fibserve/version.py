"""Version information for fibserve."""

__version__ = "1.0.0"


def get_version() -> str:
    """Return the package version string"""
    return __version__
