"""Installed bongo version."""

from importlib.metadata import PackageNotFoundError, version


def get_version() -> str:
    """Version of the installed ``bongo`` distribution ("0.0.0" from a bare checkout)."""
    try:
        return version("bongo")
    except PackageNotFoundError:
        return "0.0.0"
