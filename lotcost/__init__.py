"""Top level package for the lotcost project."""
from importlib import metadata


def get_version() -> str:
    """Return the installed package version.

    Backs ``lotcost --version``; falls back to ``0.0.0`` when running from a
    checkout that was never installed.
    """

    try:
        return metadata.version("lotcost")
    except metadata.PackageNotFoundError:  # pragma: no cover - during tests
        return "0.0.0"


__all__ = ["get_version"]
