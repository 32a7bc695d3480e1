"""Package version, read once at import."""
from importlib import metadata
from pathlib import Path

import tomli

DISTRIBUTION = "fireblocks-signer-transport"
UNKNOWN_VERSION = "0.0.0+unknown"

_PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


def read_version(pyproject: Path = _PYPROJECT) -> str:
    """
    Version of the installed distribution.

    A source checkout that was never installed reports the ``[project]``
    version of its ``pyproject.toml`` instead.
    """
    try:
        return metadata.version(DISTRIBUTION)
    except metadata.PackageNotFoundError:
        pass

    try:
        with pyproject.open("rb") as fh:
            return str(tomli.load(fh)["project"]["version"])
    except (OSError, KeyError, tomli.TOMLDecodeError):
        return UNKNOWN_VERSION


__version__ = read_version()
