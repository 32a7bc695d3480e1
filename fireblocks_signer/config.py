"""
Configuration and one-time initialisation for host applications.
"""
import logging
import os
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from dotenv import load_dotenv

from .models import DEFAULT_ASSETS

logger = logging.getLogger(__name__)

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class ClientConfig:
    """
    Optional client overrides, validated together by ``ClientBuilder.build``.

    Attributes:
        url: Override API endpoint (takes precedence over ``sandbox``)
        user_agent: Override ``User-Agent`` header
        timeout: Per-request deadline in seconds
        sandbox: Use the sandbox endpoint when ``url`` is not set
        assets: Accepted asset ids
    """
    url: Optional[str] = None
    user_agent: Optional[str] = None
    timeout: Optional[float] = None
    sandbox: bool = False
    assets: FrozenSet[str] = field(default_factory=lambda: DEFAULT_ASSETS)

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """
        Read overrides from ``FIREBLOCKS_ENDPOINT``, ``FIREBLOCKS_SANDBOX``,
        ``FIREBLOCKS_TIMEOUT`` and ``FIREBLOCKS_USER_AGENT``.
        """
        timeout = os.environ.get("FIREBLOCKS_TIMEOUT")
        try:
            parsed_timeout = float(timeout) if timeout else None
        except ValueError:
            raise ValueError(f"FIREBLOCKS_TIMEOUT must be a number of seconds (got: {timeout!r})")

        return cls(
            url=os.environ.get("FIREBLOCKS_ENDPOINT") or None,
            user_agent=os.environ.get("FIREBLOCKS_USER_AGENT") or None,
            timeout=parsed_timeout,
            sandbox=os.environ.get("FIREBLOCKS_SANDBOX", "").lower() in _TRUE_VALUES,
        )


def init(
    level: str = "INFO",
    fmt: Optional[str] = None,
    load_env: bool = True,
) -> None:
    """
    Configure logging and the process environment for a host application.

    Call once before building clients. The library itself never configures
    logging. A ``.env`` file is loaded unless running in CI.

    Args:
        level: Root log level name (``FIREBLOCKS_LOG_LEVEL`` overrides it)
        fmt: Log format string
        load_env: Whether to load a ``.env`` file
    """
    if load_env and not os.environ.get("CI"):
        if not load_dotenv(override=True):
            logger.debug("no .env file")

    level_name = os.environ.get("FIREBLOCKS_LOG_LEVEL", level).upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level_name, format=fmt or DEFAULT_LOG_FORMAT)
    else:
        root.setLevel(level_name)
