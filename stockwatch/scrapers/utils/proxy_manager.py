"""Anonymizing proxy management.

When a retailer starts throttling us the polling engine asks for the proxy to
be reloaded so the next cycle goes out through a fresh exit node. Reloading is
platform specific; unsupported platforms get a no-op.
"""

import asyncio
import sys
from typing import Optional, Protocol, Sequence

import structlog

from stockwatch.core.exceptions import ProxyReloadError


logger = structlog.get_logger(__name__)


class ProxyReloader(Protocol):
    """Capability the polling engine calls after a rate-limited cycle."""

    async def reload(self) -> None:
        ...


class NoOpProxyReloader:
    """Proxy reloader for platforms (or setups) without a reloadable proxy."""

    async def reload(self) -> None:
        logger.debug("proxy_reload_skipped", reason="unsupported_platform")


class TorServiceReloader:
    """Reloads the local Tor service to rotate the exit node.

    Runs `service tor reload`; a non-zero exit code raises ProxyReloadError.
    """

    DEFAULT_COMMAND: Sequence[str] = ("service", "tor", "reload")

    def __init__(self, command: Optional[Sequence[str]] = None):
        self.command = tuple(command or self.DEFAULT_COMMAND)

    async def reload(self) -> None:
        logger.info("proxy_reload_started", command=" ".join(self.command))
        process = await asyncio.create_subprocess_exec(*self.command)
        return_code = await process.wait()
        if return_code != 0:
            raise ProxyReloadError(return_code)
        logger.info("proxy_reload_complete")


def get_proxy_reloader(platform: Optional[str] = None) -> ProxyReloader:
    """Pick the proxy reloader for the running platform.

    Args:
        platform: Override for sys.platform (useful in tests)

    Returns:
        TorServiceReloader on Linux, NoOpProxyReloader elsewhere
    """
    platform = platform or sys.platform
    if platform.startswith("linux"):
        return TorServiceReloader()
    return NoOpProxyReloader()
