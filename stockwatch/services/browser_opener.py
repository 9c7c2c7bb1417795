"""Open restocked product pages in the user's browser."""

import sys
import webbrowser
from typing import Protocol

import structlog

from stockwatch.core.exceptions import PlatformNotSupportedError


logger = structlog.get_logger(__name__)


class BrowserOpener(Protocol):
    def open(self, url: str) -> None:
        ...


class NoOpBrowserOpener:
    """Default opener: never launches anything."""

    def open(self, url: str) -> None:
        logger.debug("browser_open_skipped", url=url)


class WebBrowserOpener:
    """Opens URLs with the platform's registered default browser."""

    def open(self, url: str) -> None:
        if not webbrowser.open(url, new=2):
            raise PlatformNotSupportedError("Opening a browser", sys.platform)
        logger.info("browser_opened", url=url)
