"""Shared HTTP client construction.

One client is built per polling cycle and shared, read-only, by every
concurrent target check so they all use the same proxy, headers and timeout.
"""

from typing import Optional

import httpx
import structlog

from stockwatch.config import settings
from stockwatch.core.exceptions import ClientBuildError


logger = structlog.get_logger(__name__)


DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


def build_http_client(
    proxy_url: Optional[str] = None,
    timeout: Optional[float] = None,
    user_agent: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Build the AsyncClient used for one polling cycle.

    Args:
        proxy_url: Proxy applied to all traffic (e.g. "socks5://127.0.0.1:9050")
        timeout: Connect/read timeout in seconds, defaults to settings
        user_agent: User-Agent header, defaults to settings
        transport: Custom transport (tests inject httpx.MockTransport here)

    Returns:
        Configured httpx.AsyncClient; the caller owns closing it

    Raises:
        ClientBuildError: If the proxy URL is invalid or the client can't be built
    """
    headers = dict(DEFAULT_HEADERS)
    headers["User-Agent"] = user_agent or settings.USER_AGENT

    try:
        client = httpx.AsyncClient(
            headers=headers,
            timeout=httpx.Timeout(timeout or settings.REQUEST_TIMEOUT_SECONDS),
            follow_redirects=True,
            proxy=proxy_url or None,
            transport=transport,
        )
    except (ValueError, TypeError, httpx.InvalidURL) as e:
        logger.error("http_client_build_failed", proxy_url=proxy_url, error=str(e))
        raise ClientBuildError(str(e), proxy_url=proxy_url) from e

    logger.debug("http_client_built", proxied=bool(proxy_url))
    return client
