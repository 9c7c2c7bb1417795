"""Scraper utilities for the HTTP client, cool-downs, proxy reload and retries."""

from .http_client import DEFAULT_HEADERS, build_http_client
from .rate_limiter import DEFAULT_COOLDOWN, RateLimitStore
from .proxy_manager import (
    NoOpProxyReloader,
    ProxyReloader,
    TorServiceReloader,
    get_proxy_reloader,
)
from .response_dump import write_response_to_file
from .retry import http_retry


__all__ = [
    # HTTP client
    "DEFAULT_HEADERS",
    "build_http_client",
    # Rate limiting
    "DEFAULT_COOLDOWN",
    "RateLimitStore",
    # Proxy management
    "NoOpProxyReloader",
    "ProxyReloader",
    "TorServiceReloader",
    "get_proxy_reloader",
    # Debugging
    "write_response_to_file",
    # Retry decorators
    "http_retry",
]
