"""Custom exception classes for the application.

The classification errors are deliberately flat: the polling engine maps each
one to a single outcome kind and never lets them escape a cycle.
"""

from typing import Optional


class StockWatchError(Exception):
    """Base exception for all stockwatch errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Per-target classification errors
# ---------------------------------------------------------------------------


class NotFoundError(StockWatchError):
    """Raised when a target is checked successfully but is not in stock."""

    def __init__(self, retailer_key: str, name: str):
        self.retailer_key = retailer_key
        super().__init__(f"Product '{name}' is not in stock at {retailer_key}")


class RateLimitedError(StockWatchError):
    """Raised when a retailer throttles us (429, bot challenge, blocked proxy)."""

    def __init__(self, retailer_key: str, reason: str = "rate limit"):
        self.retailer_key = retailer_key
        self.reason = reason
        super().__init__(f"Rate limited by {retailer_key}: {reason}")


class TransientServerError(StockWatchError):
    """Raised when the retailer answers with a 5xx status."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"Bad status from web server: {status_code}")


class TransientClientError(StockWatchError):
    """Raised when the retailer answers with a 4xx status other than 429."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"Bad status from web client: {status_code}")


class BadStatusError(StockWatchError):
    """Raised for any other non-success status (1xx, 3xx left unresolved)."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"Bad status in response: {status_code}")


class NetworkFailure(StockWatchError):
    """Raised when the HTTP request itself fails (DNS, connect, timeout...)."""

    def __init__(self, url: str, detail: str):
        self.url = url
        super().__init__(f"Web request to {url} failed: {detail}")


class MisconfiguredAdapterError(StockWatchError):
    """Raised when an adapter has neither a detection pattern nor custom logic."""

    def __init__(self, retailer_key: str):
        super().__init__(
            f"Adapter '{retailer_key}' requires a pattern to check for, "
            "for example: `.+Sold Out!.+`"
        )


class UnknownTargetError(StockWatchError):
    """Raised when no adapter is registered for a target's key."""

    def __init__(self, retailer_key: str):
        self.retailer_key = retailer_key
        super().__init__(f"No adapter registered for retailer key '{retailer_key}'")


# ---------------------------------------------------------------------------
# Collaborator errors
# ---------------------------------------------------------------------------


class ClientBuildError(StockWatchError):
    """Raised when the shared HTTP client cannot be constructed."""

    def __init__(self, detail: str, proxy_url: Optional[str] = None):
        self.proxy_url = proxy_url
        super().__init__(f"Building the web client failed: {detail}")


class NotificationError(StockWatchError):
    """Raised when a notification could not be delivered."""

    def __init__(self, channel: str, message: str):
        super().__init__(f"Notification via {channel} failed: {message}")


class ConfigError(StockWatchError):
    """Raised when the watch-list configuration cannot be loaded or saved."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Error loading or saving configuration '{path}': {message}")


class ProxyReloadError(StockWatchError):
    """Raised when reloading the anonymizing proxy fails."""

    def __init__(self, return_code: int):
        self.return_code = return_code
        super().__init__(f"Proxy reload command exited with code {return_code}")


class PlatformNotSupportedError(StockWatchError):
    """Raised when a platform capability is requested on an unsupported OS."""

    def __init__(self, capability: str, platform: str):
        super().__init__(f"{capability} is not supported on platform '{platform}'")
