"""Base retailer adapter interface.

Every supported retailer has one adapter that turns an HTTP response for a
product page into an availability decision. Adapters either declare a single
`absent_pattern` (the product is available iff the pattern is absent from the
page) or override `handle_response` with retailer-specific logic.

The bias is open-world: if no sold-out signal matches, the target is treated
as in stock.
"""

import re
from typing import ClassVar, Optional, Tuple

import httpx
import structlog

from stockwatch.core.exceptions import (
    MisconfiguredAdapterError,
    NetworkFailure,
    NotFoundError,
)
from stockwatch.schemas.target import Target


class BaseStockAdapter:
    """Base class for all retailer adapters.

    Subclasses set `retailer_key` and either `absent_pattern` or a custom
    `handle_response`. Adapters are stateless apart from the injected client,
    so one instance may check any number of targets concurrently.
    """

    retailer_key: ClassVar[str] = ""  # Must be overridden (e.g., "newegg")
    retailer_name: ClassVar[str] = ""  # Display name (e.g., "Newegg")

    # Marker whose presence means "sold out"; None means custom logic is required
    absent_pattern: ClassVar[Optional[re.Pattern]] = None

    # Final URLs a retailer redirects blocked proxy exit nodes to
    blocked_redirect_urls: ClassVar[Tuple[str, ...]] = ()

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None):
        """Initialize the adapter.

        Args:
            http_client: Shared cycle client, used for secondary fetches
        """
        self.http_client = http_client  # Injected by factory
        self.logger = structlog.get_logger(adapter=self.retailer_key)

    async def get_request(self, target: Target, client: httpx.AsyncClient) -> httpx.Response:
        """Fetch the product page.

        Args:
            target: Target to fetch
            client: Shared cycle client

        Returns:
            The fully read response

        Raises:
            NetworkFailure: On any transport-level failure
        """
        try:
            return await client.get(target.url)
        except httpx.HTTPError as e:
            raise NetworkFailure(target.url, str(e) or type(e).__name__) from e

    async def handle_response(self, response: httpx.Response, target: Target) -> Target:
        """Decide availability from a successful response.

        The default implementation is the pattern-absence strategy.

        Returns:
            The target, when it is available

        Raises:
            NotFoundError: The sold-out marker is present
            MisconfiguredAdapterError: No pattern and no override
        """
        if self.absent_pattern is None:
            raise MisconfiguredAdapterError(self.retailer_key)

        if self.absent_pattern.search(response.text):
            raise NotFoundError(target.key, target.name)
        return target

    def is_blocked_redirect(self, response: httpx.Response) -> bool:
        """Whether the response landed on the retailer's blocked-proxy page."""
        return str(response.url) in self.blocked_redirect_urls


class ContainsMarkerAdapter(BaseStockAdapter):
    """Adapter for retailers whose sold-out marker is a literal HTML snippet."""

    sold_out_marker: ClassVar[str] = ""

    async def handle_response(self, response: httpx.Response, target: Target) -> Target:
        if not self.sold_out_marker:
            raise MisconfiguredAdapterError(self.retailer_key)

        if self.sold_out_marker in response.text:
            raise NotFoundError(target.key, target.name)
        return target
