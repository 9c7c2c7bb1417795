"""Best Buy adapter."""

import re

import httpx

from stockwatch.core.exceptions import NetworkFailure
from stockwatch.schemas.target import Target
from stockwatch.scrapers.base import BaseStockAdapter


class BestBuyAdapter(BaseStockAdapter):
    """Best Buy adapter.

    Best Buy refuses the connection unless it sees a browser User-Agent of its
    liking, so the request overrides the shared client's header.
    """

    retailer_key = "bestbuy"
    retailer_name = "Best Buy"

    # Include the closing tag so it doesn't match other "Sold Out" text
    absent_pattern = re.compile(r"Sold Out</button>", re.IGNORECASE)

    USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:80.0) Gecko/20100101 Firefox/80.0"

    async def get_request(self, target: Target, client: httpx.AsyncClient) -> httpx.Response:
        try:
            return await client.get(target.url, headers={"User-Agent": self.USER_AGENT})
        except httpx.HTTPError as e:
            raise NetworkFailure(target.url, str(e) or type(e).__name__) from e
