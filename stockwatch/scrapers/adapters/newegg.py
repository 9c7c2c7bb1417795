"""Newegg product page adapter.

Newegg exposes stock as JSON inside the page: each offer carries a
`"sellername"` and an `"instock"` flag, and Newegg's own offer has a null
seller name. Older pages don't inline that data and instead load it from an
`ItemInfo4` script, which is fetched as a second request.
"""

import re
from typing import List, Optional

import httpx
from bs4 import BeautifulSoup

from stockwatch.core.exceptions import NetworkFailure, NotFoundError, RateLimitedError
from stockwatch.schemas.target import Target
from stockwatch.scrapers.base import BaseStockAdapter


# The javascript tag that loads the raw product data from Newegg's servers
DETAIL_SCRIPT_SELECTOR = 'script[src*="ItemInfo4"]'

INSTOCK_PATTERN = re.compile(r'"instock":([a-zA-Z]+)', re.IGNORECASE)
SELLERNAME_PATTERN = re.compile(r'"sellername":"?([a-zA-Z0-9]+)"?', re.IGNORECASE)

BOT_CHECK_TEXT = (
    "We apologize for the confusion, but we can't quite tell if you're a person or a script."
)


def has_stock(page_data: str) -> bool:
    """Whether Newegg itself (seller name null) has the item in stock.

    The first "instock" flag on the page belongs to the page-level product
    summary, not to an offer, so it is skipped before pairing flags with
    seller names.
    """
    sellers: List[str] = SELLERNAME_PATTERN.findall(page_data)
    in_stock_flags: List[str] = INSTOCK_PATTERN.findall(page_data)[1:]

    return any(
        seller == "null" and flag == "true"
        for seller, flag in zip(sellers, in_stock_flags)
    )


def find_detail_url(page: str) -> Optional[str]:
    """Return the src of the ItemInfo4 script tag, if the page has one."""
    soup = BeautifulSoup(page, "html.parser")
    script = soup.select_one(DETAIL_SCRIPT_SELECTOR)
    if script is None:
        return None
    return script.get("src")


class NeweggAdapter(BaseStockAdapter):
    """Newegg adapter with bot-check detection and detail-script fallback."""

    retailer_key = "newegg"
    retailer_name = "Newegg"

    async def handle_response(self, response: httpx.Response, target: Target) -> Target:
        body = response.text

        if BOT_CHECK_TEXT in body:
            raise RateLimitedError(target.key, "bot check")

        # Newer pages load the whole window state straight into the HTML
        if has_stock(body):
            return target

        detail_url = find_detail_url(body)
        if detail_url:
            # src may be protocol-relative or a path
            detail = await self._fetch_detail(str(response.url.join(detail_url)))
            if has_stock(detail):
                return target

        raise NotFoundError(target.key, target.name)

    async def _fetch_detail(self, detail_url: str) -> str:
        """Load the ItemInfo4 script referenced by the product page."""
        self.logger.debug("fetching_newegg_detail", url=detail_url)
        try:
            if self.http_client is not None:
                response = await self.http_client.get(detail_url)
            else:
                async with httpx.AsyncClient(follow_redirects=True) as client:
                    response = await client.get(detail_url)
        except httpx.HTTPError as e:
            raise NetworkFailure(detail_url, str(e) or type(e).__name__) from e
        return response.text
