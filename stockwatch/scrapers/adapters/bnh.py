"""B&H Photo Video adapter."""

import httpx

from stockwatch.core.exceptions import NotFoundError
from stockwatch.schemas.target import Target
from stockwatch.scrapers.base import BaseStockAdapter


class BnHAdapter(BaseStockAdapter):
    """B&H embeds its stock flags in the page's JSON state.

    A product is buyable when neither "notify me" button is shown. B&H sends
    blocked proxy exit nodes to a dedicated error page instead of a 429.
    """

    retailer_key = "bnh"
    retailer_name = "B&H Photo Video"

    blocked_redirect_urls = ("https://site-not-available.bhphotovideo.com/500Error",)

    NOTIFY_AVAILABLE_OFF = 'showNotifyWhenAvailable":false'
    NOTIFY_IN_STOCK_OFF = 'showNotifyWhenInStock":false'

    async def handle_response(self, response: httpx.Response, target: Target) -> Target:
        body = response.text
        if self.NOTIFY_AVAILABLE_OFF in body and self.NOTIFY_IN_STOCK_OFF in body:
            return target
        raise NotFoundError(target.key, target.name)
