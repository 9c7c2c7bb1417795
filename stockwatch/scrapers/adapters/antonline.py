"""Antonline adapter."""

import re

from stockwatch.scrapers.base import BaseStockAdapter


class AntonlineAdapter(BaseStockAdapter):
    """Sold-out items show a disabled "Sold Out" button span."""

    retailer_key = "antonline"
    retailer_name = "Antonline"

    absent_pattern = re.compile(r"Sold Out\s?</span", re.IGNORECASE)
