"""TigerDirect adapter."""

from stockwatch.scrapers.base import ContainsMarkerAdapter


class TigerDirectAdapter(ContainsMarkerAdapter):
    retailer_key = "tigerdirect"
    retailer_name = "TigerDirect"

    sold_out_marker = '<h2 class="outofStock">Currently Out Of Stock!</h2>'
