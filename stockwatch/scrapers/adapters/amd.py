"""AMD direct store adapter."""

from stockwatch.scrapers.base import ContainsMarkerAdapter


class AmdAdapter(ContainsMarkerAdapter):
    """AMD renders a fixed paragraph on sold-out product pages."""

    retailer_key = "amd"
    retailer_name = "AMD"

    sold_out_marker = '<p class="product-out-of-stock">Out of stock</p>'
