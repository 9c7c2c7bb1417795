"""stockwatch: restock monitor for retailer product pages."""

__version__ = "0.1.0"
