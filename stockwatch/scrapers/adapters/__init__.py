"""Retailer-specific adapter implementations.

Each adapter module implements a class that inherits from BaseStockAdapter.
"""

from .amazon import AmazonAdapter
from .amd import AmdAdapter
from .antonline import AntonlineAdapter
from .bestbuy import BestBuyAdapter
from .bnh import BnHAdapter
from .newegg import NeweggAdapter
from .tigerdirect import TigerDirectAdapter

__all__ = [
    "AmazonAdapter",
    "AmdAdapter",
    "AntonlineAdapter",
    "BestBuyAdapter",
    "BnHAdapter",
    "NeweggAdapter",
    "TigerDirectAdapter",
]
