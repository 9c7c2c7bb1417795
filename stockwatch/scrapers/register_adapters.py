"""Register all retailer adapters with a factory."""

from typing import Optional

import structlog

from stockwatch.scrapers.factory import AdapterFactory
from stockwatch.scrapers.adapters import (
    AmazonAdapter,
    AmdAdapter,
    AntonlineAdapter,
    BestBuyAdapter,
    BnHAdapter,
    NeweggAdapter,
    TigerDirectAdapter,
)

logger = structlog.get_logger(__name__)


SUPPORTED_ADAPTERS = (
    NeweggAdapter,
    AmazonAdapter,
    BestBuyAdapter,
    BnHAdapter,
    AntonlineAdapter,
    AmdAdapter,
    TigerDirectAdapter,
)


def register_all_adapters(factory: Optional[AdapterFactory] = None) -> AdapterFactory:
    """Register every supported adapter under its retailer key.

    Args:
        factory: Factory to populate, defaults to the global one

    Returns:
        The populated factory
    """
    if factory is None:
        from stockwatch.scrapers.factory import adapter_factory

        factory = adapter_factory

    for adapter_class in SUPPORTED_ADAPTERS:
        factory.register_adapter(adapter_class.retailer_key, adapter_class)

    logger.info(
        "all_adapters_registered",
        count=len(factory.get_registered_keys()),
        retailers=factory.get_registered_keys(),
    )
    return factory
