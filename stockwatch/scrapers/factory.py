"""Factory for creating retailer adapter instances."""

from typing import Dict, List, Optional, Type

import httpx
import structlog

from stockwatch.scrapers.base import BaseStockAdapter


logger = structlog.get_logger(__name__)


class AdapterFactory:
    """Registry of retailer key -> adapter class.

    The set of retailers is fixed and small; a key that isn't registered has
    no adapter and the target is reported as unknown without a network call.
    """

    def __init__(self):
        """Initialize the adapter factory."""
        self._adapter_registry: Dict[str, Type[BaseStockAdapter]] = {}

    def register_adapter(self, retailer_key: str, adapter_class: Type[BaseStockAdapter]) -> None:
        """Register an adapter class for a retailer.

        Args:
            retailer_key: Retailer key used in target configs (e.g., "newegg")
            adapter_class: Adapter class (must inherit from BaseStockAdapter)
        """
        if not isinstance(adapter_class, type) or not issubclass(adapter_class, BaseStockAdapter):
            raise ValueError(f"Adapter class must inherit from BaseStockAdapter: {adapter_class}")

        self._adapter_registry[retailer_key] = adapter_class
        logger.debug("adapter_registered", retailer_key=retailer_key, adapter_class=adapter_class.__name__)

    def create_adapter(
        self,
        retailer_key: str,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> Optional[BaseStockAdapter]:
        """Create an adapter instance bound to the cycle's HTTP client.

        Args:
            retailer_key: Retailer key
            http_client: Shared client injected for secondary fetches

        Returns:
            Adapter instance, or None if the key is not registered
        """
        adapter_class = self._adapter_registry.get(retailer_key)
        if not adapter_class:
            return None
        return adapter_class(http_client=http_client)

    def get_registered_keys(self) -> List[str]:
        return list(self._adapter_registry.keys())

    def has_adapter(self, retailer_key: str) -> bool:
        return retailer_key in self._adapter_registry


# Global factory instance
adapter_factory = AdapterFactory()


def get_adapter_factory() -> AdapterFactory:
    """Get the global adapter factory, registering built-in adapters on first use."""
    if not adapter_factory.get_registered_keys():
        from stockwatch.scrapers.register_adapters import register_all_adapters

        register_all_adapters(adapter_factory)
    return adapter_factory
