"""Availability polling for retailer product pages.

This package provides:
- Base adapter classes for building retailer-specific stock checks
- Utility modules for the shared HTTP client, cool-down store and proxy reload
- Factory for creating and managing adapter instances
- The concurrent polling engine, cycle service and daemon scheduler
"""

from .base import BaseStockAdapter, ContainsMarkerAdapter
from .factory import AdapterFactory, adapter_factory, get_adapter_factory
from .poller import (
    AvailabilityPoller,
    CycleDiagnostics,
    CycleResult,
    OutcomeKind,
    PollOutcome,
    TestTargetCadence,
    classify_status,
)

__all__ = [
    # Base classes
    "BaseStockAdapter",
    "ContainsMarkerAdapter",
    # Factory
    "AdapterFactory",
    "adapter_factory",
    "get_adapter_factory",
    # Polling engine
    "AvailabilityPoller",
    "CycleDiagnostics",
    "CycleResult",
    "OutcomeKind",
    "PollOutcome",
    "TestTargetCadence",
    "classify_status",
]
