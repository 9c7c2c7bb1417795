"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone
from typing import Callable, Dict, List, Tuple, Union

import httpx
import pytest

from stockwatch.schemas.target import Target
from stockwatch.scrapers.factory import AdapterFactory
from stockwatch.scrapers.poller import AvailabilityPoller, TestTargetCadence
from stockwatch.scrapers.register_adapters import register_all_adapters



# url -> (status, body) or url -> Exception to raise
Route = Union[Tuple[int, str], Exception]


class RecordingTransport(httpx.MockTransport):
    """MockTransport that serves canned responses and records requested URLs."""

    def __init__(self, routes: Dict[str, Route]):
        self.routes = routes
        self.requests: List[httpx.Request] = []
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, text="no route")
        if isinstance(route, Exception):
            raise route
        status, body = route
        if 300 <= status < 400:
            return httpx.Response(status, headers={"Location": body})
        return httpx.Response(status, text=body)

    @property
    def requested_urls(self) -> List[str]:
        return [str(r.url) for r in self.requests]


@pytest.fixture
def now() -> datetime:
    """A fixed cycle timestamp whose minute is a multiple of 10."""
    return datetime(2024, 3, 1, 12, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def factory() -> AdapterFactory:
    """A fresh factory with every built-in adapter registered."""
    return register_all_adapters(AdapterFactory())


@pytest.fixture
def poller(factory: AdapterFactory) -> AvailabilityPoller:
    """Poller that always checks test targets and never reloads a proxy."""
    return AvailabilityPoller(
        factory=factory,
        test_cadence=TestTargetCadence(always=True),
    )


@pytest.fixture
def make_client() -> Callable[[Dict[str, Route]], Tuple[httpx.AsyncClient, RecordingTransport]]:
    """Build an AsyncClient backed by canned routes."""

    def _make(routes: Dict[str, Route]) -> Tuple[httpx.AsyncClient, RecordingTransport]:
        transport = RecordingTransport(routes)
        client = httpx.AsyncClient(transport=transport, follow_redirects=True)
        return client, transport

    return _make


@pytest.fixture
def amd_target() -> Target:
    return Target(
        name="Ryzen 9 5950X",
        url="https://www.amd.com/en/direct-buy/5450881400/us",
        key="amd",
    )
