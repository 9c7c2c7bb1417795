"""Tests for the concurrent availability polling engine.

Tests cover:
- Eligibility (inactive, cooling down, test cadence)
- Status pre-classification and the outcome taxonomy
- Aggregation (dedupe, test targets, rate-limit writes, proxy reload)
- Isolation of per-target failures
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import httpx
import pytest
from structlog.testing import capture_logs

from stockwatch.core.exceptions import ProxyReloadError
from stockwatch.schemas.target import Target
from stockwatch.scrapers.base import BaseStockAdapter
from stockwatch.scrapers.poller import (
    AvailabilityPoller,
    CycleResult,
    OutcomeKind,
    TestTargetCadence,
    classify_status,
)
from stockwatch.scrapers.adapters import AmdAdapter, BnHAdapter
from stockwatch.scrapers.utils.rate_limiter import RateLimitStore

AMD_OUT_OF_STOCK = AmdAdapter.sold_out_marker


IN_STOCK_PAGE = "<html><button>Add to cart</button></html>"


# ============================================================================
# SCENARIOS
# ============================================================================

class TestScenarios:
    """End-to-end scenarios for one cycle."""

    async def test_available_target_is_restocked(self, poller, make_client, amd_target, now):
        """A page without the sold-out marker is a restock."""
        client, _ = make_client({amd_target.url: (200, IN_STOCK_PAGE)})
        async with client:
            result = await poller.poll([amd_target], client, RateLimitStore(), now=now)

        assert result.restocked == {amd_target}
        assert result.diagnostics.checked == {"amd": [amd_target.name]}
        assert result.rate_limit_updates == {}
        assert result.proxy_reload_requested is False

    async def test_sold_out_marker_is_not_restocked(self, poller, make_client, amd_target, now):
        """The exact sold-out paragraph means not found, but it is still tallied."""
        page = f"<div>{AMD_OUT_OF_STOCK}</div>"
        client, _ = make_client({amd_target.url: (200, page)})
        async with client:
            result = await poller.poll([amd_target], client, RateLimitStore(), now=now)

        assert result.restocked == set()
        assert result.diagnostics.checked_counts() == {"amd": 1}
        assert result.diagnostics.test_targets_not_found == []

    async def test_429_sets_cooldown_and_requests_proxy_reload(self, factory, make_client, amd_target, now):
        """HTTP 429 writes a 2 minute cool-down and asks for a proxy reload."""
        reloader = AsyncMock()
        poller = AvailabilityPoller(
            factory=factory,
            proxy_reloader=reloader,
            test_cadence=TestTargetCadence(always=True),
        )
        store = RateLimitStore()
        client, _ = make_client({amd_target.url: (429, "slow down")})

        async with client:
            result = await poller.poll([amd_target], client, store, now=now)

        expected_expiry = now + timedelta(seconds=120)
        assert result.rate_limit_updates == {"amd": expected_expiry}
        assert store.get_expiry("amd") == expected_expiry
        assert store.is_limited("amd", now + timedelta(seconds=119))
        assert result.proxy_reload_requested is True
        assert result.restocked == set()
        assert result.diagnostics.checked == {}
        reloader.reload.assert_awaited_once()

    async def test_test_target_not_found_is_flagged(self, poller, make_client, now):
        """A test target reported out of stock signals an adapter regression."""
        target = Target(
            name="Known good item",
            url="https://www.amd.com/en/direct-buy/test/us",
            key="amd",
            is_test=True,
        )
        client, _ = make_client({target.url: (200, AMD_OUT_OF_STOCK)})
        async with client:
            result = await poller.poll([target], client, RateLimitStore(), now=now)

        assert result.restocked == set()
        assert result.diagnostics.test_targets_not_found == [target]

    async def test_unknown_key_makes_no_request(self, poller, make_client, now):
        """Unsupported retailers are dropped without touching the network."""
        target = Target(name="Widget", url="https://unsupported.example/widget", key="unsupported-store")
        client, transport = make_client({})

        with capture_logs() as logs:
            async with client:
                result = await poller.poll([target], client, RateLimitStore(), now=now)
            outcome = await poller.check_target(target, client)

        assert transport.requests == []
        assert outcome.kind is OutcomeKind.UNKNOWN_TARGET
        assert result == CycleResult()
        assert any(entry["event"] == "unknown_target" for entry in logs)


# ============================================================================
# TESTS: ELIGIBILITY
# ============================================================================

class TestEligibility:
    """Tests for target selection before dispatch."""

    async def test_inactive_targets_are_never_requested(self, poller, make_client, now):
        target = Target(name="Off", url="https://www.amd.com/off", key="amd", active=False)
        client, transport = make_client({target.url: (200, IN_STOCK_PAGE)})

        async with client:
            result = await poller.poll([target], client, RateLimitStore(), now=now)

        assert transport.requests == []
        assert result.restocked == set()
        assert result.diagnostics.checked == {}

    async def test_rate_limited_key_is_skipped(self, poller, make_client, amd_target, now):
        store = RateLimitStore({"amd": now + timedelta(seconds=30)})
        client, transport = make_client({amd_target.url: (200, IN_STOCK_PAGE)})

        async with client:
            result = await poller.poll([amd_target], client, store, now=now)

        assert transport.requests == []
        assert result.restocked == set()

    async def test_expired_cooldown_is_polled_again(self, poller, make_client, amd_target, now):
        store = RateLimitStore({"amd": now - timedelta(seconds=1)})
        client, transport = make_client({amd_target.url: (200, IN_STOCK_PAGE)})

        async with client:
            result = await poller.poll([amd_target], client, store, now=now)

        assert transport.requested_urls == [amd_target.url]
        assert result.restocked == {amd_target}

    def test_test_targets_follow_cadence(self, factory):
        cadence = TestTargetCadence(interval_minutes=10)
        poller = AvailabilityPoller(factory=factory, test_cadence=cadence)
        test_target = Target(name="T", url="https://www.amd.com/t", key="amd", is_test=True)
        real_target = Target(name="R", url="https://www.amd.com/r", key="amd")
        store = RateLimitStore()

        on_cadence = datetime(2024, 3, 1, 12, 40, tzinfo=timezone.utc)
        off_cadence = datetime(2024, 3, 1, 12, 41, tzinfo=timezone.utc)

        assert poller.select_eligible([test_target, real_target], store, on_cadence) == [
            test_target,
            real_target,
        ]
        assert poller.select_eligible([test_target, real_target], store, off_cadence) == [real_target]

    def test_debug_cadence_always_allows(self):
        cadence = TestTargetCadence(interval_minutes=10, always=True)
        assert cadence.allows(datetime(2024, 3, 1, 12, 41, tzinfo=timezone.utc))


# ============================================================================
# TESTS: STATUS CLASSIFICATION
# ============================================================================

class TestStatusClassification:
    """Status codes are classified before the adapter sees the body."""

    @pytest.mark.parametrize(
        "status,expected",
        [
            (500, OutcomeKind.TRANSIENT_ERROR),
            (503, OutcomeKind.TRANSIENT_ERROR),
            (404, OutcomeKind.TRANSIENT_ERROR),
            (403, OutcomeKind.TRANSIENT_ERROR),
            (304, OutcomeKind.TRANSIENT_ERROR),
            (429, OutcomeKind.RATE_LIMITED),
        ],
    )
    async def test_non_success_statuses(self, poller, make_client, amd_target, status, expected):
        # An available body proves the adapter never ran
        client, _ = make_client({amd_target.url: (status, IN_STOCK_PAGE)})
        async with client:
            outcome = await poller.check_target(amd_target, client)

        assert outcome.kind is expected
        assert str(status) in outcome.detail or expected is OutcomeKind.RATE_LIMITED

    def test_status_error_types(self, amd_target):
        from stockwatch.core.exceptions import (
            BadStatusError,
            TransientClientError,
            TransientServerError,
        )

        adapter = AmdAdapter()
        request = httpx.Request("GET", amd_target.url)

        with pytest.raises(TransientServerError):
            classify_status(httpx.Response(502, request=request), adapter, amd_target)
        with pytest.raises(TransientClientError):
            classify_status(httpx.Response(410, request=request), adapter, amd_target)
        with pytest.raises(BadStatusError):
            classify_status(httpx.Response(304, request=request), adapter, amd_target)
        classify_status(httpx.Response(200, request=request), adapter, amd_target)

    async def test_bnh_blocked_redirect_is_rate_limit(self, poller, make_client, now):
        target = Target(name="Camera", url="https://www.bhphotovideo.com/c/product/1", key="bnh")
        blocked = BnHAdapter.blocked_redirect_urls[0]
        client, _ = make_client({
            target.url: (302, blocked),
            blocked: (500, "Site not available"),
        })
        store = RateLimitStore()

        async with client:
            result = await poller.poll([target], client, store, now=now)

        assert result.rate_limit_updates == {"bnh": now + timedelta(minutes=2)}
        assert result.proxy_reload_requested is True

    async def test_network_failure_is_transient(self, poller, make_client, amd_target, now):
        client, _ = make_client({amd_target.url: httpx.ConnectError("connection refused")})

        async with client:
            outcome = await poller.check_target(amd_target, client)
            result = await poller.poll([amd_target], client, RateLimitStore(), now=now)

        assert outcome.kind is OutcomeKind.TRANSIENT_ERROR
        assert "connection refused" in outcome.detail
        assert result == CycleResult()


# ============================================================================
# TESTS: AGGREGATION
# ============================================================================

class TestAggregation:
    """Tests for outcome aggregation into the cycle result."""

    async def test_identical_targets_collapse_to_one_restock(self, poller, make_client, amd_target, now):
        duplicate = Target(**amd_target.model_dump())
        client, _ = make_client({amd_target.url: (200, IN_STOCK_PAGE)})

        with capture_logs() as logs:
            async with client:
                result = await poller.poll([amd_target, duplicate], client, RateLimitStore(), now=now)

        assert result.restocked == {amd_target}
        assert result.diagnostics.checked_counts() == {"amd": 2}
        assert [e["event"] for e in logs].count("duplicate_target_found") == 1

    async def test_available_test_target_is_never_restocked(self, poller, make_client, now):
        target = Target(name="Known good", url="https://www.amd.com/good", key="amd", is_test=True)
        client, _ = make_client({target.url: (200, IN_STOCK_PAGE)})

        async with client:
            result = await poller.poll([target], client, RateLimitStore(), now=now)

        assert result.restocked == set()
        assert result.diagnostics.checked == {"amd": ["Known good"]}
        assert result.diagnostics.test_targets_not_found == []

    async def test_one_failure_does_not_block_others(self, poller, make_client, now):
        good = Target(name="Good", url="https://www.amd.com/good", key="amd")
        broken = Target(name="Broken", url="https://www.antonline.com/broken", key="antonline")
        slow = Target(name="Down", url="https://www.tigerdirect.com/down", key="tigerdirect")
        client, _ = make_client({
            good.url: (200, IN_STOCK_PAGE),
            broken.url: httpx.ReadTimeout("timed out"),
            slow.url: (502, "bad gateway"),
        })

        async with client:
            result = await poller.poll([good, broken, slow], client, RateLimitStore(), now=now)

        assert result.restocked == {good}
        assert result.diagnostics.checked == {"amd": ["Good"]}

    async def test_misconfigured_adapter_is_contained(self, factory, make_client, amd_target, now):
        class NoLogicAdapter(BaseStockAdapter):
            retailer_key = "nologic"

        factory.register_adapter("nologic", NoLogicAdapter)
        poller = AvailabilityPoller(factory=factory, test_cadence=TestTargetCadence(always=True))
        target = Target(name="Thing", url="https://nologic.example/thing", key="nologic")
        client, _ = make_client({
            target.url: (200, IN_STOCK_PAGE),
            amd_target.url: (200, IN_STOCK_PAGE),
        })

        async with client:
            outcome = await poller.check_target(target, client)
            result = await poller.poll([target, amd_target], client, RateLimitStore(), now=now)

        assert outcome.kind is OutcomeKind.FATAL_ERROR
        assert result.restocked == {amd_target}

    async def test_unexpected_adapter_crash_is_contained(self, factory, make_client, amd_target, now):
        class CrashingAdapter(BaseStockAdapter):
            retailer_key = "crashy"

            async def handle_response(self, response, target):
                raise RuntimeError("boom")

        factory.register_adapter("crashy", CrashingAdapter)
        poller = AvailabilityPoller(factory=factory, test_cadence=TestTargetCadence(always=True))
        target = Target(name="Crash", url="https://crashy.example/item", key="crashy")
        client, _ = make_client({
            target.url: (200, IN_STOCK_PAGE),
            amd_target.url: (200, IN_STOCK_PAGE),
        })

        with capture_logs() as logs:
            async with client:
                result = await poller.poll([target, amd_target], client, RateLimitStore(), now=now)

        assert result.restocked == {amd_target}
        assert any(e["event"] == "target_check_crashed" for e in logs)

    async def test_proxy_reload_failure_is_logged(self, factory, make_client, amd_target, now):
        reloader = AsyncMock()
        reloader.reload.side_effect = ProxyReloadError(1)
        poller = AvailabilityPoller(
            factory=factory,
            proxy_reloader=reloader,
            test_cadence=TestTargetCadence(always=True),
        )
        client, _ = make_client({amd_target.url: (429, "")})

        with capture_logs() as logs:
            async with client:
                result = await poller.poll([amd_target], client, RateLimitStore(), now=now)

        assert result.proxy_reload_requested is True
        assert any(e["event"] == "proxy_reload_failed" for e in logs)

    async def test_proxy_reload_not_called_without_rate_limit(self, factory, make_client, amd_target, now):
        reloader = AsyncMock()
        poller = AvailabilityPoller(
            factory=factory,
            proxy_reloader=reloader,
            test_cadence=TestTargetCadence(always=True),
        )
        client, _ = make_client({amd_target.url: (200, IN_STOCK_PAGE)})

        async with client:
            await poller.poll([amd_target], client, RateLimitStore(), now=now)

        reloader.reload.assert_not_awaited()

    async def test_poll_is_idempotent_for_identical_input(self, poller, make_client, now):
        targets = [
            Target(name="In", url="https://www.amd.com/in", key="amd"),
            Target(name="Out", url="https://www.amd.com/out", key="amd"),
            Target(name="Limited", url="https://www.antonline.com/limited", key="antonline"),
        ]
        routes = {
            targets[0].url: (200, IN_STOCK_PAGE),
            targets[1].url: (200, AMD_OUT_OF_STOCK),
            targets[2].url: (429, ""),
        }

        results = []
        for _ in range(2):
            client, _ = make_client(routes)
            async with client:
                results.append(await poller.poll(targets, client, RateLimitStore(), now=now))

        assert results[0] == results[1]
        assert results[0].restocked == {targets[0]}
        assert set(results[0].rate_limit_updates) == {"antonline"}

    async def test_targets_are_dispatched_concurrently(self, factory, now):
        """No target's response blocks another: all requests are in flight together."""

        targets = [
            Target(name=f"Item {i}", url=f"https://www.amd.com/item/{i}", key="amd")
            for i in range(3)
        ]
        in_flight = 0
        peak = 0

        async def handler(request: httpx.Request) -> httpx.Response:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return httpx.Response(200, text=IN_STOCK_PAGE)

        poller = AvailabilityPoller(factory=factory, test_cadence=TestTargetCadence(always=True))
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            result = await poller.poll(targets, client, RateLimitStore(), now=now)

        assert peak == len(targets)
        assert result.restocked == set(targets)
