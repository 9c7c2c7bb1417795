"""Concurrent multi-target availability polling.

One call to `AvailabilityPoller.poll()` is one cycle:

1. select eligible targets (active, not cooling down, test targets on cadence)
2. fetch and classify every eligible target concurrently
3. aggregate the outcomes sequentially, which is the only place shared state
   (the rate-limit store and the proxy-reload flag) is mutated
4. reload the anonymizing proxy if anything was throttled

A single target's failure never aborts the cycle. The engine never retries
within a cycle; the next cycle is the retry.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Set

import httpx
import structlog

from stockwatch.config import settings
from stockwatch.core.exceptions import (
    BadStatusError,
    MisconfiguredAdapterError,
    NetworkFailure,
    NotFoundError,
    ProxyReloadError,
    RateLimitedError,
    StockWatchError,
    TransientClientError,
    TransientServerError,
    UnknownTargetError,
)
from stockwatch.schemas.target import Target
from stockwatch.scrapers.base import BaseStockAdapter
from stockwatch.scrapers.factory import AdapterFactory, get_adapter_factory
from stockwatch.scrapers.utils.proxy_manager import NoOpProxyReloader, ProxyReloader
from stockwatch.scrapers.utils.rate_limiter import RateLimitStore


logger = structlog.get_logger(__name__)


class OutcomeKind(str, Enum):
    """Classification of one target check."""

    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    RATE_LIMITED = "rate_limited"
    TRANSIENT_ERROR = "transient_error"
    FATAL_ERROR = "fatal_error"
    UNKNOWN_TARGET = "unknown_target"


@dataclass(frozen=True)
class PollOutcome:
    """Result of fetching and classifying a single target."""

    target: Target
    kind: OutcomeKind
    error: Optional[BaseException] = None

    @property
    def detail(self) -> Optional[str]:
        if self.error is None:
            return None
        return str(self.error)


@dataclass
class CycleDiagnostics:
    """Operator-facing summary of a cycle."""

    # retailer key -> names of targets that were checked successfully
    checked: Dict[str, List[str]] = field(default_factory=dict)
    # Test targets that came back "not found": a detection-logic regression
    test_targets_not_found: List[Target] = field(default_factory=list)

    def record_checked(self, target: Target) -> None:
        self.checked.setdefault(target.key, []).append(target.name)

    def checked_counts(self) -> Dict[str, int]:
        return {key: len(names) for key, names in self.checked.items()}


@dataclass
class CycleResult:
    """Everything the cycle driver needs after one poll."""

    restocked: Set[Target] = field(default_factory=set)
    rate_limit_updates: Dict[str, datetime] = field(default_factory=dict)
    diagnostics: CycleDiagnostics = field(default_factory=CycleDiagnostics)
    proxy_reload_requested: bool = False


class TestTargetCadence:
    """Decides whether test targets are checked this cycle.

    Test targets are only polled when the wall-clock minute is a multiple of
    `interval_minutes`, or on every cycle when `always` is set (debug mode).
    """

    __test__ = False  # not a pytest test class

    def __init__(self, interval_minutes: int = 10, always: bool = False):
        self.interval_minutes = interval_minutes
        self.always = always

    @classmethod
    def from_settings(cls) -> "TestTargetCadence":
        return cls(
            interval_minutes=settings.TEST_TARGET_INTERVAL_MINUTES,
            always=settings.DEBUG,
        )

    def allows(self, now: datetime) -> bool:
        if self.always or self.interval_minutes <= 1:
            return True
        return now.minute % self.interval_minutes == 0


def classify_status(response: httpx.Response, adapter: BaseStockAdapter, target: Target) -> None:
    """Reject responses that must not reach the adapter's text checks.

    Raises:
        RateLimitedError: 429, or the retailer's blocked-proxy redirect
        TransientServerError: 5xx
        TransientClientError: Other 4xx
        BadStatusError: Any other non-2xx status
    """
    status = response.status_code

    # https://developer.mozilla.org/en-US/docs/Web/HTTP/Status/429
    if status == 429:
        raise RateLimitedError(target.key, "HTTP 429")
    if adapter.is_blocked_redirect(response):
        raise RateLimitedError(target.key, f"redirected to {response.url}")

    if response.is_server_error:
        raise TransientServerError(status)
    if response.is_client_error:
        raise TransientClientError(status)
    if not response.is_success:
        raise BadStatusError(status)


def _outcome_kind_for(error: BaseException) -> OutcomeKind:
    if isinstance(error, NotFoundError):
        return OutcomeKind.UNAVAILABLE
    if isinstance(error, RateLimitedError):
        return OutcomeKind.RATE_LIMITED
    if isinstance(
        error,
        (TransientServerError, TransientClientError, BadStatusError, NetworkFailure),
    ):
        return OutcomeKind.TRANSIENT_ERROR
    if isinstance(error, UnknownTargetError):
        return OutcomeKind.UNKNOWN_TARGET
    return OutcomeKind.FATAL_ERROR


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AvailabilityPoller:
    """Runs polling cycles over a list of targets."""

    def __init__(
        self,
        factory: Optional[AdapterFactory] = None,
        proxy_reloader: Optional[ProxyReloader] = None,
        test_cadence: Optional[TestTargetCadence] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize the poller.

        Args:
            factory: Adapter registry, defaults to the global factory
            proxy_reloader: Called once after a cycle with any rate limit
            test_cadence: Policy for checking test targets
            clock: Source of "now" when poll() isn't given one
        """
        self.factory = factory or get_adapter_factory()
        self.proxy_reloader = proxy_reloader or NoOpProxyReloader()
        self.test_cadence = test_cadence or TestTargetCadence.from_settings()
        self.clock = clock
        self.logger = logger.bind(service="availability_poller")

    def select_eligible(
        self,
        targets: Iterable[Target],
        rate_limits: RateLimitStore,
        now: datetime,
    ) -> List[Target]:
        """Filter targets down to the ones to check this cycle."""
        test_allowed = self.test_cadence.allows(now)
        eligible = []
        for target in targets:
            if not target.active:
                continue
            if target.is_test and not test_allowed:
                continue
            if rate_limits.is_limited(target.key, now):
                self.logger.debug("target_cooling_down", target_key=target.key, target_name=target.name)
                continue
            eligible.append(target)
        return eligible

    async def check_target(self, target: Target, client: httpx.AsyncClient) -> PollOutcome:
        """Fetch and classify a single target.

        Never raises for classification problems; every error is folded into
        the returned outcome.
        """
        adapter = self.factory.create_adapter(target.key, http_client=client)
        try:
            if adapter is None:
                raise UnknownTargetError(target.key)

            response = await adapter.get_request(target, client)
            classify_status(response, adapter, target)
            await adapter.handle_response(response, target)
        except StockWatchError as e:
            return PollOutcome(target=target, kind=_outcome_kind_for(e), error=e)

        return PollOutcome(target=target, kind=OutcomeKind.AVAILABLE)

    async def poll(
        self,
        targets: Iterable[Target],
        client: httpx.AsyncClient,
        rate_limits: RateLimitStore,
        now: Optional[datetime] = None,
    ) -> CycleResult:
        """Run one full polling cycle.

        Args:
            targets: Configured targets; never mutated
            client: Shared HTTP client for this cycle
            rate_limits: Cool-down store, updated in place for throttled keys
            now: Cycle timestamp, defaults to the poller's clock

        Returns:
            CycleResult with restocked targets, rate-limit updates and diagnostics
        """
        now = now or self.clock()
        eligible = self.select_eligible(targets, rate_limits, now)
        self.logger.info("poll_cycle_started", eligible=len(eligible))

        results = await asyncio.gather(
            *(self.check_target(target, client) for target in eligible),
            return_exceptions=True,
        )

        result = CycleResult()
        for target, outcome in zip(eligible, results):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                self.logger.error(
                    "target_check_crashed",
                    target_key=target.key,
                    target_name=target.name,
                    target_url=target.url,
                    error=str(outcome),
                    exc_info=outcome,
                )
                continue
            self._aggregate(outcome, result, rate_limits, now)

        if result.proxy_reload_requested:
            try:
                await self.proxy_reloader.reload()
            except (ProxyReloadError, OSError) as e:
                self.logger.error("proxy_reload_failed", error=str(e))

        self._log_summary(result)
        return result

    def _aggregate(
        self,
        outcome: PollOutcome,
        result: CycleResult,
        rate_limits: RateLimitStore,
        now: datetime,
    ) -> None:
        target = outcome.target

        if outcome.kind is OutcomeKind.AVAILABLE:
            result.diagnostics.record_checked(target)
            if target.is_test:
                return
            if target in result.restocked:
                self.logger.warning("duplicate_target_found", target_key=target.key, target_name=target.name)
                return
            result.restocked.add(target)

        elif outcome.kind is OutcomeKind.UNAVAILABLE:
            result.diagnostics.record_checked(target)
            if target.is_test:
                self.logger.warning(
                    "test_target_not_found",
                    target_key=target.key,
                    target_name=target.name,
                    target_url=target.url,
                )
                result.diagnostics.test_targets_not_found.append(target)

        elif outcome.kind is OutcomeKind.RATE_LIMITED:
            result.proxy_reload_requested = True
            expiry = rate_limits.set_limit(target.key, now)
            result.rate_limit_updates[target.key] = expiry
            self.logger.warning(
                "target_rate_limited",
                target_key=target.key,
                target_name=target.name,
                target_url=target.url,
                error=outcome.detail,
                expires_at=expiry.isoformat(),
            )

        elif outcome.kind is OutcomeKind.UNKNOWN_TARGET:
            self.logger.warning("unknown_target", target_key=target.key, target_name=target.name)

        else:
            log = self.logger.error if isinstance(outcome.error, MisconfiguredAdapterError) else self.logger.warning
            log(
                "target_check_failed",
                outcome=outcome.kind.value,
                target_key=target.key,
                target_name=target.name,
                target_url=target.url,
                error=outcome.detail,
            )

    def _log_summary(self, result: CycleResult) -> None:
        for key, names in sorted(result.diagnostics.checked.items()):
            self.logger.info("sites_checked", retailer_key=key, count=len(names), names=names)
        self.logger.info(
            "poll_cycle_complete",
            restocked=len(result.restocked),
            rate_limited=len(result.rate_limit_updates),
            test_targets_not_found=len(result.diagnostics.test_targets_not_found),
        )
