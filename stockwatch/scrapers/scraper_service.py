"""Monitor cycle orchestration.

This service connects the polling engine with its collaborators. It handles
the end-to-end flow of one cycle: build the shared client → poll → notify →
persist the updated rate-limit map.
"""

import time
from datetime import timedelta
from pathlib import Path
from typing import Optional, Union

import httpx
import structlog

from stockwatch.config import settings
from stockwatch.core.exceptions import (
    NotificationError,
    PlatformNotSupportedError,
)
from stockwatch.schemas.monitor_config import MonitorConfig
from stockwatch.scrapers.factory import AdapterFactory
from stockwatch.scrapers.poller import AvailabilityPoller, CycleResult, TestTargetCadence
from stockwatch.scrapers.utils.http_client import build_http_client
from stockwatch.scrapers.utils.proxy_manager import (
    NoOpProxyReloader,
    ProxyReloader,
    get_proxy_reloader,
)
from stockwatch.scrapers.utils.rate_limiter import RateLimitStore
from stockwatch.services.browser_opener import BrowserOpener, NoOpBrowserOpener, WebBrowserOpener
from stockwatch.services.config_store import save_config
from stockwatch.services.notification_service import DiscordNotifier

logger = structlog.get_logger(__name__)


class MonitorService:
    """Runs monitor cycles against a loaded MonitorConfig.

    The config object is the explicit state carried between cycles: its
    `ratelimit_keys` map is seeded into the rate-limit store before polling
    and written back (and saved) afterwards.
    """

    def __init__(
        self,
        config: MonitorConfig,
        config_path: Optional[Union[str, Path]] = None,
        factory: Optional[AdapterFactory] = None,
        notifier: Optional[DiscordNotifier] = None,
        browser_opener: Optional[BrowserOpener] = None,
        proxy_reloader: Optional[ProxyReloader] = None,
        test_cadence: Optional[TestTargetCadence] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the monitor service.

        Args:
            config: Loaded configuration (mutated in place with rate limits)
            config_path: Where to persist the config after each cycle; None skips saving
            factory: Adapter registry
            notifier: Restock notifier, defaults to Discord with config.discord_url
            browser_opener: Used when config.should_open_browser is set
            proxy_reloader: Defaults to the platform reloader when a proxy is configured
            test_cadence: Policy for checking test targets
            transport: Custom transport for the per-cycle HTTP client
        """
        self.config = config
        self.config_path = config_path
        self.notifier = notifier or DiscordNotifier(config.discord_url)
        self.browser_opener = browser_opener or (
            WebBrowserOpener() if config.open_browser_enabled() else NoOpBrowserOpener()
        )
        if proxy_reloader is None:
            proxy_reloader = get_proxy_reloader() if config.proxy_url else NoOpProxyReloader()
        self.poller = AvailabilityPoller(
            factory=factory,
            proxy_reloader=proxy_reloader,
            test_cadence=test_cadence,
        )
        self.transport = transport
        self.logger = logger.bind(service="monitor_service")

    def _rate_limit_store(self) -> RateLimitStore:
        return RateLimitStore(
            entries=self.config.ratelimit_keys,
            cooldown=timedelta(seconds=settings.RATE_LIMIT_COOLDOWN_SECONDS),
        )

    async def poll_once(self) -> CycleResult:
        """Poll every configured target once and dispatch the results.

        Raises:
            ClientBuildError: The shared client can't be built; nothing was polled
        """
        client = build_http_client(proxy_url=self.config.proxy_url, transport=self.transport)
        store = self._rate_limit_store()

        async with client:
            result = await self.poller.poll(self.config.targets, client, store)

        store.prune(self.poller.clock())
        self.config.ratelimit_keys = store.to_dict() or None

        await self._dispatch(result)
        return result

    async def run_cycle(self) -> float:
        """Run one cycle and persist the config.

        Returns:
            Cycle runtime in seconds
        """
        start = time.monotonic()
        self.logger.info("monitor_cycle_started", targets=len(self.config.targets))

        await self.poll_once()

        if self.config_path is not None:
            save_config(self.config, self.config_path)

        runtime = time.monotonic() - start
        self.logger.info("monitor_cycle_complete", runtime_seconds=round(runtime, 2))
        return runtime

    async def _dispatch(self, result: CycleResult) -> None:
        for target in result.restocked:
            if self.config.open_browser_enabled():
                try:
                    self.browser_opener.open(target.url)
                except PlatformNotSupportedError as e:
                    self.logger.warning(
                        "browser_open_failed",
                        target_key=target.key,
                        target_url=target.url,
                        error=e.message,
                    )

            try:
                await self.notifier.notify_restock(target)
            except NotificationError as e:
                self.logger.error(
                    "restock_dispatch_failed",
                    target_key=target.key,
                    target_name=target.name,
                    error=e.message,
                )

        for target in result.diagnostics.test_targets_not_found:
            try:
                await self.notifier.notify_test_target_not_found(target)
            except NotificationError as e:
                self.logger.error(
                    "test_alert_dispatch_failed",
                    target_key=target.key,
                    target_name=target.name,
                    error=e.message,
                )
