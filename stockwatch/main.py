"""stockwatch command line entry point.

Usage:
    stockwatch                        # one cycle, or daemon if the config says so
    stockwatch --config ./config.json --daemon
    stockwatch --once --debug
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import structlog

from stockwatch.config import settings
from stockwatch.core.exceptions import ClientBuildError, ConfigError
from stockwatch.schemas.monitor_config import MonitorConfig
from stockwatch.scrapers.factory import get_adapter_factory
from stockwatch.scrapers.poller import TestTargetCadence
from stockwatch.scrapers.scheduler import MonitorScheduler
from stockwatch.scrapers.scraper_service import MonitorService
from stockwatch.services.config_store import load_config


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog for console output."""
    level_value = getattr(logging, (level or "INFO").upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )
    # tenacity and apscheduler log through the stdlib
    logging.basicConfig(
        level=level_value,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Watch retailer product pages and notify when they restock.",
    )
    parser.add_argument(
        "--config",
        default=settings.CONFIG_PATH,
        help=f"Path to the JSON config file (default: {settings.CONFIG_PATH})",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--daemon", dest="daemon", action="store_true", default=None,
                      help="Keep polling on an interval (overrides daemon_mode)")
    mode.add_argument("--once", dest="daemon", action="store_false",
                      help="Run a single cycle and exit")
    parser.add_argument("--debug", action="store_true", default=settings.DEBUG,
                        help="Verbose logging and check test targets every cycle")
    return parser.parse_args(argv)


def daemon_interval(config: MonitorConfig) -> int:
    """Seconds between daemon cycles; an explicit 0 in the config is kept."""
    if config.daemon_timeout is None:
        return settings.DEFAULT_DAEMON_TIMEOUT
    return config.daemon_timeout


async def _run_daemon(service: MonitorService, interval_seconds: int) -> None:
    scheduler = MonitorScheduler(service, interval_seconds)
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        await scheduler.stop()


async def run(args: argparse.Namespace) -> int:
    log = structlog.get_logger("stockwatch")

    try:
        config = load_config(args.config)
    except ConfigError as e:
        log.error("config_load_failed", path=args.config, error=e.message)
        return 1

    cadence = TestTargetCadence(
        interval_minutes=settings.TEST_TARGET_INTERVAL_MINUTES,
        always=args.debug,
    )
    service = MonitorService(
        config,
        config_path=args.config,
        factory=get_adapter_factory(),
        test_cadence=cadence,
    )

    daemon = config.daemon_mode if args.daemon is None else args.daemon
    if daemon:
        interval = daemon_interval(config)
        log.info("daemon_mode_enabled", interval_seconds=interval)
        await _run_daemon(service, interval)
        return 0

    try:
        await service.run_cycle()
    except (ClientBuildError, ConfigError) as e:
        log.error("monitor_cycle_aborted", error=e.message)
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    configure_logging("DEBUG" if args.debug else settings.LOG_LEVEL)
    try:
        exit_code = asyncio.run(run(args))
    except KeyboardInterrupt:
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
