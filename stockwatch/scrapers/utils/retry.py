"""Retry utilities with exponential backoff for outbound HTTP calls.

Retailer checks are never retried inside a cycle; these decorators are for
collaborator calls such as webhook delivery.
"""

import logging

import httpx
import structlog
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)


# stdlib-style BoundLogger: tenacity calls logger.log(level, msg)
logger = structlog.stdlib.get_logger(__name__)


# Reusable retry decorator for HTTP requests (httpx)
http_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=30),
    retry=retry_if_exception_type(
        (
            httpx.ConnectError,
            httpx.TimeoutException,
            httpx.RemoteProtocolError,
        )
    ),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
