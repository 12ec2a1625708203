"""Shared HTTP helpers used by registry clients.

Encapsulates timeout, retry and backoff handling so registry modules avoid
duplicating try/except blocks. Only transient failures (connection errors,
timeouts, 429 and 5xx responses) are retried.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional, Tuple

import aiohttp

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


def create_session(timeout: Optional[int] = None, limit: Optional[int] = None) -> aiohttp.ClientSession:
    """Create a client session with project defaults."""
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=timeout or Constants.REQUEST_TIMEOUT),
        connector=aiohttp.TCPConnector(limit=limit or Constants.MAX_CONCURRENCY),
        headers={"User-Agent": Constants.USER_AGENT},
    )


def backoff_delay(attempt: int, base_delay: Optional[float] = None) -> float:
    """Exponential delay before retry number `attempt` (0-based)."""
    base = Constants.HTTP_RETRY_BASE_DELAY_SEC if base_delay is None else base_delay
    return base * (2 ** attempt)


async def fetch_text(
    session: aiohttp.ClientSession,
    url: str,
    *,
    context: str = "registry",
    retry_max: Optional[int] = None,
    base_delay: Optional[float] = None,
) -> Tuple[int, str]:
    """Perform a GET with retries and DEBUG traces.

    Args:
        session: Open aiohttp session.
        url: Target URL.
        context: Human-readable source tag for logs (e.g., "maven").
        retry_max: Total attempts; defaults to Constants.HTTP_RETRY_MAX.
        base_delay: First backoff delay in seconds.

    Returns:
        Tuple of (status_code, body). status_code is 0 when every attempt
        failed before a response arrived; body then describes the failure.
    """
    attempts = max(1, Constants.HTTP_RETRY_MAX if retry_max is None else retry_max)
    safe_target = safe_url(url)
    last_failure = ""
    status, text = 0, ""

    for attempt in range(attempts):
        if attempt:
            await asyncio.sleep(backoff_delay(attempt - 1, base_delay))
        with Timer() as t:
            try:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action="GET",
                            target=safe_target,
                            context=context,
                            attempt=attempt + 1,
                        ),
                    )
                async with session.get(url) as response:
                    status = response.status
                    text = await response.text()
            except asyncio.TimeoutError:
                last_failure = f"timed out after {Constants.REQUEST_TIMEOUT} seconds"
                status, text = 0, last_failure
                logger.debug(
                    "HTTP timeout",
                    extra=extra_context(
                        event="http_exception", component="http_client", action="GET",
                        outcome="timeout", attempt=attempt + 1, target=safe_target,
                    ),
                )
                continue
            except aiohttp.ClientError as exc:
                last_failure = f"connection error: {exc}"
                status, text = 0, last_failure
                logger.debug(
                    "HTTP request exception",
                    extra=extra_context(
                        event="http_exception", component="http_client", action="GET",
                        outcome="request_exception", attempt=attempt + 1, target=safe_target,
                    ),
                )
                continue

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    outcome="retry" if status in RETRYABLE_STATUS else "success",
                    status_code=status,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                ),
            )
        if status not in RETRYABLE_STATUS:
            return status, text
        last_failure = f"HTTP {status}"

    logger.debug(
        "%s request to %s failed after %d attempts: %s",
        context, safe_target, attempts, last_failure,
    )
    return status, text
