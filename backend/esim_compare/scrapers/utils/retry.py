"""Plain-HTTP fetching with exponential backoff.

Only the non-browser extraction path retries automatically; browser
navigation and store calls are attempted once per step.
"""

from typing import Mapping, Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from esim_compare.scrapers.utils.user_agents import FETCH_HEADERS


logger = structlog.get_logger(__name__)


RETRYABLE_ERRORS = (
    httpx.HTTPStatusError,
    httpx.TransportError,
)


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "fetch_retry_scheduled",
        attempt=retry_state.attempt_number,
        wait_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
        error=str(exc),
    )


class RetryingFetcher:
    """GET requests with browser-like headers and exponential backoff.

    Holds the client and backoff settings so scrapers can share one
    configured fetcher; each call goes through ``fetch_with_retry``.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_delay: float = 1.0,
        timeout: float = 30.0,
    ):
        """Initialize the fetcher.

        Args:
            client: Shared httpx client; a short-lived one is created per call if omitted
            base_delay: First backoff delay in seconds
            timeout: Request timeout for per-call clients
        """
        self._client = client
        self._base_delay = base_delay
        self._timeout = timeout

    async def fetch_with_retry(
        self,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        max_retries: int = 3,
    ) -> httpx.Response:
        return await fetch_with_retry(
            url,
            headers=headers,
            max_retries=max_retries,
            client=self._client,
            base_delay=self._base_delay,
            timeout=self._timeout,
        )


async def fetch_with_retry(
    url: str,
    headers: Optional[Mapping[str, str]] = None,
    max_retries: int = 3,
    client: Optional[httpx.AsyncClient] = None,
    base_delay: float = 1.0,
    timeout: float = 30.0,
) -> httpx.Response:
    """Fetch a URL, retrying on failure.

    Non-2xx responses and transport errors are retried; the delay starts
    at ``base_delay`` seconds and doubles per attempt.  After
    ``max_retries`` retries the last error is raised to the caller.

    Args:
        url: URL to GET
        headers: Extra headers; override the defaults key by key
        max_retries: Retries after the first attempt
        client: Shared httpx client; a short-lived one is created per attempt if omitted
        base_delay: First backoff delay in seconds
        timeout: Request timeout for per-attempt clients

    Returns:
        Successful httpx.Response (body already read)

    Raises:
        httpx.HTTPStatusError: Last non-2xx response after all retries
        httpx.TransportError: Last network error after all retries
    """
    merged_headers = {**FETCH_HEADERS, **(headers or {})}

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=base_delay, min=0, max=60),
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        before_sleep=_log_retry,
        reraise=True,
    )

    async for attempt in retrying:
        with attempt:
            response = await _get(client, url, merged_headers, timeout)
            response.raise_for_status()

    logger.debug("fetch_succeeded", url=url, status=response.status_code)
    return response


async def _get(
    client: Optional[httpx.AsyncClient],
    url: str,
    headers: Mapping[str, str],
    timeout: float,
) -> httpx.Response:
    if client is not None:
        return await client.get(url, headers=headers)
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as own_client:
        return await own_client.get(url, headers=headers)
