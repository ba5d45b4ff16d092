"""
HTTP client for provider APIs with retries and backoff.
Retries transport errors and retryable status codes (429, 5xx).
"""
import os
import time
import logging
from typing import Any, Dict, Optional

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception

logger = logging.getLogger(__name__)

DEFAULT_UA = "OrbitJobs/1.0 (+https://orbitjobs.app)"
DEFAULT_TIMEOUT = 30.0
MAX_RETRIES = 2
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, (httpx.TimeoutException, httpx.TransportError)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    return False


def mask_params(params: Optional[Dict[str, Any]], secret_keys: tuple = ()) -> Dict[str, Any]:
    """Copy of query params with credential values replaced by ***."""
    if not params:
        return {}
    return {k: ("***" if k in secret_keys else v) for k, v in params.items()}


class HTTPClient:
    """Thin async JSON client shared by the provider adapters."""

    def __init__(
        self,
        user_agent: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.user_agent = user_agent or os.getenv("ORBITJOBS_HTTP_UA", DEFAULT_UA)
        self.timeout = httpx.Timeout(timeout)
        # Injected in tests (httpx.MockTransport)
        self.transport = transport

    def _get_headers(self, custom_headers: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
        }
        if custom_headers:
            headers.update(custom_headers)
        return headers

    @retry(
        stop=stop_after_attempt(MAX_RETRIES + 1),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception(_is_retryable),
        reraise=True,
    )
    async def get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        log_params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        GET a URL and decode the JSON body.

        Args:
            url: Endpoint URL
            params: Query parameters
            headers: Extra request headers
            log_params: Params as they should appear in logs (credentials masked)

        Raises:
            httpx.HTTPStatusError on non-2xx after retries, httpx.TransportError
            on network failure, ValueError on an undecodable body.
        """
        request_headers = self._get_headers(headers)

        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self.transport,
        ) as client:
            start_time = time.time()
            response = await client.get(url, params=params, headers=request_headers)
            elapsed_ms = int((time.time() - start_time) * 1000)

            shown = log_params if log_params is not None else params
            logger.info(f"[net] GET {response.status_code} {url} params={shown} ({elapsed_ms}ms)")

            response.raise_for_status()
            return response.json()
