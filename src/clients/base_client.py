from typing import Any, Dict, Optional

import httpx
from loguru import logger
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

# Define common HTTP status codes that warrant a retry
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


class ClientError(Exception):
    """Raised for HTTP failures that are not retried or that outlived retries."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(ClientError):
    """Exception raised for authentication failures (401, 403)."""

    pass


class RateLimitError(ClientError):
    """Exception raised for rate limit errors (429)."""

    pass


class BaseClient:
    """Shared async HTTP plumbing: one httpx client, retries, error mapping."""

    service_name: str = "http"

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            headers={"User-Agent": DEFAULT_USER_AGENT},
        )
        # Sent per request; an injected client may be shared with other services
        self.headers: Dict[str, str] = dict(headers or {})

    @retry(
        stop=stop_after_attempt(4),  # 3 retries, 4 attempts in total
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(
            (httpx.RequestError, httpx.HTTPStatusError, RateLimitError)
        ),
        reraise=True,  # Reraise the exception after max attempts
    )
    async def _make_request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> httpx.Response:
        """Makes an asynchronous HTTP request with retry logic."""
        logger.debug(f"{method} {url} params={params} has_json={json_data is not None}")
        try:
            response = await self.client.request(
                method,
                url,
                headers={**self.headers, **(headers or {})},
                params=params,
                json=json_data,
                **kwargs,
            )

            if response.status_code in {401, 403}:
                logger.warning(
                    f"Authentication error ({response.status_code}) for {self.service_name} at {url}. Check the API token."
                )
                raise AuthenticationError(
                    f"Authentication failed ({response.status_code}) for {self.service_name}",
                    status_code=response.status_code,
                )

            if response.status_code == 429:
                retry_after = response.headers.get("Retry-After")
                logger.warning(
                    f"Rate limit hit (429) for {self.service_name} at {url}. Retry-After: {retry_after}"
                )
                raise RateLimitError(
                    f"Rate limited by {self.service_name}", status_code=429
                )

            response.raise_for_status()  # Raises HTTPStatusError for 4xx/5xx
            logger.debug(f"Request successful: {response.status_code} for {url}")
            return response

        except httpx.HTTPStatusError as e:
            if e.response.status_code in RETRYABLE_STATUS_CODES:
                logger.warning(
                    f"Retrying request for {self.service_name} due to status {e.response.status_code}"
                )
                raise  # Re-raise to trigger tenacity retry
            logger.error(
                f"HTTP error during request for {self.service_name}: {e.response.status_code} - {e.response.text[:500]}"
            )
            raise ClientError(
                f"HTTP error {e.response.status_code} from {self.service_name}: {e.response.text[:500]}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            # Network errors, timeouts etc. are retried
            logger.warning(f"Request error for {self.service_name}, retrying: {e}")
            raise

    async def close(self):
        """Closes the underlying HTTP client."""
        await self.client.aclose()
        logger.debug(f"Closed HTTP client for {self.service_name}")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
