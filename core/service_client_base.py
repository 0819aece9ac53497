"""
Base Service Client for Remote HTTP Backends

Base class for clients that talk to a remote HTTP service. Handles:
1. HTTP client management (one httpx.AsyncClient per instance)
2. Timeout control
3. Bounded retry with exponential backoff for transient failures
"""

import httpx
import logging
from typing import Optional, Dict, Any
from abc import ABC

from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)


IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE"})


def is_transient_error(exc: BaseException) -> bool:
    """Transport failures and 5xx responses are worth another attempt."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return False


def is_unsent_error(exc: BaseException) -> bool:
    """Failures raised before the request reached the server."""
    return isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout))


def is_replay_safe(method: str, headers: Optional[Dict[str, str]] = None) -> bool:
    """
    Whether resending ``method`` cannot apply the same change twice.

    PATCH qualifies only when guarded by If-Match: a replay after a committed
    write then fails the revision check instead of merging again.
    """
    method = method.upper()
    if method in IDEMPOTENT_METHODS:
        return True
    return method == "PATCH" and any(k.lower() == "if-match" for k in (headers or {}))


class BaseServiceClient(ABC):
    """
    Base class for remote service clients

    Usage:
        class BlobClient(BaseServiceClient):
            service_name = "blob_store"

            async def read(self):
                response = await self.get("/b/my-bin")
                return response.json()

    Non-5xx responses are returned to the caller untouched so the subclass can
    interpret 404/409/412. Transport errors and 5xx responses are retried when
    the request is replay-safe (see ``is_replay_safe``) and, once attempts are
    exhausted, raised as httpx exceptions.
    """

    service_name: str = None

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        max_retries: int = 3,
        retry_backoff: float = 0.5,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client

        Args:
            base_url: Service base URL
            timeout: Per-request timeout in seconds
            max_retries: Total attempts per request (1 disables retry)
            retry_backoff: Exponential backoff multiplier in seconds
            headers: Extra default headers
            transport: Optional httpx transport (tests inject MockTransport)
        """
        if not self.service_name:
            raise ValueError(f"{self.__class__.__name__} must define 'service_name'")

        self.base_url = base_url.rstrip('/')
        self.max_retries = max(1, max_retries)
        self.retry_backoff = retry_backoff

        default_headers = {
            "Content-Type": "application/json",
            "User-Agent": f"shipment-service/{self.service_name}",
        }
        if headers:
            default_headers.update(headers)

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers=default_headers,
            transport=transport,
        )

        logger.debug(f"Initialized {self.service_name} client: {self.base_url}")

    async def close(self):
        """Close the HTTP client"""
        await self.client.aclose()
        logger.debug(f"Closed {self.service_name} client")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # ========================================
    # HTTP methods
    # ========================================

    async def request(
        self,
        method: str,
        path: str,
        json: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """
        Send a request, retrying transient failures.

        Replay-safe requests retry on any transient failure. Others (POST,
        unguarded PATCH) retry only when the connection was never made, since
        a timeout or 5xx may follow a write the server already committed.
        """
        should_retry = is_transient_error if is_replay_safe(method, headers) else is_unsent_error
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.retry_backoff, max=10),
            retry=retry_if_exception(should_retry),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        f"[{self.service_name}] Retrying {method} {path} "
                        f"(attempt {attempt.retry_state.attempt_number}/{self.max_retries})"
                    )
                response = await self.client.request(
                    method, path, json=json, params=params, headers=headers
                )
                if response.status_code >= 500:
                    response.raise_for_status()
        return response

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None,
                  headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        return await self.request("GET", path, params=params, headers=headers)

    async def post(self, path: str, json: Optional[Any] = None,
                   headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        return await self.request("POST", path, json=json, headers=headers)

    async def put(self, path: str, json: Optional[Any] = None,
                  headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        return await self.request("PUT", path, json=json, headers=headers)

    async def patch(self, path: str, json: Optional[Any] = None,
                    headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        return await self.request("PATCH", path, json=json, headers=headers)

    async def delete(self, path: str, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        return await self.request("DELETE", path, headers=headers)

    async def health_check(self, path: str = "/health") -> bool:
        """
        Health check

        Returns:
            Whether the service answered with a 2xx status
        """
        try:
            response = await self.get(path)
            return response.is_success
        except Exception as e:
            logger.warning(f"{self.service_name} health check failed: {e}")
            return False


__all__ = ["BaseServiceClient", "is_transient_error", "is_unsent_error", "is_replay_safe"]
