"""HTTP transport layer with retry logic and connection pooling."""

import asyncio
import logging
import random
from typing import Any

import httpx

from .exceptions import RateLimitError, TransportError

logger = logging.getLogger(__name__)

USER_AGENT = "mtxchat-sync/0.1.0"


class Transport:
    def __init__(self, timeout: float = 30.0, max_retries: int = 3,
                 transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._timeout = timeout
        self._max_retries = max_retries
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def __aenter__(self) -> "Transport":
        self._client = httpx.AsyncClient(http2=True, timeout=httpx.Timeout(self._timeout),
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=5), transport=self._transport)
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Any, exc_tb: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _headers(self, token: str | None) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "User-Agent": USER_AGENT}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _backoff(self, attempt: int) -> float:
        delay = min(1.0 * (2 ** attempt), 30.0)
        return max(0.1, delay + delay * 0.25 * (2 * random.random() - 1))

    def _retryable(self, code: int) -> bool:
        return code in (408, 500, 502, 503, 504)

    async def post(self, url: str, data: dict, token: str | None = None, retry: bool = True,
                   timeout: float | None = None) -> tuple[int, dict | None]:
        if not self._client:
            raise TransportError("Transport not initialized")
        return await self._request("POST", url, data, None, token, retry, timeout)

    async def get(self, url: str, params: dict | None = None, token: str | None = None, retry: bool = True,
                  timeout: float | None = None) -> tuple[int, dict | None]:
        if not self._client:
            raise TransportError("Transport not initialized")
        return await self._request("GET", url, None, params, token, retry, timeout)

    async def _request(self, method: str, url: str, data: dict | None, params: dict | None, token: str | None,
                       retry: bool, timeout: float | None) -> tuple[int, dict | None]:
        last_err: Exception | None = None
        attempts = self._max_retries if retry else 1
        request_timeout = httpx.Timeout(timeout) if timeout is not None else httpx.USE_CLIENT_DEFAULT
        for i in range(attempts):
            try:
                resp = await self._client.request(method, url, json=data, params=params,
                                                  headers=self._headers(token), timeout=request_timeout)
                if resp.status_code == 429:
                    raise self._rate_limit_error(resp)
                if self._retryable(resp.status_code) and i < attempts - 1:
                    logger.info("%s %s returned %d, retrying", method, url, resp.status_code)
                    await asyncio.sleep(self._backoff(i))
                    continue
                try:
                    return resp.status_code, resp.json() if resp.content else None
                except ValueError:
                    return resp.status_code, None
            except RateLimitError:
                raise
            except (httpx.TimeoutException, httpx.RequestError) as e:
                last_err = e
                if i < attempts - 1:
                    await asyncio.sleep(self._backoff(i))
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                raise TransportError(f"Request failed: {e}") from e
        raise TransportError(f"Request failed after {attempts} attempts: {last_err}")

    def _rate_limit_error(self, resp: httpx.Response) -> RateLimitError:
        retry_after_ms = None
        try:
            body = resp.json() if resp.content else None
            if isinstance(body, dict) and body.get("retry_after_ms") is not None:
                retry_after_ms = int(body["retry_after_ms"])
            elif "Retry-After" in resp.headers:
                retry_after_ms = int(resp.headers["Retry-After"]) * 1000
        except (TypeError, ValueError):
            logger.info("unreadable rate limit hint: %s", resp.text[:100])
        return RateLimitError("Rate limited", retry_after_ms)
