from __future__ import annotations

import time
from logging import getLogger
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import Retry, RetryTransport

from b2bsync.config.http_resilience import RateLimit, ResilienceConfig, RetryPolicy

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._types import HeaderTypes, RequestExtensions, TimeoutTypes, URLTypes

__all__ = ["RateLimit", "ResilienceConfig", "ResilientClient", "RetryPolicy", "build_retry"]

log = getLogger(__name__)


class PostOptions(TypedDict, total=False):
    json: object
    headers: HeaderTypes | None
    timeout: TimeoutTypes
    extensions: RequestExtensions | None


class AsyncClientOptions(TypedDict, total=False):
    base_url: str
    timeout: TimeoutTypes
    headers: HeaderTypes
    transport: httpx.AsyncBaseTransport


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
        backoff_jitter=policy.backoff_jitter,
    )


class ResilientClient:
    """``httpx.AsyncClient`` with transport retries and a shared call budget.

    One instance is shared by every concurrent row, so the limiter caps the
    whole batch rather than each worker.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )

        options: AsyncClientOptions = {
            "timeout": config.timeout_seconds,
            "transport": RetryTransport(
                transport=transport or httpx.AsyncHTTPTransport(),
                retry=build_retry(config.retry),
            ),
        }
        if config.base_url is not None:
            options["base_url"] = config.base_url
        if config.default_headers:
            options["headers"] = dict(config.default_headers)
        self._client = httpx.AsyncClient(**options)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def post(self, url: URLTypes, **kwargs: Unpack[PostOptions]) -> httpx.Response:
        if self._limiter is not None:
            if not self._limiter.has_capacity():
                log.debug("%s: call budget spent, waiting", self.config.name)
            async with self._limiter:
                return await self._timed_post(url, **kwargs)
        return await self._timed_post(url, **kwargs)

    async def _timed_post(self, url: URLTypes, **kwargs: Unpack[PostOptions]) -> httpx.Response:
        started = time.perf_counter()
        response = await self._client.post(url, **kwargs)
        log.debug(
            "%s: POST %s -> %s in %.2fs",
            self.config.name,
            url,
            response.status_code,
            time.perf_counter() - started,
        )
        return response
