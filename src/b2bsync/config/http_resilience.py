"""Configuration types for resilient HTTP clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Transport-level retries.

    Only failures that guarantee the request never reached the server belong
    here. GraphQL mutations are not idempotent, so anything ambiguous (read
    timeouts, 5xx) is left to the resolver, which re-runs find-before-create.
    """

    total: int = 3
    backoff_factor: float = 0.5
    max_backoff_wait: float = 30.0
    respect_retry_after_header: bool = True
    allowed_methods: frozenset[str] = field(
        default_factory=lambda: frozenset({"GET", "HEAD", "OPTIONS", "POST"})
    )
    status_forcelist: frozenset[int] = field(default_factory=lambda: frozenset({429}))
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.ConnectError,
        httpx.ConnectTimeout,
    )
    backoff_jitter: float = 1.0


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    default_headers: Mapping[str, str] | None = None
