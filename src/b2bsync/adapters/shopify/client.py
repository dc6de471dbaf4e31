"""HTTP client for the Shopify Admin GraphQL endpoint."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError as PydanticValidationError

from b2bsync.adapters.http_resilience import ResilienceConfig, ResilientClient
from b2bsync.domain.errors import RemoteFailure, TransientRemoteError

from .schema import GraphQLResponse

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from types import TracebackType

    from pydantic import BaseModel

    from b2bsync.config.shopify import ShopifyConfig

log = getLogger(__name__)

THROTTLED = "THROTTLED"


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class ShopifyAPIError(RemoteFailure):
    """The Admin API answered with top-level GraphQL errors."""

    def __init__(self, message: str, *, codes: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.codes = codes


class ShopifyThrottled(ShopifyAPIError, TransientRemoteError):
    """The query cost exceeded the bucket; the request may be repeated."""


class ShopifyGraphQLClient:
    """Send GraphQL documents and return the ``data`` member of the response.

    Failures that may have reached Shopify (read timeouts, 5xx, throttling) raise
    ``TransientRemoteError`` so the caller can look before it writes again.
    Everything else raises ``RemoteFailure``.
    """

    def __init__(
        self,
        config: ShopifyConfig,
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = _default_client_factory,
    ) -> None:
        self.config = config
        self._client_factory = client_factory
        self._client: ResilientClient | None = None

    async def __aenter__(self) -> ShopifyGraphQLClient:
        self._client = self._client_factory(self.config.resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def execute(
        self, query: str, variables: Mapping[str, object] | None = None
    ) -> dict[str, object]:
        if self._client is None:
            raise RuntimeError("ShopifyGraphQLClient must be used as an async context manager")

        body = {"query": query, "variables": dict(variables or {})}
        try:
            response = await self._client.post(self.config.graphql_url, json=body)
        except httpx.TimeoutException as exc:
            raise TransientRemoteError(f"Shopify request timed out: {exc!r}") from exc
        except httpx.TransportError as exc:
            raise TransientRemoteError(f"Shopify transport error: {exc!r}") from exc
        except httpx.RequestError as exc:
            # Undecodable bodies, redirect loops: retrying will not help.
            raise RemoteFailure(f"Shopify request failed: {exc!r}") from exc

        if response.status_code == httpx.codes.TOO_MANY_REQUESTS or response.status_code >= 500:
            raise TransientRemoteError(f"Shopify HTTP {response.status_code}")
        if response.is_error:
            raise RemoteFailure(f"Shopify HTTP {response.status_code}: {response.text[:500]}")

        try:
            envelope = GraphQLResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as exc:
            raise RemoteFailure(f"Malformed Shopify response: {exc}") from exc

        if envelope.errors:
            codes = tuple(error.code for error in envelope.errors if error.code)
            message = "; ".join(error.message for error in envelope.errors)
            if THROTTLED in codes:
                log.warning("Shopify throttled the request: %s", message)
                raise ShopifyThrottled(message, codes=codes)
            log.error("Shopify GraphQL errors: %s", message)
            raise ShopifyAPIError(message, codes=codes)
        if envelope.data is None:
            raise RemoteFailure("Shopify response carried no data")
        return envelope.data

    async def fetch[TModel: BaseModel](
        self,
        model: type[TModel],
        query: str,
        variables: Mapping[str, object] | None = None,
    ) -> TModel:
        """Execute ``query`` and validate its data against ``model``."""

        data = await self.execute(query, variables)
        try:
            return model.model_validate(data)
        except PydanticValidationError as exc:
            payload = json.dumps(data, default=str)[:500]
            raise RemoteFailure(
                f"Unexpected Shopify payload for {model.__name__}: {payload}"
            ) from exc
