"""Shopify Admin API configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_int_env, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

SHOPIFY_TIMEOUT_SECONDS = 30.0
SHOPIFY_CALLS_PER_SECOND = 2


@dataclass(frozen=True)
class ShopifyConfig:
    store_domain: str
    admin_token: str
    api_version: str
    resilience: ResilienceConfig

    @property
    def graphql_url(self) -> str:
        return f"https://{self.store_domain}/admin/api/{self.api_version}/graphql.json"


def get_shopify_config(*, resilience: ResilienceConfig | None = None) -> ShopifyConfig:
    values = require_env_vars(
        ("SHOPIFY_STORE_DOMAIN", "SHOPIFY_ADMIN_TOKEN", "SHOPIFY_API_VERSION")
    )
    domain = values["SHOPIFY_STORE_DOMAIN"].removeprefix("https://").rstrip("/")
    calls_per_second = optional_int_env(
        "SHOPIFY_CALLS_PER_SECOND", SHOPIFY_CALLS_PER_SECOND, minimum=1
    )
    return ShopifyConfig(
        store_domain=domain,
        admin_token=values["SHOPIFY_ADMIN_TOKEN"],
        api_version=values["SHOPIFY_API_VERSION"],
        resilience=resilience
        or ResilienceConfig(
            name="shopify",
            timeout_seconds=SHOPIFY_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=calls_per_second, per_seconds=1.0),
            default_headers={
                "Content-Type": "application/json",
                "X-Shopify-Access-Token": values["SHOPIFY_ADMIN_TOKEN"],
            },
        ),
    )
