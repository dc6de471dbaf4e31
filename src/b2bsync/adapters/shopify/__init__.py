"""Public interface for the Shopify Admin adapter."""

from __future__ import annotations

from .client import ShopifyAPIError, ShopifyGraphQLClient, ShopifyThrottled
from .store import ShopifyEntityStore, raise_for_user_errors, search_term

__all__ = [
    "ShopifyAPIError",
    "ShopifyEntityStore",
    "ShopifyGraphQLClient",
    "ShopifyThrottled",
    "raise_for_user_errors",
    "search_term",
]
