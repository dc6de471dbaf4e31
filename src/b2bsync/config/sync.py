"""Reconciliation defaults shared by the normalizer, resolver and coordinator."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_env, optional_int_env

DEFAULT_FIRST_LOCATION_KEY = "1"
DEFAULT_CUSTOMER_ROLE = "MEMBER"
DEFAULT_CURRENCY_CODE = "USD"
DEFAULT_COUNTRY = "United States"
DEFAULT_COUNTRY_CODE = "US"
DEFAULT_CONTACT_ROLE_NAME = "Location Member"


@dataclass(frozen=True, slots=True)
class StageRetry:
    """Bounded retries for one find-or-create unit in the resolver."""

    attempts: int = 3
    backoff_factor: float = 0.5
    max_backoff_wait: float = 8.0

    def delay_for(self, attempt: int) -> float:
        return min(self.max_backoff_wait, self.backoff_factor * (2 ** (attempt - 1)))


@dataclass(frozen=True, slots=True)
class SyncConfig:
    # The upstream sheet numbers locations from "1"; that location takes over
    # the default location every new company is created with.
    first_location_key: str = DEFAULT_FIRST_LOCATION_KEY
    default_role: str = DEFAULT_CUSTOMER_ROLE
    default_currency: str = DEFAULT_CURRENCY_CODE
    default_country: str = DEFAULT_COUNTRY
    default_country_code: str = DEFAULT_COUNTRY_CODE
    contact_role_name: str = DEFAULT_CONTACT_ROLE_NAME
    max_workers: int = 1
    retry: StageRetry = field(default_factory=StageRetry)


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        first_location_key=optional_env("B2BSYNC_FIRST_LOCATION_KEY", DEFAULT_FIRST_LOCATION_KEY),
        default_role=optional_env("B2BSYNC_DEFAULT_ROLE", DEFAULT_CUSTOMER_ROLE).upper(),
        default_currency=optional_env("B2BSYNC_DEFAULT_CURRENCY", DEFAULT_CURRENCY_CODE).upper(),
        default_country=optional_env("B2BSYNC_DEFAULT_COUNTRY", DEFAULT_COUNTRY),
        default_country_code=optional_env(
            "B2BSYNC_DEFAULT_COUNTRY_CODE", DEFAULT_COUNTRY_CODE
        ).upper(),
        contact_role_name=optional_env("B2BSYNC_CONTACT_ROLE_NAME", DEFAULT_CONTACT_ROLE_NAME),
        max_workers=optional_int_env("B2BSYNC_MAX_WORKERS", 1, minimum=1),
    )
