from __future__ import annotations

import pytest

from b2bsync.config import (
    ConfigurationError,
    MissingConfigurationError,
    get_sheets_config,
    get_shopify_config,
    get_sync_config,
    optional_env,
    optional_int_env,
    require_env_vars,
)


def test_require_env_vars_returns_stripped_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", " value ")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_reports_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_B", raising=False)
    monkeypatch.delenv("MISSING_A", raising=False)
    monkeypatch.setenv("BLANK_VAR", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "BLANK_VAR", "MISSING_A"])

    assert exc.value.names == ("BLANK_VAR", "MISSING_A", "MISSING_B")
    assert "MISSING_A" in str(exc.value)


def test_optional_env_falls_back_on_blank(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "  ")

    assert optional_env("EXAMPLE_VAR", "fallback") == "fallback"


def test_optional_int_env_validates(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EXAMPLE_INT", raising=False)
    assert optional_int_env("EXAMPLE_INT", 3) == 3

    monkeypatch.setenv("EXAMPLE_INT", "five")
    with pytest.raises(ConfigurationError, match="integer"):
        optional_int_env("EXAMPLE_INT", 3)

    monkeypatch.setenv("EXAMPLE_INT", "0")
    with pytest.raises(ConfigurationError, match=">= 1"):
        optional_int_env("EXAMPLE_INT", 3, minimum=1)


def test_get_shopify_config_builds_endpoint_and_headers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SHOPIFY_STORE_DOMAIN", "https://acme.myshopify.com/")
    monkeypatch.setenv("SHOPIFY_ADMIN_TOKEN", "shpat_secret")
    monkeypatch.setenv("SHOPIFY_API_VERSION", "2024-10")
    monkeypatch.setenv("SHOPIFY_CALLS_PER_SECOND", "4")

    config = get_shopify_config()

    assert config.store_domain == "acme.myshopify.com"
    assert config.graphql_url == "https://acme.myshopify.com/admin/api/2024-10/graphql.json"
    headers = config.resilience.default_headers
    assert headers is not None
    assert headers["X-Shopify-Access-Token"] == "shpat_secret"
    assert config.resilience.ratelimit is not None
    assert config.resilience.ratelimit.max_calls == 4


def test_get_shopify_config_requires_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("SHOPIFY_STORE_DOMAIN", "SHOPIFY_ADMIN_TOKEN", "SHOPIFY_API_VERSION"):
        monkeypatch.delenv(name, raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        get_shopify_config()

    assert exc.value.names == (
        "SHOPIFY_ADMIN_TOKEN",
        "SHOPIFY_API_VERSION",
        "SHOPIFY_STORE_DOMAIN",
    )


def test_get_sheets_config_defaults_sheet_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GOOGLE_SHEET_ID", "sheet-123")
    monkeypatch.setenv("GOOGLE_SERVICE_ACCOUNT_CREDENTIALS", "/secrets/sa.json")
    monkeypatch.delenv("GOOGLE_SHEET_NAME", raising=False)

    config = get_sheets_config()

    assert config.sheet_id == "sheet-123"
    assert config.credentials_path == "/secrets/sa.json"
    assert config.data_range == "Sheet1!A2:Y"


def test_get_sync_config_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("B2BSYNC_FIRST_LOCATION_KEY", "LOC001")
    monkeypatch.setenv("B2BSYNC_DEFAULT_ROLE", "admin")
    monkeypatch.setenv("B2BSYNC_MAX_WORKERS", "4")

    config = get_sync_config()

    assert config.first_location_key == "LOC001"
    assert config.default_role == "ADMIN"
    assert config.default_currency == "USD"
    assert config.contact_role_name == "Location Member"
    assert config.max_workers == 4


def test_get_sync_config_rejects_zero_workers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("B2BSYNC_MAX_WORKERS", "0")

    with pytest.raises(ConfigurationError):
        get_sync_config()
