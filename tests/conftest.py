from __future__ import annotations

import pytest

from b2bsync.config.sync import StageRetry, SyncConfig
from tests.helpers.entity_store import InMemoryEntityStore


@pytest.fixture
def store() -> InMemoryEntityStore:
    return InMemoryEntityStore()


@pytest.fixture
def sync_config() -> SyncConfig:
    # Zero backoff keeps retry tests fast.
    return SyncConfig(retry=StageRetry(attempts=3, backoff_factor=0.0, max_backoff_wait=0.0))


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "B2BSYNC_FIRST_LOCATION_KEY",
        "B2BSYNC_DEFAULT_ROLE",
        "B2BSYNC_DEFAULT_CURRENCY",
        "B2BSYNC_DEFAULT_COUNTRY",
        "B2BSYNC_DEFAULT_COUNTRY_CODE",
        "B2BSYNC_CONTACT_ROLE_NAME",
        "B2BSYNC_MAX_WORKERS",
    ):
        monkeypatch.delenv(name, raising=False)
