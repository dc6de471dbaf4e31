"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, contextmanager
from logging import getLogger
from signal import SIGINT
from typing import TYPE_CHECKING

from b2bsync.adapters.sheets import GoogleSheetsRecordSource
from b2bsync.adapters.shopify import ShopifyEntityStore, ShopifyGraphQLClient
from b2bsync.config.shopify import get_shopify_config
from b2bsync.config.sync import SyncConfig, get_sync_config
from b2bsync.domain.batch import BatchValidationReport, build_coordinator, validate_batch
from b2bsync.domain.rows import NormalizationReport, normalize_records

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Iterator
    from contextlib import AbstractAsyncContextManager

    from b2bsync.config.shopify import ShopifyConfig
    from b2bsync.domain.batch import BatchResult
    from b2bsync.domain.ports import RecordSource, RemoteEntityStore

type StoreFactory = Callable[[], AbstractAsyncContextManager[RemoteEntityStore]]

log = getLogger(__name__)


@asynccontextmanager
async def shopify_store(config: ShopifyConfig | None = None) -> AsyncIterator[ShopifyEntityStore]:
    """Open a Shopify GraphQL session and expose it as an entity store."""

    async with ShopifyGraphQLClient(config or get_shopify_config()) as client:
        yield ShopifyEntityStore(client)


def load_rows(
    source: RecordSource | None = None,
    *,
    config: SyncConfig | None = None,
) -> NormalizationReport:
    """Read raw records from ``source`` and normalize them into rows."""

    effective_source = source or GoogleSheetsRecordSource()
    records = effective_source()
    report = normalize_records(records, config=config)
    log.info(
        "Loaded %s rows (%s invalid, %s empty skipped)",
        len(report.rows),
        len(report.errors),
        report.skipped_empty,
    )
    return report


def validate_source(
    *,
    source: RecordSource | None = None,
    sync_config: SyncConfig | None = None,
) -> BatchValidationReport:
    """Run pre-flight validation only; nothing is written anywhere."""

    config = sync_config or get_sync_config()
    report = load_rows(source, config=config)
    return validate_batch(report.rows, row_errors=[str(error) for error in report.errors])


def sync_companies(
    *,
    source: RecordSource | None = None,
    store_factory: StoreFactory | None = None,
    sync_config: SyncConfig | None = None,
    handle_interrupt: bool = True,
) -> BatchResult:
    """Reconcile every sheet row into the remote store.

    Raises ``BatchValidationError`` before any remote call when the batch is
    structurally invalid. With ``handle_interrupt`` set, Ctrl+C stops the batch
    after the rows already in flight.
    """

    config = sync_config or get_sync_config()
    report = load_rows(source, config=config)
    log.info(
        "Starting sync: rows=%s, workers=%s, first_location_key=%r",
        len(report.rows),
        config.max_workers,
        config.first_location_key,
    )
    result = asyncio.run(
        _run(
            report,
            store_factory=store_factory or shopify_store,
            config=config,
            handle_interrupt=handle_interrupt,
        )
    )
    log.info(
        "Finished sync: status=%s, processed=%s, failed=%s, cancelled=%s",
        result.status,
        result.processed,
        result.failed,
        result.counts.rows_cancelled,
    )
    return result


async def _run(
    report: NormalizationReport,
    *,
    store_factory: StoreFactory,
    config: SyncConfig,
    handle_interrupt: bool,
) -> BatchResult:
    cancel = asyncio.Event()
    with _cancel_on_interrupt(cancel, enabled=handle_interrupt):
        async with store_factory() as store:
            coordinator = build_coordinator(store, config)
            return await coordinator.run_batch(
                report.rows,
                row_errors=[str(error) for error in report.errors],
                cancel=cancel,
            )


def _request_cancel(cancel: asyncio.Event) -> None:
    log.warning("Interrupted by user (Ctrl+C); finishing rows in flight")
    cancel.set()


@contextmanager
def _cancel_on_interrupt(cancel: asyncio.Event, *, enabled: bool) -> Iterator[None]:
    loop = asyncio.get_running_loop()
    installed = False
    if enabled:
        try:
            loop.add_signal_handler(SIGINT, _request_cancel, cancel)
            installed = True
        except (NotImplementedError, RuntimeError, ValueError):
            log.debug("SIGINT handler unavailable; Ctrl+C aborts immediately")
    try:
        yield
    finally:
        if installed:
            loop.remove_signal_handler(SIGINT)
