"""Batch coordination: pre-flight validation, row iteration, run statistics."""

from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass, replace
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from b2bsync.config.sync import SyncConfig

from .errors import BatchValidationError
from .pipeline import RowPipeline
from .resolver import EntityResolver
from .rows import REQUIRED_FIELDS, flag_duplicates

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .pipeline import RowFailure, RowOutcome
    from .ports import RemoteEntityStore
    from .rows import SourceRow

log = getLogger(__name__)


class BatchStatus(StrEnum):
    FULL_SUCCESS = "full_success"
    PARTIAL_SUCCESS = "partial_success"
    TOTAL_FAILURE = "total_failure"


@dataclass(frozen=True, slots=True)
class BatchValidationReport:
    errors: tuple[str, ...]
    total_rows: int
    unique_companies: int
    unique_locations: int
    duplicate_rows: int

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def ensure_valid(self) -> None:
        if self.errors:
            raise BatchValidationError(self.errors, report=self)


def validate_batch(
    rows: Sequence[SourceRow],
    *,
    row_errors: Sequence[str] = (),
) -> BatchValidationReport:
    """Check the whole batch for structural defects before any store call.

    ``row_errors`` carries field-level problems found while normalizing raw
    records; those rows never became ``SourceRow`` but still fail the batch.
    """

    errors: list[str] = list(row_errors)
    for name, label in REQUIRED_FIELDS.items():
        missing = sum(1 for row in rows if not str(getattr(row, name)).strip())
        if missing:
            errors.append(f"{missing} rows have missing {label}s")

    flagged, duplicate_messages = flag_duplicates(rows)
    errors.extend(duplicate_messages)
    duplicate_rows = sum(1 for row in flagged if row.is_duplicate_within_batch)
    if duplicate_rows:
        errors.append(
            f"{duplicate_rows} rows have duplicate Company+Location combinations within the sheet"
        )

    return BatchValidationReport(
        errors=tuple(errors),
        total_rows=len(rows),
        unique_companies=len({row.company_key for row in rows if row.company_key}),
        unique_locations=len({row.composite_key for row in rows}),
        duplicate_rows=duplicate_rows,
    )


@dataclass(frozen=True, slots=True)
class EntityCounts:
    companies_created: int = 0
    companies_found: int = 0
    customers_created: int = 0
    customers_found: int = 0
    locations_created: int = 0
    locations_found: int = 0
    contacts_linked: int = 0
    assignments_created: int = 0
    assignments_skipped: int = 0
    rows_processed: int = 0
    rows_failed: int = 0
    rows_cancelled: int = 0

    def add(self, outcome: RowOutcome) -> EntityCounts:
        """Return new counts with ``outcome`` folded in."""

        def bump(created: bool | None, hit: int, miss: int) -> tuple[int, int]:
            if created is None:
                return hit, miss
            return (hit + 1, miss) if created else (hit, miss + 1)

        companies_created, companies_found = bump(
            outcome.company_created, self.companies_created, self.companies_found
        )
        customers_created, customers_found = bump(
            outcome.customer_created, self.customers_created, self.customers_found
        )
        locations_created, locations_found = bump(
            outcome.location_created, self.locations_created, self.locations_found
        )
        return replace(
            self,
            companies_created=companies_created,
            companies_found=companies_found,
            customers_created=customers_created,
            customers_found=customers_found,
            locations_created=locations_created,
            locations_found=locations_found,
            contacts_linked=self.contacts_linked + int(bool(outcome.contact_created)),
            assignments_created=self.assignments_created + int(outcome.assignment_created),
            assignments_skipped=self.assignments_skipped + int(outcome.assignment_skipped),
            rows_processed=self.rows_processed + int(outcome.succeeded),
            rows_failed=self.rows_failed + int(outcome.failed),
        )

    def cancelled(self, count: int) -> EntityCounts:
        return replace(self, rows_cancelled=self.rows_cancelled + count)

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class BatchResult:
    counts: EntityCounts
    outcomes: tuple[RowOutcome, ...] = ()
    validation: BatchValidationReport | None = None

    @property
    def status(self) -> BatchStatus:
        return _status_for(self.counts)

    @property
    def processed(self) -> int:
        return self.counts.rows_processed

    @property
    def failed(self) -> int:
        return self.counts.rows_failed

    @property
    def failures(self) -> tuple[RowFailure, ...]:
        return tuple(outcome.failure for outcome in self.outcomes if outcome.failure is not None)

    def per_entity_counts(self) -> dict[str, int]:
        return self.counts.as_dict()


def _status_for(counts: EntityCounts) -> BatchStatus:
    if counts.rows_failed == 0 and counts.rows_cancelled == 0:
        return BatchStatus.FULL_SUCCESS
    if counts.rows_processed > 0:
        return BatchStatus.PARTIAL_SUCCESS
    return BatchStatus.TOTAL_FAILURE


class BatchCoordinator:
    """Validate a batch up front, then push every row through the pipeline.

    A failed row never stops the batch; only pre-flight validation does.
    """

    def __init__(self, pipeline: RowPipeline, *, max_workers: int = 1) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._pipeline = pipeline
        self._max_workers = max_workers

    async def run_batch(
        self,
        rows: Sequence[SourceRow],
        *,
        row_errors: Sequence[str] = (),
        cancel: asyncio.Event | None = None,
    ) -> BatchResult:
        report = validate_batch(rows, row_errors=row_errors)
        if not report.is_valid:
            for message in report.errors:
                log.error("Validation: %s", message)
            report.ensure_valid()
        log.info(
            "Validated %s rows: %s companies, %s company locations",
            report.total_rows,
            report.unique_companies,
            report.unique_locations,
        )

        if self._max_workers == 1:
            outcomes = await self._run_sequential(rows, cancel)
        else:
            outcomes = await self._run_concurrent(rows, cancel)

        counts = EntityCounts()
        finished: list[RowOutcome] = []
        for outcome in outcomes:
            if outcome is None:
                continue
            counts = counts.add(outcome)
            finished.append(outcome)
        cancelled = len(rows) - len(finished)
        if cancelled:
            log.warning("Batch cancelled; %s rows were not started", cancelled)
            counts = counts.cancelled(cancelled)

        return BatchResult(counts=counts, outcomes=tuple(finished), validation=report)

    async def _run_sequential(
        self, rows: Sequence[SourceRow], cancel: asyncio.Event | None
    ) -> list[RowOutcome | None]:
        outcomes: list[RowOutcome | None] = []
        total = len(rows)
        for index, row in enumerate(rows, start=1):
            if cancel is not None and cancel.is_set():
                break
            log.info("Processing %s (%s/%s)", row.label, index, total)
            outcomes.append(await self._pipeline.process(row))
        return outcomes

    async def _run_concurrent(
        self, rows: Sequence[SourceRow], cancel: asyncio.Event | None
    ) -> list[RowOutcome | None]:
        semaphore = asyncio.Semaphore(self._max_workers)
        total = len(rows)

        async def run_one(index: int, row: SourceRow) -> RowOutcome | None:
            async with semaphore:
                if cancel is not None and cancel.is_set():
                    return None
                log.info("Processing %s (%s/%s)", row.label, index, total)
                return await self._pipeline.process(row)

        async with asyncio.TaskGroup() as group:
            tasks = [
                group.create_task(run_one(index, row)) for index, row in enumerate(rows, start=1)
            ]
        return [task.result() for task in tasks]


def build_coordinator(
    store: RemoteEntityStore, config: SyncConfig | None = None
) -> BatchCoordinator:
    active = config or SyncConfig()
    resolver = EntityResolver(store, config=active)
    return BatchCoordinator(RowPipeline(resolver), max_workers=active.max_workers)


def run_batch(
    rows: Sequence[SourceRow],
    store: RemoteEntityStore,
    *,
    config: SyncConfig | None = None,
    row_errors: Sequence[str] = (),
) -> BatchResult:
    """Synchronous entry point: validate and reconcile ``rows`` against ``store``."""

    coordinator = build_coordinator(store, config)
    return asyncio.run(coordinator.run_batch(rows, row_errors=row_errors))
