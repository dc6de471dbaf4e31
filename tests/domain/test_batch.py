from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import TYPE_CHECKING

import pytest

from b2bsync.config.sync import SyncConfig
from b2bsync.domain.batch import BatchStatus, build_coordinator, run_batch, validate_batch
from b2bsync.domain.errors import BatchValidationError, RemoteFailure
from b2bsync.domain.resolver import EntityResolver
from b2bsync.domain.rows import normalize_records
from tests.helpers.entity_store import InMemoryEntityStore
from tests.helpers.rows import make_record, make_row

if TYPE_CHECKING:
    from b2bsync.domain.batch import BatchResult
    from b2bsync.domain.model import Company, CompanyInput
    from b2bsync.domain.rows import SourceRow


def _batch() -> list[SourceRow]:
    return normalize_records(
        [
            make_record(),
            make_record(location_key="2", address1="2 Side St"),
            make_record(
                company_key="COMP002",
                company_name="Globex",
                customer_email="hank@globex.test",
                customer_first_name="Hank",
                customer_last_name="Scorpio",
            ),
        ]
    ).rows


# Pre-flight validation


def test_validate_batch_reports_missing_fields_and_duplicates() -> None:
    rows = [
        make_row(source_row=2),
        make_row(source_row=3, company_name=""),
        make_row(source_row=4, customer_email="other@acme.test"),
    ]

    report = validate_batch(rows)

    assert not report.is_valid
    assert report.errors == (
        "1 rows have missing Company Names",
        "Duplicate Company+Location combination 'COMP001' + '1' in row 3 (first seen in row 2)",
        "Duplicate Company+Location combination 'COMP001' + '1' in row 4 (first seen in row 2)",
        "2 rows have duplicate Company+Location combinations within the sheet",
    )
    assert report.total_rows == 3
    assert report.unique_companies == 1
    assert report.unique_locations == 1
    assert report.duplicate_rows == 2


def test_validate_batch_includes_record_errors() -> None:
    report = validate_batch([make_row()], row_errors=["Row 3: customer_email: invalid"])

    assert report.errors == ("Row 3: customer_email: invalid",)
    with pytest.raises(BatchValidationError):
        report.ensure_valid()


def test_duplicate_composite_key_fails_batch_without_remote_calls(
    store: InMemoryEntityStore, sync_config: SyncConfig
) -> None:
    rows = [make_row(source_row=2), make_row(source_row=3, customer_first_name="Janet")]

    with pytest.raises(BatchValidationError) as excinfo:
        run_batch(rows, store, config=sync_config)

    assert store.calls == []
    assert any("Duplicate Company+Location" in message for message in excinfo.value.messages)


def test_empty_batch_is_full_success(store: InMemoryEntityStore, sync_config: SyncConfig) -> None:
    result = run_batch([], store, config=sync_config)

    assert result.status is BatchStatus.FULL_SUCCESS
    assert result.processed == 0
    assert store.calls == []


# Reconciliation properties


def test_second_run_is_idempotent(store: InMemoryEntityStore, sync_config: SyncConfig) -> None:
    rows = _batch()

    first = run_batch(rows, store, config=sync_config)
    snapshot = (len(store.companies), len(store.customers), len(store.locations))
    second = run_batch(rows, store, config=sync_config)

    assert first.status is BatchStatus.FULL_SUCCESS
    assert second.status is BatchStatus.FULL_SUCCESS
    assert (len(store.companies), len(store.customers), len(store.locations)) == snapshot
    assert len(store.assignments) == 3

    before, after = first.counts, second.counts
    assert (after.companies_created, after.customers_created, after.locations_created) == (0, 0, 0)
    assert after.companies_found == before.companies_created + before.companies_found
    assert after.customers_found == before.customers_created + before.customers_found
    assert after.locations_found == before.locations_created + before.locations_found
    assert after.assignments_created == 0


def test_failing_row_does_not_stop_the_batch(
    store: InMemoryEntityStore, sync_config: SyncConfig
) -> None:
    store.fail_next("create_company_location", RemoteFailure("location rejected"))

    result = run_batch(_batch(), store, config=sync_config)

    assert result.status is BatchStatus.PARTIAL_SUCCESS
    assert result.processed == 2
    assert result.failed == 1
    (failure,) = result.failures
    assert failure.location_key == "2"
    assert failure.step == "location"
    assert [outcome.succeeded for outcome in result.outcomes] == [True, False, True]


def test_every_row_failing_is_total_failure(
    store: InMemoryEntityStore, sync_config: SyncConfig
) -> None:
    store.fail_next("find_company_by_external_id", RemoteFailure("down"), times=3)

    result = run_batch(_batch(), store, config=sync_config)

    assert result.status is BatchStatus.TOTAL_FAILURE
    assert result.failed == 3


def test_customer_of_other_company_reaches_done_without_assignment(
    store: InMemoryEntityStore, sync_config: SyncConfig
) -> None:
    other = store.seed_company("COMP999", "Other Inc")
    store.seed_customer("jane@acme.test", company_id=other.id)

    result = run_batch([make_row(source_row=2)], store, config=sync_config)

    assert result.status is BatchStatus.FULL_SUCCESS
    assert result.counts.assignments_created == 0
    assert result.counts.assignments_skipped == 1
    assert store.assignments == {}


def test_first_location_reuses_default_location(
    store: InMemoryEntityStore, sync_config: SyncConfig
) -> None:
    result = run_batch([make_row()], store, config=sync_config)

    company = store.company_by_key("COMP001")
    assert company is not None
    locations = store.locations_of(company.id)
    assert len(locations) == 1
    assert locations[0].external_id == "1"
    assert result.counts.locations_created == 1
    assert store.count("create_company_location") == 0


def test_acme_scenario_and_rerun(store: InMemoryEntityStore, sync_config: SyncConfig) -> None:
    rows = normalize_records(
        [
            {
                "company_key": "COMP001",
                "company_name": "Acme Inc",
                "location_key": "LOC001",
                "customer_email": "JOHN@ACME.COM",
                "customer_first_name": "John",
                "customer_last_name": "Doe",
                "customer_role": "admin",
            }
        ]
    ).rows

    first = run_batch(rows, store, config=sync_config)

    company = store.company_by_key("COMP001")
    assert company is not None
    (customer,) = store.customers.values()
    assert customer.email == "john@acme.com"
    (contact,) = store.contacts.values()
    assert contact.company_id == company.id
    location = next(loc for loc in store.locations_of(company.id) if loc.external_id == "LOC001")
    assignment = store.assignments[(contact.id, location.id)]
    assert assignment.role.name == "ADMIN"
    assert first.counts.assignments_created == 1

    second = run_batch(rows, store, config=sync_config)

    assert second.counts.companies_found == 1
    assert second.counts.customers_found == 1
    assert second.counts.locations_found == 1
    assert second.counts.assignments_created == 0
    assert len(store.assignments) == 1


def test_concurrent_assignment_attempts_leave_one_assignment(
    store: InMemoryEntityStore, sync_config: SyncConfig
) -> None:
    company = store.seed_company("COMP001", "Acme Corp")
    store.seed_customer("jane@acme.test", company_id=company.id)
    (contact,) = store.contacts.values()
    (location,) = store.locations_of(company.id)
    # Separate resolvers share no locks, like two processes racing.
    resolvers = [EntityResolver(store, config=sync_config) for _ in range(2)]

    async def race() -> list[object]:
        return await asyncio.gather(
            *(
                resolver.resolve_role_assignment(contact.id, company.id, location.id, "ADMIN")
                for resolver in resolvers
            )
        )

    results = asyncio.run(race())

    assert len(store.assignments) == 1
    assert sum(result is not None for result in results) == 1


def test_concurrent_workers_create_each_entity_once(sync_config: SyncConfig) -> None:
    store = InMemoryEntityStore(latency=0.001)
    rows = normalize_records(
        [make_record(location_key=str(key), address1=f"{key} Main St") for key in range(1, 7)]
    ).rows
    coordinator = build_coordinator(store, replace(sync_config, max_workers=4))

    result = asyncio.run(coordinator.run_batch(rows))

    assert result.status is BatchStatus.FULL_SUCCESS
    assert store.count("create_company") == 1
    assert store.count("create_company_contact") == 1
    assert len(store.customers) == 1
    company = store.company_by_key("COMP001")
    assert company is not None
    assert len(store.locations_of(company.id)) == 6
    assert len(store.assignments) == 6


def test_lost_create_responses_are_counted_as_created(
    store: InMemoryEntityStore, sync_config: SyncConfig
) -> None:
    store.lose_response_next("create_company")
    store.lose_response_next("create_company_contact")
    store.lose_response_next("create_role_assignment")
    rows = [make_row(source_row=2)]

    first = run_batch(rows, store, config=sync_config)
    second = run_batch(rows, store, config=sync_config)

    assert first.status is BatchStatus.FULL_SUCCESS
    assert store.count("create_company") == 1
    assert store.count("create_company_contact") == 1
    assert store.count("create_role_assignment") == 1
    assert first.counts.companies_created == 1
    assert first.counts.companies_found == 0
    assert first.counts.customers_created == 1
    assert first.counts.customers_found == 0
    assert first.counts.contacts_linked == 1
    assert first.counts.assignments_created == 1
    assert first.counts.assignments_skipped == 0
    assert second.counts.companies_found == first.counts.companies_created
    assert second.counts.customers_found == first.counts.customers_created


def test_concurrent_rows_create_a_new_role_once(sync_config: SyncConfig) -> None:
    store = InMemoryEntityStore(latency=0.001)
    rows = normalize_records(
        [
            make_record(customer_role="BUYER"),
            make_record(location_key="2", address1="2 Side St", customer_role="BUYER"),
        ]
    ).rows
    coordinator = build_coordinator(store, replace(sync_config, max_workers=2))

    result = asyncio.run(coordinator.run_batch(rows))

    assert result.status is BatchStatus.FULL_SUCCESS
    company = store.company_by_key("COMP001")
    assert company is not None
    assert [role.name for role in store.roles[company.id]].count("BUYER") == 1
    assert {assignment.role.name for assignment in store.assignments.values()} == {"BUYER"}


class _CancellingStore(InMemoryEntityStore):
    def __init__(self, cancel: asyncio.Event) -> None:
        super().__init__()
        self.cancel = cancel

    async def create_company(self, data: CompanyInput) -> Company:
        self.cancel.set()
        return await super().create_company(data)


def test_cancellation_finishes_current_row_and_skips_the_rest(sync_config: SyncConfig) -> None:
    async def scenario() -> tuple[_CancellingStore, BatchResult]:
        cancel = asyncio.Event()
        store = _CancellingStore(cancel)
        coordinator = build_coordinator(store, sync_config)
        return store, await coordinator.run_batch(_batch(), cancel=cancel)

    store, result = asyncio.run(scenario())

    assert result.processed == 1
    assert result.counts.rows_cancelled == 2
    assert result.status is BatchStatus.PARTIAL_SUCCESS
    assert store.count("create_company") == 1
