from __future__ import annotations

import pytest

from b2bsync.config.sync import SyncConfig
from b2bsync.domain.errors import RowValidationError
from b2bsync.domain.rows import flag_duplicates, normalize_record, normalize_records
from tests.helpers.rows import make_record, make_row


def test_normalize_record_trims_and_applies_defaults() -> None:
    raw = make_record(
        company_key="  COMP001 ",
        customer_email=" Jane@Acme.TEST ",
        customer_role="",
        currency_code="",
        country="",
    )

    row = normalize_record(raw, row_number=2)

    assert row.company_key == "COMP001"
    assert row.customer_email == "jane@acme.test"
    assert row.customer_role == "MEMBER"
    assert row.currency_code == "USD"
    assert row.country == "United States"
    assert row.source_row == 2
    assert row.composite_key == "COMP001|1"
    assert not row.is_duplicate_within_batch


def test_normalize_record_uppercases_role_and_currency() -> None:
    row = normalize_record(make_record(customer_role="admin", currency_code="cad"))

    assert row.customer_role == "ADMIN"
    assert row.currency_code == "CAD"


def test_normalize_record_honours_configured_defaults() -> None:
    config = SyncConfig(default_role="BUYER", default_currency="EUR", default_country="Germany")

    row = normalize_record(make_record(country=None), config=config)

    assert row.customer_role == "BUYER"
    assert row.currency_code == "EUR"
    assert row.country == "Germany"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("TRUE", True),
        ("true", True),
        (" True ", True),
        ("FALSE", False),
        ("yes", False),
        (None, False),
    ],
)
def test_normalize_record_parses_flags(value: str | None, expected: bool) -> None:
    row = normalize_record(make_record(credit_hold=value, ar_red_flag=value))

    assert row.credit_hold is expected
    assert row.ar_red_flag is expected


def test_normalize_record_collects_every_field_error() -> None:
    raw = make_record(company_name=None, customer_last_name="  ", customer_email="not-an-email")

    with pytest.raises(RowValidationError) as excinfo:
        normalize_record(raw, row_number=7)

    fields = {error.field for error in excinfo.value.errors}
    assert fields == {"company_name", "customer_last_name", "customer_email"}
    assert str(excinfo.value).startswith("Row 7: ")
    assert "invalid email format" in str(excinfo.value)


def test_normalize_record_distinguishes_blank_identifiers() -> None:
    with pytest.raises(RowValidationError) as excinfo:
        normalize_record(make_record(company_key="   ", location_key=None), row_number=3)

    messages = {error.field: error.message for error in excinfo.value.errors}
    assert messages["company_key"] == "blank identifier (Company ID)"
    assert messages["location_key"] == "missing required field (Location ID)"


def test_flag_duplicates_keeps_first_and_flags_repeats() -> None:
    rows = [
        make_row(source_row=2),
        make_row(source_row=3, location_key="2"),
        make_row(source_row=4, customer_email="other@acme.test"),
    ]

    flagged, messages = flag_duplicates(rows)

    assert [row.is_duplicate_within_batch for row in flagged] == [False, False, True]
    assert messages == [
        "Duplicate Company+Location combination 'COMP001' + '1' in row 4 (first seen in row 2)"
    ]


def test_normalize_records_skips_empty_and_collects_errors() -> None:
    records = [
        make_record(),
        {name: "" for name in make_record()},
        make_record(customer_email="broken"),
        make_record(location_key="2"),
        make_record(customer_first_name="John"),
    ]

    report = normalize_records(records)

    assert report.skipped_empty == 1
    assert [row.source_row for row in report.rows] == [2, 5, 6]
    assert [error.row_number for error in report.errors] == [4]
    assert len(report.duplicate_errors) == 1
    assert report.rows[-1].is_duplicate_within_batch
    assert not report.is_valid
    assert len(report.messages()) == 2
