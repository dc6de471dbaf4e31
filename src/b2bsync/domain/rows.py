"""Validation and normalization of raw sheet records into ``SourceRow``."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING

from b2bsync.config.sync import SyncConfig

from .errors import FieldError, RowValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .ports import RawRecord

log = getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
COMPOSITE_KEY_SEPARATOR = "|"
FIRST_DATA_ROW = 2

REQUIRED_FIELDS: dict[str, str] = {
    "company_key": "Company ID",
    "company_name": "Company Name",
    "location_key": "Location ID",
    "customer_email": "Customer Email",
    "customer_first_name": "Customer First Name",
    "customer_last_name": "Customer Last Name",
}
IDENTIFIER_FIELDS = frozenset({"company_key", "location_key"})


def composite_key(company_key: str, location_key: str) -> str:
    return f"{company_key}{COMPOSITE_KEY_SEPARATOR}{location_key}"


@dataclass(frozen=True, slots=True)
class SourceRow:
    """One validated, normalized sheet row; the unit of work for the pipeline."""

    company_key: str
    company_name: str
    location_key: str
    customer_email: str
    customer_first_name: str
    customer_last_name: str
    customer_role: str = "MEMBER"
    attention: str = ""
    address1: str = ""
    address2: str = ""
    city: str = ""
    region: str = ""
    postal_code: str = ""
    country: str = ""
    location_name: str = ""
    price_level: str = ""
    payment_terms: str = ""
    currency_code: str = "USD"
    sales_rep: str = ""
    tax_details: str = ""
    credit_hold: bool = False
    ar_red_flag: bool = False
    primary_contact_email: str = ""
    billing_contact_email: str = ""
    billing_contact_email_2: str = ""
    source_row: int | None = None
    is_duplicate_within_batch: bool = False

    @property
    def composite_key(self) -> str:
        return composite_key(self.company_key, self.location_key)

    @property
    def label(self) -> str:
        prefix = f"row {self.source_row}" if self.source_row is not None else "row"
        return f"{prefix} [{self.composite_key}] <{self.customer_email}>"


@dataclass(slots=True)
class NormalizationReport:
    """Outcome of normalizing a whole batch of raw records."""

    rows: list[SourceRow] = field(default_factory=list[SourceRow])
    errors: list[RowValidationError] = field(default_factory=list[RowValidationError])
    duplicate_errors: list[str] = field(default_factory=list[str])
    skipped_empty: int = 0

    @property
    def is_valid(self) -> bool:
        return not self.errors and not self.duplicate_errors

    def messages(self) -> list[str]:
        return [str(error) for error in self.errors] + list(self.duplicate_errors)


def _clean(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _flag(value: object) -> bool:
    return _clean(value).lower() == "true"


def normalize_record(
    raw: RawRecord,
    *,
    row_number: int | None = None,
    config: SyncConfig | None = None,
) -> SourceRow:
    """Validate and normalize one raw record.

    Raises ``RowValidationError`` listing every field problem found, not just the
    first. Never touches the entity store.
    """

    defaults = config or SyncConfig()
    cleaned = {name: _clean(value) for name, value in raw.items()}

    errors: list[FieldError] = []
    for name, label in REQUIRED_FIELDS.items():
        if cleaned.get(name):
            continue
        if name in IDENTIFIER_FIELDS and name in raw and raw[name] is not None:
            errors.append(FieldError(name, f"blank identifier ({label})"))
        else:
            errors.append(FieldError(name, f"missing required field ({label})"))

    email = cleaned.get("customer_email", "").lower()
    if email and not EMAIL_PATTERN.match(email):
        errors.append(FieldError("customer_email", f"invalid email format {email!r}"))

    if errors:
        raise RowValidationError(row_number if row_number is not None else 0, errors)

    return SourceRow(
        company_key=cleaned["company_key"],
        company_name=cleaned["company_name"],
        location_key=cleaned["location_key"],
        customer_email=email,
        customer_first_name=cleaned["customer_first_name"],
        customer_last_name=cleaned["customer_last_name"],
        customer_role=(cleaned.get("customer_role") or defaults.default_role).upper(),
        attention=cleaned.get("attention", ""),
        address1=cleaned.get("address1", ""),
        address2=cleaned.get("address2", ""),
        city=cleaned.get("city", ""),
        region=cleaned.get("region", ""),
        postal_code=cleaned.get("postal_code", ""),
        country=cleaned.get("country") or defaults.default_country,
        location_name=cleaned.get("location_name", ""),
        price_level=cleaned.get("price_level", ""),
        payment_terms=cleaned.get("payment_terms", ""),
        currency_code=(cleaned.get("currency_code") or defaults.default_currency).upper(),
        sales_rep=cleaned.get("sales_rep", ""),
        tax_details=cleaned.get("tax_details", ""),
        credit_hold=_flag(raw.get("credit_hold")),
        ar_red_flag=_flag(raw.get("ar_red_flag")),
        primary_contact_email=cleaned.get("primary_contact_email", ""),
        billing_contact_email=cleaned.get("billing_contact_email", ""),
        billing_contact_email_2=cleaned.get("billing_contact_email_2", ""),
        source_row=row_number,
    )


def flag_duplicates(rows: Sequence[SourceRow]) -> tuple[list[SourceRow], list[str]]:
    """Mark every repeat of a composite key and describe each repeat.

    Duplicates are kept in the returned list so callers can still report on
    them; the first occurrence stays unflagged.
    """

    first_seen: dict[str, SourceRow] = {}
    flagged: list[SourceRow] = []
    messages: list[str] = []
    for row in rows:
        key = row.composite_key
        original = first_seen.get(key)
        if original is None:
            first_seen[key] = row
            flagged.append(row)
            continue
        flagged.append(replace(row, is_duplicate_within_batch=True))
        where = f"row {row.source_row}" if row.source_row is not None else "a later row"
        first = (
            f"row {original.source_row}" if original.source_row is not None else "an earlier row"
        )
        messages.append(
            f"Duplicate Company+Location combination {row.company_key!r} + "
            f"{row.location_key!r} in {where} (first seen in {first})"
        )
    return flagged, messages


def _is_empty(raw: RawRecord) -> bool:
    return not any(_clean(value) for value in raw.values())


def normalize_records(
    records: Iterable[RawRecord],
    *,
    config: SyncConfig | None = None,
    first_row_number: int = FIRST_DATA_ROW,
) -> NormalizationReport:
    """Normalize a batch, collecting every record's errors instead of stopping."""

    report = NormalizationReport()
    valid: list[SourceRow] = []
    for offset, raw in enumerate(records):
        row_number = first_row_number + offset
        if _is_empty(raw):
            log.debug("Row %s is empty, skipping", row_number)
            report.skipped_empty += 1
            continue
        try:
            valid.append(normalize_record(raw, row_number=row_number, config=config))
        except RowValidationError as exc:
            log.warning("%s", exc)
            report.errors.append(exc)

    report.rows, report.duplicate_errors = flag_duplicates(valid)
    for message in report.duplicate_errors:
        log.warning("%s", message)
    return report
