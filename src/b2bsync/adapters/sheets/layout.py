"""Positional column layout of the companies sheet (columns A through Y)."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from b2bsync.domain.ports import RawRecord

SHEET_COLUMNS: tuple[str, ...] = (
    "company_key",  # A
    "company_name",  # B
    "location_key",  # C
    "attention",  # D
    "address1",  # E
    "address2",  # F
    "city",  # G
    "region",  # H
    "postal_code",  # I
    "country",  # J
    "customer_email",  # K
    "customer_first_name",  # L
    "customer_last_name",  # M
    "customer_role",  # N
    "price_level",  # O
    "payment_terms",  # P
    "currency_code",  # Q
    "sales_rep",  # R
    "tax_details",  # S
    "credit_hold",  # T
    "ar_red_flag",  # U
    "primary_contact_email",  # V
    "billing_contact_email",  # W
    "billing_contact_email_2",  # X
    "location_name",  # Y
)


def record_from_cells(cells: Sequence[object]) -> RawRecord:
    """Map one row of cell values onto canonical field names.

    The Sheets API drops trailing empty cells, so short rows leave the remaining
    fields as ``None``. Cells beyond column Y are ignored.
    """

    record: dict[str, str | None] = {}
    for index, name in enumerate(SHEET_COLUMNS):
        value = cells[index] if index < len(cells) else None
        record[name] = None if value is None else str(value)
    return record
