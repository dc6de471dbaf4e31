"""Per-row state machine driving the four resolution stages in order.

    START → COMPANY_RESOLVED → CONTACT_RESOLVED → LOCATION_RESOLVED → ASSIGNED → DONE

``FAILED`` is reachable from every stage. Each stage needs the identifier the
previous one produced, so stages never run out of order or in parallel within a
row. A row whose customer belongs to another company goes from
``LOCATION_RESOLVED`` straight to ``DONE``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import ConflictError, RemoteFailure, ValidationError
from .model import Linked, Unassignable

if TYPE_CHECKING:
    from .resolver import EntityResolver
    from .rows import SourceRow

log = getLogger(__name__)


class RowStage(StrEnum):
    START = "start"
    COMPANY_RESOLVED = "company_resolved"
    CONTACT_RESOLVED = "contact_resolved"
    LOCATION_RESOLVED = "location_resolved"
    ASSIGNED = "assigned"
    DONE = "done"
    FAILED = "failed"


class RowStep(StrEnum):
    VALIDATION = "validation"
    COMPANY = "company"
    CONTACT = "contact"
    LOCATION = "location"
    ASSIGNMENT = "assignment"


@dataclass(frozen=True, slots=True)
class RowFailure:
    """Why a row stopped, with the identifiers resolved before it did."""

    step: RowStep
    last_stage: RowStage
    error_type: str
    message: str
    source_row: int | None
    company_key: str
    location_key: str
    customer_email: str
    company_id: str | None = None
    contact_id: str | None = None
    location_id: str | None = None

    def describe(self) -> str:
        where = f"row {self.source_row}" if self.source_row is not None else "row"
        return (
            f"{where} [{self.company_key}|{self.location_key}] <{self.customer_email}> "
            f"failed at {self.step}: {self.error_type}: {self.message}"
        )


@dataclass(slots=True)
class RowOutcome:
    """What one row did to the store. ``None`` flags mean the stage never ran."""

    row: SourceRow
    stage: RowStage = RowStage.START
    company_id: str | None = None
    company_created: bool | None = None
    customer_created: bool | None = None
    contact_id: str | None = None
    contact_created: bool | None = None
    location_id: str | None = None
    location_created: bool | None = None
    assignment_created: bool = False
    assignment_skipped: bool = False
    failure: RowFailure | None = None

    @property
    def succeeded(self) -> bool:
        return self.stage is RowStage.DONE

    @property
    def failed(self) -> bool:
        return self.stage is RowStage.FAILED

    def fail(self, step: RowStep, exc: BaseException) -> None:
        self.failure = RowFailure(
            step=step,
            last_stage=self.stage,
            error_type=type(exc).__name__,
            message=str(exc),
            source_row=self.row.source_row,
            company_key=self.row.company_key,
            location_key=self.row.location_key,
            customer_email=self.row.customer_email,
            company_id=self.company_id,
            contact_id=self.contact_id,
            location_id=self.location_id,
        )
        self.stage = RowStage.FAILED


class DuplicateRowError(ValidationError):
    """The row repeats a composite key seen earlier in the batch."""


class RowPipeline:
    """Run one ``SourceRow`` through company, contact, location and assignment."""

    def __init__(self, resolver: EntityResolver) -> None:
        self._resolver = resolver

    async def process(self, row: SourceRow) -> RowOutcome:
        outcome = RowOutcome(row=row)
        if row.is_duplicate_within_batch:
            outcome.fail(
                RowStep.VALIDATION,
                DuplicateRowError(f"duplicate composite key {row.composite_key!r}"),
            )
            log.error("Refusing %s: duplicate within batch", row.label)
            return outcome

        step = RowStep.COMPANY
        try:
            company = await self._resolver.resolve_company(row)
            outcome.company_id = company.entity.id
            outcome.company_created = company.was_created
            outcome.stage = RowStage.COMPANY_RESOLVED

            step = RowStep.CONTACT
            resolution = await self._resolver.resolve_customer_and_contact(
                company.entity.id, row
            )
            outcome.customer_created = resolution.customer_created
            outcome.contact_created = resolution.contact_created
            if isinstance(resolution, Linked):
                outcome.contact_id = resolution.contact.id
            outcome.stage = RowStage.CONTACT_RESOLVED

            step = RowStep.LOCATION
            location = await self._resolver.resolve_location(company.entity.id, row)
            outcome.location_id = location.entity.id
            outcome.location_created = location.was_created
            outcome.stage = RowStage.LOCATION_RESOLVED

            step = RowStep.ASSIGNMENT
            match resolution:
                case Unassignable():
                    log.info(
                        "Skipping location assignment for %s: customer belongs to another company",
                        row.label,
                    )
                    outcome.assignment_skipped = True
                case Linked(contact=contact):
                    assignment = await self._resolver.resolve_role_assignment(
                        contact.id,
                        company.entity.id,
                        location.entity.id,
                        row.customer_role,
                    )
                    outcome.assignment_created = assignment is not None
                    outcome.stage = RowStage.ASSIGNED
        except (RemoteFailure, ConflictError) as exc:
            outcome.fail(step, exc)
            log.error("Row failed: %s", outcome.failure.describe() if outcome.failure else exc)
            return outcome

        outcome.stage = RowStage.DONE
        log.info("Processed %s", row.label)
        return outcome
