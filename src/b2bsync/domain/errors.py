"""Error taxonomy for the reconciliation core.

``ValidationError``  pre-flight, fatal to the whole batch.
``ConflictError``    expected business condition, resolved locally per case.
``RemoteFailure``    unexpected store failure, fatal to the current row only.

A missing entity is not an error: ``find_*`` store operations return ``None``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class SyncError(RuntimeError):
    """Base class for every error raised by the sync core."""


class ValidationError(SyncError):
    """Source data is structurally unusable."""


class RowValidationError(ValidationError):
    """One raw record failed field-level validation."""

    def __init__(self, row_number: int, errors: Sequence[FieldError]) -> None:
        self.row_number = row_number
        self.errors = tuple(errors)
        details = "; ".join(str(error) for error in self.errors)
        super().__init__(f"Row {row_number}: {details}")


class BatchValidationError(ValidationError):
    """Pre-flight validation failed; no remote call has been made."""

    def __init__(self, messages: Sequence[str], *, report: object | None = None) -> None:
        self.messages = tuple(messages)
        self.report = report
        count = len(self.messages)
        super().__init__(f"Batch validation failed with {count} error(s)")


@dataclass(frozen=True, slots=True)
class FieldError:
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class ConflictError(SyncError):
    """The store rejected a write because of existing state."""


class CustomerAlreadyAssociated(ConflictError):
    """The customer is already a contact of a different company."""


class AlreadyAssigned(ConflictError):
    """The contact already holds a role at the location."""


class RemoteFailure(SyncError):
    """The store call failed for a reason the core cannot resolve."""


class TransientRemoteError(RemoteFailure):
    """A failure worth retrying: throttling, timeouts, 5xx responses."""
