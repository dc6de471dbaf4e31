"""Row-to-entity reconciliation core.

Rows are normalized (``rows``), validated as a batch and run one by one
(``batch``) through a four-stage pipeline (``pipeline``) whose stages call the
find-or-create resolver (``resolver``) against a ``RemoteEntityStore`` port.
"""

from __future__ import annotations

from .batch import (
    BatchCoordinator,
    BatchResult,
    BatchStatus,
    BatchValidationReport,
    EntityCounts,
    build_coordinator,
    run_batch,
    validate_batch,
)
from .errors import (
    AlreadyAssigned,
    BatchValidationError,
    ConflictError,
    CustomerAlreadyAssociated,
    FieldError,
    RemoteFailure,
    RowValidationError,
    SyncError,
    TransientRemoteError,
    ValidationError,
)
from .model import ContactResolution, Linked, Resolved, Unassignable
from .pipeline import RowFailure, RowOutcome, RowPipeline, RowStage, RowStep
from .ports import RawRecord, RecordSource, RemoteEntityStore
from .resolver import EntityResolver, KeyedLocks
from .rows import NormalizationReport, SourceRow, normalize_record, normalize_records

__all__ = [
    "AlreadyAssigned",
    "BatchCoordinator",
    "BatchResult",
    "BatchStatus",
    "BatchValidationError",
    "BatchValidationReport",
    "ConflictError",
    "ContactResolution",
    "CustomerAlreadyAssociated",
    "EntityCounts",
    "EntityResolver",
    "FieldError",
    "KeyedLocks",
    "Linked",
    "NormalizationReport",
    "RawRecord",
    "RecordSource",
    "RemoteEntityStore",
    "RemoteFailure",
    "Resolved",
    "RowFailure",
    "RowOutcome",
    "RowPipeline",
    "RowStage",
    "RowStep",
    "RowValidationError",
    "SourceRow",
    "SyncError",
    "TransientRemoteError",
    "Unassignable",
    "ValidationError",
    "build_coordinator",
    "normalize_record",
    "normalize_records",
    "run_batch",
    "validate_batch",
]
