"""Public domain model surface."""

from __future__ import annotations

from factweave.domain.model.candidates import (
    UNKNOWN_EXTRACTION_PATH,
    Candidate,
    ErrorState,
    ExtractionResult,
    SkippedCounts,
    is_meaningful_value,
)
from factweave.domain.model.enums import (
    FieldSource,
    FieldStatus,
    FindingImpact,
    HealthReason,
    HealthStatus,
    NextAction,
    PromotionStatus,
    RunStatus,
)
from factweave.domain.model.errors import (
    FieldKeyError,
    StaleStoreError,
    StoreLoadError,
    StoreLoadErrorKind,
    StoreSaveError,
)
from factweave.domain.model.fields import (
    FieldCounts,
    FieldEvidence,
    FieldRecord,
    FieldStore,
    StoreMeta,
    field_domain,
    parse_field_key,
)
from factweave.domain.model.findings import Finding, TargetFieldRecommendation
from factweave.domain.model.graph import ContextGraph, GraphNode
from factweave.domain.model.primitives import (
    Confidence,
    EntityId,
    FieldKey,
    JsonValue,
    clamp_confidence,
    utcnow,
)
from factweave.domain.model.requirements import (
    DEFAULT_REQUIRED_FIELDS,
    REQUIRED_FIELDS_VERSION,
    RequiredFieldSpec,
)
from factweave.domain.model.runs import DiagnosticRun
from factweave.domain.model.sources import compute_confidence, map_source, preview_value

__all__ = [  # noqa: RUF022
    # candidates
    "UNKNOWN_EXTRACTION_PATH",
    "Candidate",
    "ErrorState",
    "ExtractionResult",
    "SkippedCounts",
    "is_meaningful_value",
    # enums
    "FieldSource",
    "FieldStatus",
    "FindingImpact",
    "HealthReason",
    "HealthStatus",
    "NextAction",
    "PromotionStatus",
    "RunStatus",
    # errors
    "FieldKeyError",
    "StaleStoreError",
    "StoreLoadError",
    "StoreLoadErrorKind",
    "StoreSaveError",
    # fields
    "FieldCounts",
    "FieldEvidence",
    "FieldRecord",
    "FieldStore",
    "StoreMeta",
    "field_domain",
    "parse_field_key",
    # findings
    "Finding",
    "TargetFieldRecommendation",
    # graph
    "ContextGraph",
    "GraphNode",
    # primitives
    "Confidence",
    "EntityId",
    "FieldKey",
    "JsonValue",
    "clamp_confidence",
    "utcnow",
    # requirements
    "DEFAULT_REQUIRED_FIELDS",
    "REQUIRED_FIELDS_VERSION",
    "RequiredFieldSpec",
    # runs
    "DiagnosticRun",
    # sources
    "compute_confidence",
    "map_source",
    "preview_value",
]
