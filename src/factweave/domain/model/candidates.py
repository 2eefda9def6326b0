"""Ephemeral candidate values produced by importers and their extraction reports."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from factweave.domain.model.primitives import Confidence, FieldKey, JsonValue

UNKNOWN_EXTRACTION_PATH = "unknown"


def is_meaningful_value(value: object) -> bool:
    """Return whether ``value`` carries content worth proposing.

    ``None``, blank strings and empty collections are not meaningful; numbers
    (including ``0``) and booleans are.
    """

    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, Mapping | Sequence):
        return len(value) > 0
    return True


@dataclass(slots=True, kw_only=True)
class Candidate:
    """A key/value/confidence triple proposed by an importer, never persisted as-is."""

    key: FieldKey
    value: JsonValue
    confidence: Confidence
    source: str | None = None
    evidence_text: str | None = None
    raw_path: str | None = None
    is_inferred: bool = False
    finding_hash: str | None = None
    observed_at: datetime | None = None


@dataclass(slots=True, kw_only=True)
class SkippedCounts:
    wrong_domain: int = 0
    empty_value: int = 0
    no_mapping: int = 0

    @property
    def total(self) -> int:
        return self.wrong_domain + self.empty_value + self.no_mapping


@dataclass(slots=True, kw_only=True, frozen=True)
class ErrorState:
    """Upstream run looked like a failure; its payload must not be proposed."""

    error_type: str
    message: str
    matched: str | None = None


@dataclass(slots=True, kw_only=True)
class ExtractionResult:
    """Outcome of running one candidate extractor over a raw upstream result."""

    importer_id: str
    extraction_path: str = UNKNOWN_EXTRACTION_PATH
    candidates: list[Candidate] = field(default_factory=list[Candidate])
    skipped: SkippedCounts = field(default_factory=SkippedCounts)
    skipped_wrong_domain_keys: list[str] = field(default_factory=list[str])
    top_level_keys: list[str] = field(default_factory=list[str])
    raw_keys_found: int = 0
    failure_reason: str | None = None
    error_state: ErrorState | None = None

    @property
    def path_found(self) -> bool:
        return self.extraction_path != UNKNOWN_EXTRACTION_PATH

    @property
    def keys(self) -> list[FieldKey]:
        return [candidate.key for candidate in self.candidates]
