"""Shared proposal contract components.

This module intentionally holds only:
- the request handed to the proposal engine
- per-candidate merge decisions
- the outcome returned to callers
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from factweave.domain.model import Candidate, EntityId, FieldKey


@dataclass(slots=True, kw_only=True)
class ProposalRequest:
    """One batch of candidates from one importer for one entity."""

    entity_id: EntityId
    importer_id: str
    source: str
    source_id: str | None = None
    extraction_path: str | None = None
    candidates: list[Candidate] = field(default_factory=list["Candidate"])


class MergeDecision(StrEnum):
    """How a single candidate was merged into the store."""

    CREATE = "create"
    REPROPOSE = "repropose"
    REPLACE = "replace"
    BLOCK_CONFIRMED = "block_confirmed"
    BLOCK_DUPLICATE = "block_duplicate"
    BLOCK_REJECTED = "block_rejected"
    SKIP_EMPTY = "skip_empty"
    ERROR = "error"


@dataclass(slots=True, kw_only=True, frozen=True)
class CandidateError:
    key: str
    message: str


@dataclass(slots=True, kw_only=True)
class ProposalOutcome:
    """Counts and key lists for one proposal batch; returned, never persisted."""

    proposed_count: int = 0
    blocked_count: int = 0
    replaced_count: int = 0
    skipped_empty: int = 0
    errors: list[CandidateError] = field(default_factory=list[CandidateError])
    proposed_keys: list[FieldKey] = field(default_factory=list["FieldKey"])
    blocked_keys: list[FieldKey] = field(default_factory=list["FieldKey"])
    replaced_keys: list[FieldKey] = field(default_factory=list["FieldKey"])
    store_error: str | None = None
    persisted: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.proposed_count or self.replaced_count)

    @property
    def ok(self) -> bool:
        return self.store_error is None

    def record(self, key: FieldKey, decision: MergeDecision) -> None:
        match decision:
            case MergeDecision.CREATE | MergeDecision.REPROPOSE:
                self.proposed_count += 1
                self.proposed_keys.append(key)
            case MergeDecision.REPLACE:
                self.replaced_count += 1
                self.replaced_keys.append(key)
            case (
                MergeDecision.BLOCK_CONFIRMED
                | MergeDecision.BLOCK_DUPLICATE
                | MergeDecision.BLOCK_REJECTED
            ):
                self.blocked_count += 1
                self.blocked_keys.append(key)
            case MergeDecision.SKIP_EMPTY:
                self.skipped_empty += 1
            case MergeDecision.ERROR:
                pass

    def add_error(self, key: object, message: str) -> None:
        self.errors.append(CandidateError(key=str(key), message=message))
