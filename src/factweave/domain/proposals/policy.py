"""Replace-vs-block policy for candidates targeting existing records.

Responsibilities of this stage:
- keep confirmed records authoritative over machine proposals
- keep a rejection standing against the run that was rejected; any other
  source may propose the key again
- decide when a proposed record is replaced rather than replayed
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from factweave.domain.model import FieldStatus

from .contracts import MergeDecision

if TYPE_CHECKING:
    from factweave.domain.model import Confidence, FieldRecord, JsonValue


@dataclass(slots=True, kw_only=True, frozen=True)
class ReplacePolicy:
    """Decide what happens when a candidate meets an existing record.

    ``min_confidence_delta`` only matters when the candidate repeats the stored value:
    the record is replaced when the new confidence exceeds the old one by more than
    the delta. The default of ``0.0`` means any increase replaces. A rejected record
    blocks candidates carrying the rejected proposal's ``source_id``.
    """

    min_confidence_delta: float = 0.0

    def decide(
        self,
        existing: FieldRecord | None,
        *,
        value: JsonValue,
        confidence: Confidence,
        source_id: str | None = None,
    ) -> MergeDecision:
        if existing is None:
            return MergeDecision.CREATE
        if existing.status is FieldStatus.CONFIRMED:
            return MergeDecision.BLOCK_CONFIRMED
        if existing.status is FieldStatus.REJECTED:
            if source_id is not None and existing.rejected_source_id == source_id:
                return MergeDecision.BLOCK_REJECTED
            return MergeDecision.REPROPOSE
        if not values_equal(existing.value, value):
            return MergeDecision.REPLACE
        if confidence - existing.confidence > self.min_confidence_delta:
            return MergeDecision.REPLACE
        return MergeDecision.BLOCK_DUPLICATE


def values_equal(left: JsonValue, right: JsonValue) -> bool:
    """Deep equality that does not conflate booleans with numbers."""

    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, dict) and isinstance(right, dict):
        if left.keys() != right.keys():
            return False
        return all(values_equal(left[key], right[key]) for key in left)
    if isinstance(left, list) and isinstance(right, list):
        if len(left) != len(right):
            return False
        return all(values_equal(a, b) for a, b in zip(left, right, strict=True))
    return left == right
