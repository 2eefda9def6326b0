"""Human-readable diagnostic findings that may be promoted into field proposals."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from factweave.domain.model.enums import FindingImpact, PromotionStatus

if TYPE_CHECKING:
    from factweave.domain.model.primitives import Confidence, FieldKey


@dataclass(slots=True, kw_only=True, frozen=True)
class TargetFieldRecommendation:
    field_key: FieldKey
    match_score: int
    reason: str | None = None


@dataclass(slots=True, kw_only=True)
class Finding:
    """A single issue/opportunity surfaced by a lab run.

    ``canonical_hash`` identifies the underlying fact independent of the run that
    produced it, so re-runs and cross-field promotions can be recognised.
    """

    finding_id: str
    canonical_hash: str
    lab_key: str
    run_id: str | None
    kind: str
    title: str
    description: str
    impact: FindingImpact = FindingImpact.MEDIUM
    category: str | None = None
    confidence: Confidence = 0.7
    evidence_url: str | None = None
    recommended_target_fields: list[TargetFieldRecommendation] = field(
        default_factory=list[TargetFieldRecommendation]
    )
    promotion_status: PromotionStatus = PromotionStatus.NOT_PROMOTED
