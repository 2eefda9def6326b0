"""Competition lab run schemas (V3 payload)."""

from __future__ import annotations

import logging
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)


class CompetitionBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "Competition %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class ClassificationSignals(CompetitionBaseModel):
    business_model_match: bool = Field(default=False, alias="businessModelMatch")
    same_market: bool = Field(default=False, alias="sameMarket")
    service_overlap: bool = Field(default=False, alias="serviceOverlap")


class Classification(CompetitionBaseModel):
    type: str | None = None
    confidence: float | None = None
    signals: ClassificationSignals | None = None


class CompetitorScores(CompetitionBaseModel):
    threat_score: float | None = Field(default=None, alias="threatScore")
    relevance_score: float | None = Field(default=None, alias="relevanceScore")


class CompetitorMetadata(CompetitionBaseModel):
    pricing_tier: str | None = Field(default=None, alias="pricingTier")
    service_model: str | None = Field(default=None, alias="serviceModel")
    business_model: str | None = Field(default=None, alias="businessModel")
    has_ai_capabilities: bool = Field(default=False, alias="hasAICapabilities")
    has_automation: bool = Field(default=False, alias="hasAutomation")
    service_regions: list[str] = Field(default_factory=list[str], alias="serviceRegions")
    tech_stack: list[str] = Field(default_factory=list[str], alias="techStack")


class CompetitorAnalysis(CompetitionBaseModel):
    differentiators: list[str] = Field(default_factory=list[str])
    why_competitor: str | None = Field(default=None, alias="whyCompetitor")


class CompetitorProfile(CompetitionBaseModel):
    name: str
    domain: str | None = None
    homepage_url: str | None = Field(default=None, alias="homepageUrl")
    summary: str | None = None
    classification: Classification | None = None
    scores: CompetitorScores | None = None
    metadata: CompetitorMetadata | None = None
    analysis: CompetitorAnalysis | None = None
    offer_overlap_score: float | None = Field(default=None, alias="offerOverlapScore")
    jtbd_matches: int | None = Field(default=None, alias="jtbdMatches")

    @property
    def type(self) -> str | None:
        return self.classification.type if self.classification is not None else None

    @property
    def threat(self) -> float:
        return (self.scores.threat_score if self.scores is not None else None) or 0.0

    @property
    def relevance(self) -> float:
        return (self.scores.relevance_score if self.scores is not None else None) or 0.0

    @property
    def classification_confidence(self) -> float:
        return (
            self.classification.confidence if self.classification is not None else None
        ) or 0.0


class CompetitionSummary(CompetitionBaseModel):
    quadrant_distribution: dict[str, int] = Field(
        default_factory=dict[str, int], alias="quadrantDistribution"
    )


class CompetitionErrorInfo(CompetitionBaseModel):
    type: str | None = None
    message: str | None = None


class CompetitionRun(CompetitionBaseModel):
    status: str | None = None
    error: str | None = None
    error_info: CompetitionErrorInfo | None = Field(default=None, alias="errorInfo")
    competitors: list[CompetitorProfile] = Field(default_factory=list[CompetitorProfile])
    summary: CompetitionSummary | None = None
