"""Competition lab candidate extractor.

Responsibilities of this stage:
- validate the run payload into typed competitor profiles
- bucket competitors by classification type
- quality-gate direct (and strongly-signalled partial) competitors into
  ``competition.primaryCompetitors``
- route platforms, fractional executives, internal alternatives and weak
  partial competitors into ``competition.marketAlternatives``
- derive differentiation axes and short summaries from the qualified set only
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final

from pydantic import ValidationError

from factweave.domain.model import ErrorState

from .base import KnownShape, LabExtractor, resolve_shape, snippet
from .schema import CompetitionRun, CompetitorProfile

if TYPE_CHECKING:
    from factweave.domain.model import ExtractionResult

    from .base import CandidateCollector, RawMapping

log = logging.getLogger(__name__)

COMPETITION_LAB_DOMAINS: Final[frozenset[str]] = frozenset({"competition"})

MIN_THREAT_SCORE: Final[float] = 25
MIN_RELEVANCE_SCORE: Final[float] = 20
MIN_OFFER_OVERLAP_SCORE: Final[float] = 0.2
MIN_JTBD_MATCHES: Final[int] = 1
PRIMARY_CAP: Final[int] = 5
ALTERNATIVES_CAP: Final[int] = 5

_RUN_SIGNATURE: Final[frozenset[str]] = frozenset({"competitors", "status", "errorInfo"})
COMPETITION_SHAPES: Final[tuple[KnownShape, ...]] = (
    KnownShape(name="competitionRunV3", signature=_RUN_SIGNATURE),
    KnownShape(name="run", path="run", signature=_RUN_SIGNATURE),
    KnownShape(name="result", path="result", signature=_RUN_SIGNATURE),
    KnownShape(name="data", path="data", signature=_RUN_SIGNATURE),
)

ALTERNATIVE_LABELS: Final[dict[str, str]] = {
    "fractional": "Fractional Executive",
    "platform": "Platform/Tool",
    "internal": "Internal Alternative",
}
PARTIAL_LABEL: Final[str] = "Category Neighbor"

_DIFFERENTIATOR_AXES: Final[tuple[tuple[tuple[str, ...], str], ...]] = (
    (("price", "cost"), "pricing"),
    (("easy", "simple"), "ease-of-use"),
    (("integrat",), "integrations"),
    (("support", "service"), "support"),
    (("feature",), "features"),
    (("enterprise",), "enterprise-focus"),
    (("small", "smb"), "smb-focus"),
)


@dataclass(slots=True, kw_only=True)
class CompetitorBuckets:
    direct: list[CompetitorProfile] = field(default_factory=list[CompetitorProfile])
    partial: list[CompetitorProfile] = field(default_factory=list[CompetitorProfile])
    fractional: list[CompetitorProfile] = field(default_factory=list[CompetitorProfile])
    platform: list[CompetitorProfile] = field(default_factory=list[CompetitorProfile])
    internal: list[CompetitorProfile] = field(default_factory=list[CompetitorProfile])
    unknown: list[CompetitorProfile] = field(default_factory=list[CompetitorProfile])


def bucket_competitors(competitors: list[CompetitorProfile]) -> CompetitorBuckets:
    buckets = CompetitorBuckets()
    for competitor in competitors:
        match competitor.type:
            case "direct":
                buckets.direct.append(competitor)
            case "partial":
                buckets.partial.append(competitor)
            case "fractional":
                buckets.fractional.append(competitor)
            case "platform":
                buckets.platform.append(competitor)
            case "internal":
                buckets.internal.append(competitor)
            case _:
                buckets.unknown.append(competitor)
    return buckets


def meets_quality_threshold(competitor: CompetitorProfile) -> bool:
    return competitor.threat >= MIN_THREAT_SCORE or competitor.relevance >= MIN_RELEVANCE_SCORE


def qualifies_via_signals(competitor: CompetitorProfile) -> bool:
    """A partial competitor counts as direct when its signals say same market and model."""

    classification = competitor.classification
    signals = classification.signals if classification is not None else None
    if signals is None or not (signals.business_model_match and signals.same_market):
        return False
    return (
        signals.service_overlap
        or (competitor.offer_overlap_score or 0) >= MIN_OFFER_OVERLAP_SCORE
        or (competitor.jtbd_matches or 0) >= MIN_JTBD_MATCHES
    )


def _by_quality(competitor: CompetitorProfile) -> tuple[float, float, float]:
    return (
        -competitor.threat,
        -competitor.relevance,
        -competitor.classification_confidence,
    )


def qualified_direct_set(buckets: CompetitorBuckets) -> list[CompetitorProfile]:
    qualified = [c for c in buckets.direct if meets_quality_threshold(c)]
    qualified.extend(
        c for c in buckets.partial if qualifies_via_signals(c) and meets_quality_threshold(c)
    )
    qualified.sort(key=_by_quality)
    if len(qualified) > PRIMARY_CAP:
        log.debug("Dropping %s competitors over the primary cap", len(qualified) - PRIMARY_CAP)
    return qualified[:PRIMARY_CAP]


def market_alternatives(buckets: CompetitorBuckets) -> list[dict[str, Any]]:
    labelled: list[tuple[CompetitorProfile, str]] = [
        (competitor, label)
        for kind, label in ALTERNATIVE_LABELS.items()
        for competitor in getattr(buckets, kind)
    ]
    labelled.extend(
        (competitor, PARTIAL_LABEL)
        for competitor in buckets.partial
        if not (qualifies_via_signals(competitor) and meets_quality_threshold(competitor))
    )
    labelled.sort(key=lambda item: -(item[0].relevance + item[0].threat))
    return [
        _compact(
            name=competitor.name,
            domain=competitor.domain,
            url=competitor.homepage_url,
            type=label,
            summary=competitor.summary,
        )
        for competitor, label in labelled[:ALTERNATIVES_CAP]
    ]


def differentiation_axes(competitors: list[CompetitorProfile]) -> list[str]:
    axes: dict[str, None] = {}
    for competitor in competitors:
        metadata = competitor.metadata
        if metadata is not None:
            flags = (
                (metadata.pricing_tier, "pricing"),
                (metadata.service_model, "service model"),
                (metadata.business_model, "business model"),
                (metadata.has_ai_capabilities, "AI capabilities"),
                (metadata.has_automation, "automation"),
                (metadata.service_regions, "geography"),
                (metadata.tech_stack, "technology"),
            )
            for present, axis in flags:
                if present:
                    axes.setdefault(axis)
        analysis = competitor.analysis
        if analysis is None:
            continue
        texts = [text.lower() for text in analysis.differentiators[:5]]
        if analysis.why_competitor:
            texts.append(analysis.why_competitor.lower())
        for text in texts:
            for needles, axis in _DIFFERENTIATOR_AXES:
                if any(needle in text for needle in needles):
                    axes.setdefault(axis)
    return list(axes)


def positioning_map_summary(
    direct: list[CompetitorProfile],
    partial: list[CompetitorProfile],
    run: CompetitionRun,
) -> str | None:
    parts: list[str] = []
    if direct:
        parts.append("Direct competitors: " + ", ".join(c.name for c in direct[:3]))
    if partial:
        parts.append("Category neighbors: " + ", ".join(c.name for c in partial[:2]))
    threats = run.summary.quadrant_distribution.get("direct-threat", 0) if run.summary else 0
    if threats > 0:
        parts.append(f"{threats} direct threats in competitive landscape")
    return ". ".join(parts) or None


def threat_summary(direct: list[CompetitorProfile]) -> str | None:
    parts: list[str] = []
    for competitor in direct:
        if competitor.threat < MIN_THREAT_SCORE:
            continue
        why = (competitor.analysis.why_competitor if competitor.analysis else None) or (
            competitor.summary or ""
        )
        parts.append(f"{competitor.name} (threat: {competitor.threat:g}%): {why[:80]}")
        if len(parts) == 3:  # noqa: PLR2004
            break
    return "; ".join(parts) or None


def _compact(**values: Any) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value not in (None, "")}


def run_error_state(run: CompetitionRun) -> ErrorState | None:
    if run.error_info is not None and run.error_info.type == "LOW_CONFIDENCE_CONTEXT":
        return ErrorState(
            error_type="LOW_CONFIDENCE_CONTEXT",
            message=run.error_info.message or "Insufficient context to identify business type",
            matched="errorInfo",
        )
    if run.status in {"pending", "running"}:
        return ErrorState(
            error_type="INCOMPLETE",
            message=f"Competition run is {run.status} and not complete",
            matched="status",
        )
    if not run.competitors:
        if run.error and "confidence" in run.error.lower():
            return ErrorState(
                error_type="LOW_CONFIDENCE_CONTEXT", message=run.error, matched="error"
            )
        return ErrorState(
            error_type="NO_COMPETITORS",
            message="Competition run completed but found no competitors",
            matched="competitors",
        )
    return None


class CompetitionLabExtractor(LabExtractor):
    """Map a competition lab run to decision-grade competition fields."""

    importer_id = "competition_lab"
    default_domains = COMPETITION_LAB_DOMAINS

    def _extract(
        self,
        root: RawMapping,
        result: ExtractionResult,
        collector: CandidateCollector,
    ) -> None:
        resolved = resolve_shape(root, COMPETITION_SHAPES)
        if resolved is None:
            result.failure_reason = "No competition run found in raw data"
            return
        result.extraction_path, matched = resolved

        try:
            run = CompetitionRun.model_validate(matched)
        except ValidationError as exc:
            log.warning("Competition run failed validation: %s", exc.error_count())
            result.failure_reason = "Competition run payload did not validate"
            return

        error_state = run_error_state(run)
        if error_state is not None:
            result.error_state = error_state
            result.failure_reason = error_state.message
            return

        buckets = bucket_competitors(run.competitors)
        direct = qualified_direct_set(buckets)
        primary = [
            _compact(
                name=c.name,
                domain=c.domain,
                url=c.homepage_url,
                type=c.type,
                threatScore=c.scores.threat_score if c.scores else None,
                summary=c.summary,
            )
            for c in direct
        ]
        collector.add(
            "competition.primaryCompetitors",
            primary,
            0.85,
            raw_path="competitors[direct|partial]",
            evidence_text=snippet(primary[:3]),
        )

        alternatives = market_alternatives(buckets)
        collector.add(
            "competition.marketAlternatives",
            alternatives,
            0.65,
            raw_path="competitors[fractional|platform|internal|partial]",
            evidence_text=snippet(alternatives[:3]),
        )

        axes = differentiation_axes([*direct, *buckets.partial])
        collector.add(
            "competition.differentiationAxes",
            axes,
            0.55,
            raw_path="competitors.metadata|analysis",
            is_inferred=True,
        )
        collector.add(
            "competition.positioningMapSummary",
            positioning_map_summary(direct, buckets.partial, run),
            0.7,
            raw_path="competitors",
        )
        collector.add(
            "competition.threatSummary",
            threat_summary(direct),
            0.75,
            raw_path="competitors.scores.threatScore",
        )
