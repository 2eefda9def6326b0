"""Finding extraction from lab results.

Findings are the human-readable layer of a lab run: issues, quick wins,
recommendations, opportunities, risks, competitors and insights. Each carries a
canonical hash of its text so the same fact is recognised across runs and across
the fields it gets promoted into.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

from factweave.domain.hashing import canonical_hash
from factweave.domain.model import Finding, FindingImpact, TargetFieldRecommendation

from .base import as_list, as_mapping, get_path, parse_raw

if TYPE_CHECKING:
    from factweave.domain.model import JsonValue

    from .base import RawMapping

log = logging.getLogger(__name__)

TITLE_LENGTH: Final[int] = 100
RECOMMENDATION_LIMIT: Final[int] = 5
BASE_MATCH_SCORE: Final[int] = 50

CATEGORY_TARGET_FIELDS: Final[dict[str, tuple[str, ...]]] = {
    "conversion": ("website.conversionBlocks", "website.quickWins", "website.recommendations"),
    "ux": ("website.uxAssessment", "website.pageAssessments", "website.recommendations"),
    "messaging": ("brand.positioning", "brand.valueProposition", "productOffer.valueProposition"),
    "competitors": (
        "competition.primaryCompetitors",
        "competition.threatSummary",
        "competition.differentiationAxes",
    ),
    "brand": ("brand.positioning", "brand.valueProposition", "identity.companyDescription"),
    "trust": ("website.trustAnalysis", "website.recommendations"),
    "technical": ("digitalInfra.techStack", "website.technicalIssues"),
    "strategy": ("brand.positioning", "productOffer.primaryOffer", "audience.primaryAudience"),
    "audience": ("audience.primaryAudience", "audience.icpDescription", "audience.painPoints"),
    "positioning": (
        "brand.positioning",
        "brand.valueProposition",
        "competition.positioningMapSummary",
    ),
    "other": ("website.recommendations",),
}
LAB_DOMAINS: Final[dict[str, frozenset[str]]] = {
    "website_lab": frozenset({"website"}),
    "brand_lab": frozenset({"brand", "audience"}),
    "competition_lab": frozenset({"competition"}),
}


@dataclass(slots=True, kw_only=True, frozen=True)
class FindingSource:
    """Where one kind of finding lives in a lab result and how it is scored."""

    prefix: str
    kind: str
    paths: tuple[str, ...]
    category: str
    confidence: float
    default_title: str
    impact: FindingImpact = FindingImpact.MEDIUM
    severity_impact: bool = False


WEBSITE_SOURCES: Final[tuple[FindingSource, ...]] = (
    FindingSource(
        prefix="wl-crit",
        kind="critical_issue",
        paths=("siteAssessment.criticalIssues", "criticalIssues"),
        category="conversion",
        confidence=0.85,
        default_title="Critical Issue",
        impact=FindingImpact.HIGH,
    ),
    FindingSource(
        prefix="wl-issue",
        kind="issue",
        paths=("siteAssessment.issues", "issues"),
        category="ux",
        confidence=0.75,
        default_title="Issue",
        severity_impact=True,
    ),
    FindingSource(
        prefix="wl-qw",
        kind="quick_win",
        paths=("siteAssessment.quickWins", "quickWins"),
        category="conversion",
        confidence=0.8,
        default_title="Quick Win",
        impact=FindingImpact.HIGH,
    ),
    FindingSource(
        prefix="wl-rec",
        kind="recommendation",
        paths=("siteAssessment.recommendations", "recommendations"),
        category="ux",
        confidence=0.7,
        default_title="Recommendation",
    ),
    FindingSource(
        prefix="wl-trust",
        kind="trust",
        paths=("trustAnalysis.issues", "trustAnalysis.findings"),
        category="trust",
        confidence=0.75,
        default_title="Trust Finding",
    ),
)
BRAND_SOURCES: Final[tuple[FindingSource, ...]] = (
    FindingSource(
        prefix="bl-issue",
        kind="issue",
        paths=("issues",),
        category="brand",
        confidence=0.75,
        default_title="Brand Issue",
        severity_impact=True,
    ),
    FindingSource(
        prefix="bl-qw",
        kind="quick_win",
        paths=("quickWins",),
        category="brand",
        confidence=0.8,
        default_title="Brand Quick Win",
        impact=FindingImpact.HIGH,
    ),
    FindingSource(
        prefix="bl-opp",
        kind="opportunity",
        paths=("findings.opportunities",),
        category="strategy",
        confidence=0.7,
        default_title="Brand Opportunity",
    ),
    FindingSource(
        prefix="bl-risk",
        kind="risk",
        paths=("findings.risks",),
        category="brand",
        confidence=0.7,
        default_title="Brand Risk",
        severity_impact=True,
    ),
)
COMPETITION_SOURCES: Final[tuple[FindingSource, ...]] = (
    FindingSource(
        prefix="cl-ins",
        kind="insight",
        paths=("insights",),
        category="positioning",
        confidence=0.75,
        default_title="Competitive Insight",
    ),
)
FINDING_SOURCES: Final[dict[str, tuple[FindingSource, ...]]] = {
    "website_lab": WEBSITE_SOURCES,
    "brand_lab": BRAND_SOURCES,
    "competition_lab": COMPETITION_SOURCES,
}
_UNWRAP_PATHS: Final[dict[str, tuple[str, ...]]] = {
    "website_lab": ("rawEvidence.labResultV4", "websiteLab"),
    "brand_lab": ("brandLab",),
    "competition_lab": ("run",),
}


def recommend_target_fields(
    *,
    lab_key: str,
    title: str,
    description: str,
    category: str | None,
) -> list[TargetFieldRecommendation]:
    """Rank the fields a finding of ``category`` most plausibly belongs to."""

    targets = CATEGORY_TARGET_FIELDS.get(category or "other", CATEGORY_TARGET_FIELDS["other"])
    lab_domains = LAB_DOMAINS.get(lab_key, frozenset())
    title_lower = title.lower()
    description_lower = description.lower()
    recommendations: list[TargetFieldRecommendation] = []
    for field_key in targets:
        domain, _, name = field_key.partition(".")
        score = BASE_MATCH_SCORE
        if name.lower() in title_lower:
            score += 20
        if domain.lower() in description_lower:
            score += 15
        if domain in lab_domains:
            score += 15
        recommendations.append(
            TargetFieldRecommendation(
                field_key=field_key,
                match_score=min(score, 100),
                reason=f"Based on {category or 'other'} category",
            )
        )
    recommendations.sort(key=lambda item: item.match_score, reverse=True)
    return recommendations[:RECOMMENDATION_LIMIT]


def extract_findings(
    lab_key: str,
    run_id: str | None,
    raw_result: JsonValue | str | None,
) -> list[Finding]:
    """Return the findings of one lab run; unknown labs and bad payloads yield none."""

    root = parse_raw(raw_result)
    sources = FINDING_SOURCES.get(lab_key)
    if root is None or sources is None:
        return []
    lab = _unwrap(lab_key, root)

    findings: list[Finding] = []
    seen: set[str] = set()
    for source in sources:
        for item in _first_list(lab, source.paths):
            finding = _item_finding(lab_key, run_id, source, item)
            if finding is not None and finding.finding_id not in seen:
                seen.add(finding.finding_id)
                findings.append(finding)

    if lab_key == "competition_lab":
        for competitor in as_list(lab.get("competitors")):
            finding = _competitor_finding(run_id, competitor)
            if finding is not None and finding.finding_id not in seen:
                seen.add(finding.finding_id)
                findings.append(finding)

    log.debug("Extracted %s finding(s) from %s run %s", len(findings), lab_key, run_id)
    return findings


def _unwrap(lab_key: str, root: RawMapping) -> RawMapping:
    for path in _UNWRAP_PATHS.get(lab_key, ()):
        nested = as_mapping(get_path(root, path))
        if nested is not None:
            return nested
    return root


def _first_list(lab: RawMapping, paths: tuple[str, ...]) -> list[Any]:
    for path in paths:
        items = as_list(get_path(lab, path))
        if items:
            return items
    return []


def _text(value: object) -> str | None:
    return value.strip() or None if isinstance(value, str) else None


def _item_finding(
    lab_key: str,
    run_id: str | None,
    source: FindingSource,
    item: object,
) -> Finding | None:
    mapping = as_mapping(item)
    if mapping is None:
        text = _text(item)
        if text is None:
            return None
        title, description = text, text
        severity = None
    else:
        title = (
            _text(mapping.get("title"))
            or _text(mapping.get("issue"))
            or _text(mapping.get("text"))
            or _text(mapping.get("description"))
            or source.default_title
        )
        description = (
            _text(mapping.get("description"))
            or _text(mapping.get("issue"))
            or _text(mapping.get("text"))
            or _text(mapping.get("title"))
            or json.dumps(mapping, default=str, sort_keys=True)
        )
        severity = mapping.get("severity")

    impact = source.impact
    if source.severity_impact:
        impact = {"high": FindingImpact.HIGH, "low": FindingImpact.LOW}.get(
            str(severity).lower(), FindingImpact.MEDIUM
        )
    digest = canonical_hash(description, lab_key, source.kind)
    finding = Finding(
        finding_id=f"{source.prefix}-{digest}",
        canonical_hash=digest,
        lab_key=lab_key,
        run_id=run_id,
        kind=source.kind,
        title=title[:TITLE_LENGTH],
        description=description,
        impact=impact,
        category=source.category,
        confidence=source.confidence,
    )
    finding.recommended_target_fields = recommend_target_fields(
        lab_key=lab_key,
        title=finding.title,
        description=finding.description,
        category=finding.category,
    )
    return finding


def _competitor_finding(run_id: str | None, item: object) -> Finding | None:
    competitor = as_mapping(item)
    name = _text(competitor.get("name")) if competitor is not None else None
    if competitor is None or name is None:
        return None
    domain = _text(competitor.get("domain"))
    description = _text(competitor.get("summary")) or f"{name} ({domain or 'Unknown domain'})"
    threat = get_path(competitor, "scores.threatScore")
    threat = threat if isinstance(threat, int | float) and not isinstance(threat, bool) else 0
    if threat >= 60:  # noqa: PLR2004
        impact = FindingImpact.HIGH
    elif threat >= 30:  # noqa: PLR2004
        impact = FindingImpact.MEDIUM
    else:
        impact = FindingImpact.LOW
    confidence = get_path(competitor, "classification.confidence")
    if not isinstance(confidence, int | float) or isinstance(confidence, bool) or not confidence:
        confidence = 0.7

    digest = canonical_hash(name, "competition_lab", "competitor")
    title = f"Competitor: {name}"[:TITLE_LENGTH]
    finding = Finding(
        finding_id=f"cl-comp-{digest}",
        canonical_hash=digest,
        lab_key="competition_lab",
        run_id=run_id,
        kind="competitor",
        title=title,
        description=description,
        impact=impact,
        category="competitors",
        confidence=float(confidence),
        evidence_url=f"https://{domain}" if domain else None,
    )
    finding.recommended_target_fields = recommend_target_fields(
        lab_key="competition_lab",
        title=title,
        description=description,
        category="competitors",
    )
    return finding
