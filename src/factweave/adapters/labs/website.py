"""Website lab candidate extractor.

Website lab results arrive in several layouts: the full lab result (nested under
one of many wrapper keys, or at the root) and a compact "vNext" layout with only
``score``/``summary``/``recommendations``/``issues``. Only website-owned domains
are authorised; brand, content and audience data found in the payload are
counted as wrong-domain and left to their own labs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

from factweave.domain.model import is_meaningful_value

from .base import (
    FALLBACK_SUFFIX,
    KnownShape,
    LabExtractor,
    as_list,
    as_mapping,
    get_path,
    resolve_shape,
    snippet,
)

if TYPE_CHECKING:
    from factweave.domain.model import ExtractionResult

    from .base import CandidateCollector, RawMapping, Transform

WEBSITE_LAB_DOMAINS: Final[frozenset[str]] = frozenset(
    {"website", "digitalInfra", "identity", "productOffer"}
)
BASE_CONFIDENCE: Final[float] = 0.8
QUICK_WIN_LIMIT: Final[int] = 5

PRIMARY_SIGNATURE: Final[frozenset[str]] = frozenset(
    {
        "siteAssessment",
        "siteGraph",
        "pages",
        "heuristics",
        "personas",
        "trustAnalysis",
        "ctaIntelligence",
        "contentIntelligence",
        "visualBrandEvaluation",
        "impactMatrix",
        "strategistViews",
    }
)
SECONDARY_SIGNATURE: Final[frozenset[str]] = frozenset(
    {
        "score",
        "scores",
        "summary",
        "executiveSummary",
        "uxScore",
        "seoScore",
        "conversionScore",
        "recommendations",
        "issues",
        "findings",
    }
)

_PRIMARY_PATHS: Final[tuple[tuple[str, str], ...]] = (
    ("rawEvidence.labResultV4", "rawEvidence.labResultV4"),
    ("websiteLab", "websiteLab"),
    ("lab", "lab"),
    ("websiteLabV4", "websiteLabV4"),
    ("result", "result"),
    ("output", "output"),
    ("data", "data"),
    ("result.websiteLab", "result.websiteLab"),
    ("result.lab", "result.lab"),
    ("data.websiteLab", "data.websiteLab"),
    ("output.websiteLab", "output.websiteLab"),
    ("evidencePack.websiteLabV4", "evidencePack.websiteLabV4"),
    ("direct", ""),
)
_FALLBACK_CONTAINERS: Final[tuple[str, ...]] = ("result", "output", "data", "websiteLab", "lab")

WEBSITE_SHAPES: Final[tuple[KnownShape, ...]] = (
    *(KnownShape(name=name, path=path, signature=PRIMARY_SIGNATURE) for name, path in _PRIMARY_PATHS),
    *(
        KnownShape(
            name=f"{name}{FALLBACK_SUFFIX}",
            path=name,
            signature=SECONDARY_SIGNATURE,
            min_signature_keys=2,
        )
        for name in _FALLBACK_CONTAINERS
    ),
    KnownShape(name=f"direct{FALLBACK_SUFFIX}", signature=SECONDARY_SIGNATURE, min_signature_keys=2),
)


def _text_items(value: Any, *, limit: int | None = None) -> list[str]:
    items: list[str] = []
    for item in as_list(value):
        if isinstance(item, str):
            text = item.strip()
        else:
            mapping = as_mapping(item) or {}
            raw = (
                mapping.get("title")
                or mapping.get("text")
                or mapping.get("description")
                or mapping.get("issue")
                or mapping.get("label")
                or mapping.get("name")
            )
            text = raw.strip() if isinstance(raw, str) else ""
        if text:
            items.append(text)
        if limit is not None and len(items) >= limit:
            break
    return items


def _summary_text(value: Any, _root: RawMapping) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    mapping = as_mapping(value)
    if mapping is None:
        return None
    for key in ("text", "overview", "headline", "narrative"):
        text = mapping.get(key)
        if isinstance(text, str) and text.strip():
            return text.strip()
    return None


def _score(value: Any, _root: RawMapping) -> float | int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return value
    mapping = as_mapping(value)
    if mapping is not None:
        return _score(mapping.get("overall") or mapping.get("score"), _root)
    return None


def _all_text_items(value: Any, _root: RawMapping) -> list[str]:
    return _text_items(value)


def _quick_wins(value: Any, _root: RawMapping) -> list[str]:
    tagged = [
        item
        for item in as_list(value)
        if (mapping := as_mapping(item)) is not None
        and (mapping.get("quickWin") is True or mapping.get("type") == "quick_win")
    ]
    return _text_items(tagged or value, limit=QUICK_WIN_LIMIT)


def _page_assessments(value: Any, _root: RawMapping) -> dict[str, list[str]] | None:
    pages: dict[str, list[str]] = {}
    for item in as_list(value):
        mapping = as_mapping(item)
        if mapping is None:
            continue
        page = mapping.get("page") or mapping.get("url") or mapping.get("path")
        if not isinstance(page, str) or not page:
            continue
        pages.setdefault(page, []).extend(_text_items([mapping]))
    return pages or None


def _page_count(value: Any, _root: RawMapping) -> int | None:
    pages = as_list(value)
    return len(pages) if pages else None


@dataclass(slots=True, frozen=True)
class _Mapping:
    source: str
    target: str
    confidence: float
    transform: Transform | None = None


VNEXT_MAPPINGS: Final[tuple[_Mapping, ...]] = (
    _Mapping("score", "website.websiteScore", 0.8, _score),
    _Mapping("summary", "website.websiteSummary", 0.75, _summary_text),
    _Mapping("recommendations", "website.recommendations", 0.75, _all_text_items),
    _Mapping("recommendations", "website.quickWins", 0.7, _quick_wins),
    _Mapping("issues", "website.conversionBlocks", 0.75, _all_text_items),
    _Mapping("issues", "website.pageAssessments", 0.65, _page_assessments),
)

STANDARD_MAPPINGS: Final[tuple[_Mapping, ...]] = (
    _Mapping("siteAssessment.score", "website.websiteScore", BASE_CONFIDENCE * 1.125, _score),
    _Mapping("siteAssessment.executiveSummary", "website.executiveSummary", BASE_CONFIDENCE),
    _Mapping("siteAssessment.keyIssues", "website.conversionBlocks", BASE_CONFIDENCE, _all_text_items),
    _Mapping("siteAssessment.quickWins", "website.quickWins", BASE_CONFIDENCE, _quick_wins),
    _Mapping("siteAssessment.funnelHealthScore", "website.funnelHealthScore", BASE_CONFIDENCE, _score),
    _Mapping("siteAssessment.mobileScore", "website.mobileScore", BASE_CONFIDENCE, _score),
    _Mapping("siteGraph.pages", "website.pageCount", BASE_CONFIDENCE * 1.1, _page_count),
    _Mapping("siteGraph.techStack", "digitalInfra.techStack", BASE_CONFIDENCE * 0.9, _all_text_items),
    _Mapping("heuristics.analyticsTools", "digitalInfra.trackingTools", BASE_CONFIDENCE * 0.9, _all_text_items),
    # owned by other labs; counted as wrong-domain
    _Mapping("trustAnalysis.trustScore", "brand.trustScore", BASE_CONFIDENCE),
    _Mapping("visualBrandEvaluation.overallScore", "brand.visualScore", BASE_CONFIDENCE),
    _Mapping("contentIntelligence.summary", "content.contentSummary", BASE_CONFIDENCE),
    _Mapping("ctaIntelligence.patterns.primaryCta", "content.primaryCta", BASE_CONFIDENCE),
    _Mapping("personas", "audience.personas", BASE_CONFIDENCE),
)


def _product_names(value: Any, root: RawMapping) -> list[str] | None:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else None
    names = _text_items(value, limit=10)
    if names:
        return names
    navigation = _text_items(get_path(root, "siteGraph.navigation"), limit=8)
    return navigation or None


def _long_text(min_length: int) -> Transform:
    def transform(value: Any, _root: RawMapping) -> str | None:
        if isinstance(value, str) and len(value.strip()) > min_length:
            return value.strip()[:500]
        return None

    return transform


@dataclass(slots=True, frozen=True)
class _Inference:
    target: str
    source_paths: tuple[str, ...]
    confidence: float
    transform: Transform | None = None


INFERENCE_MAPPINGS: Final[tuple[_Inference, ...]] = (
    _Inference(
        "identity.businessModel",
        (
            "siteAssessment.businessModel",
            "siteAssessment.siteType",
            "contentIntelligence.businessType",
            "siteGraph.siteType",
            "strategistViews.copywriting.differentiationAnalysis.businessType",
        ),
        0.55,
    ),
    _Inference(
        "productOffer.primaryProducts",
        (
            "siteGraph.productCategories",
            "siteGraph.navigation",
            "contentIntelligence.products",
            "contentIntelligence.services",
            "siteAssessment.offerings",
        ),
        0.45,
        _product_names,
    ),
    _Inference(
        "productOffer.valueProposition",
        (
            "contentIntelligence.valueProposition",
            "contentIntelligence.headline",
            "siteAssessment.executiveSummary",
            "siteGraph.heroText",
            "siteGraph.tagline",
        ),
        0.5,
        _long_text(10),
    ),
    _Inference(
        "identity.companyDescription",
        (
            "contentIntelligence.aboutContent",
            "siteAssessment.executiveSummary",
            "contentIntelligence.narrative",
            "siteGraph.aboutText",
        ),
        0.45,
        _long_text(20),
    ),
)


def schema_variant(matched: RawMapping) -> str:
    if any(key in matched for key in PRIMARY_SIGNATURE):
        return "labResultV4"
    if any(key in matched for key in SECONDARY_SIGNATURE):
        return "vNextRoot"
    return "unknown"


class WebsiteLabExtractor(LabExtractor):
    """Map website lab output to website/digitalInfra/identity/productOffer fields."""

    importer_id = "website_lab"
    default_domains = WEBSITE_LAB_DOMAINS

    def _extract(
        self,
        root: RawMapping,
        result: ExtractionResult,
        collector: CandidateCollector,
    ) -> None:
        resolved = resolve_shape(root, WEBSITE_SHAPES)
        if resolved is None:
            result.failure_reason = "No website lab result shape found in raw data"
            return
        result.extraction_path, matched = resolved

        if schema_variant(matched) == "vNextRoot":
            for mapping in VNEXT_MAPPINGS:
                self._apply(matched, mapping, collector)

        for mapping in STANDARD_MAPPINGS:
            if collector.has(mapping.target):
                continue
            self._apply(matched, mapping, collector)

        for inference in INFERENCE_MAPPINGS:
            self._infer(matched, inference, collector)

    @staticmethod
    def _apply(matched: RawMapping, mapping: _Mapping, collector: CandidateCollector) -> None:
        if collector.has(mapping.target):
            return
        collector.add_mapped(
            matched,
            source_path=mapping.source,
            key=mapping.target,
            confidence=mapping.confidence,
            transform=mapping.transform,
        )

    @staticmethod
    def _infer(matched: RawMapping, inference: _Inference, collector: CandidateCollector) -> None:
        if collector.has(inference.target):
            return
        if not collector.allows(inference.target):
            collector.add(inference.target, None, inference.confidence, raw_path="")
            return
        for path in inference.source_paths:
            value = get_path(matched, path)
            if not is_meaningful_value(value):
                continue
            if inference.transform is not None:
                value = inference.transform(value, matched)
                if not is_meaningful_value(value):
                    continue
            collector.add(
                inference.target,
                value,
                inference.confidence,
                raw_path=path,
                evidence_text=snippet(value),
                is_inferred=True,
            )
            return
        collector.add(inference.target, None, inference.confidence, raw_path="")
