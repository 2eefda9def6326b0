"""Brand lab candidate extractor."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

from .base import (
    FALLBACK_SUFFIX,
    KnownShape,
    LabExtractor,
    as_list,
    as_mapping,
    resolve_shape,
)

if TYPE_CHECKING:
    from factweave.domain.model import ExtractionResult

    from .base import CandidateCollector, RawMapping

BRAND_LAB_DOMAINS: Final[frozenset[str]] = frozenset({"brand", "audience", "productOffer"})

_FINDINGS_SIGNATURE: Final[frozenset[str]] = frozenset({"findings"})
_LEGACY_SIGNATURE: Final[frozenset[str]] = frozenset(
    {
        "positioning",
        "differentiators",
        "strengths",
        "weaknesses",
        "toneOfVoice",
        "valueProps",
        "competitivePosition",
        "narrativeSummary",
    }
)

BRAND_SHAPES: Final[tuple[KnownShape, ...]] = (
    KnownShape(name="brandLab.findings", path="brandLab", signature=_FINDINGS_SIGNATURE),
    KnownShape(name="result.findings", path="result", signature=_FINDINGS_SIGNATURE),
    KnownShape(name="findings", signature=_FINDINGS_SIGNATURE),
    KnownShape(name=f"brandLab{FALLBACK_SUFFIX}", path="brandLab", signature=_LEGACY_SIGNATURE),
    KnownShape(name=f"result{FALLBACK_SUFFIX}", path="result", signature=_LEGACY_SIGNATURE),
    KnownShape(name=f"direct{FALLBACK_SUFFIX}", signature=_LEGACY_SIGNATURE),
)


def _text(value: Any) -> str | None:
    return value.strip() or None if isinstance(value, str) else None


def _strings(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    items: list[str] = []
    for item in as_list(value):
        text = _text(item)
        if text is None and (mapping := as_mapping(item)) is not None:
            text = _text(mapping.get("title")) or _text(mapping.get("text"))
        if text:
            items.append(text)
    return items


class BrandLabExtractor(LabExtractor):
    """Map brand lab findings (or its legacy flat layout) to brand-owned fields."""

    importer_id = "brand_lab"
    default_domains = BRAND_LAB_DOMAINS

    def _extract(
        self,
        root: RawMapping,
        result: ExtractionResult,
        collector: CandidateCollector,
    ) -> None:
        resolved = resolve_shape(root, BRAND_SHAPES)
        if resolved is None:
            result.failure_reason = "No brand lab findings or legacy fields found"
            return
        result.extraction_path, matched = resolved

        findings = as_mapping(matched.get("findings"))
        if findings is not None:
            self._from_findings(findings, collector)
        self._from_legacy(matched, collector, has_findings=findings is not None)

    @staticmethod
    def _from_findings(findings: RawMapping, collector: CandidateCollector) -> None:
        value_prop = as_mapping(findings.get("valueProp")) or {}
        headline = _text(value_prop.get("headline"))
        description = _text(value_prop.get("description"))
        if headline and description:
            collector.add(
                "productOffer.valueProposition",
                f"{headline}: {description}",
                0.85,
                raw_path="findings.valueProp",
            )

        positioning = as_mapping(findings.get("positioning")) or {}
        if statement := _text(positioning.get("statement")):
            collector.add(
                "brand.positioning", statement, 0.85, raw_path="findings.positioning.statement"
            )
        elif summary := _text(positioning.get("summary")):
            collector.add(
                "brand.positioning", summary, 0.75, raw_path="findings.positioning.summary"
            )

        icp = as_mapping(findings.get("icp")) or {}
        collector.add(
            "audience.primaryAudience",
            _text(icp.get("primaryAudience")),
            0.8,
            raw_path="findings.icp.primaryAudience",
        )
        collector.add(
            "audience.buyerRoles",
            _strings(icp.get("buyerRoles")),
            0.7,
            raw_path="findings.icp.buyerRoles",
        )

        differentiators = as_mapping(findings.get("differentiators")) or {}
        collector.add(
            "brand.differentiators",
            _strings(differentiators.get("bullets")),
            0.8,
            raw_path="findings.differentiators.bullets",
        )

        tone = as_mapping(findings.get("toneOfVoice")) or {}
        if tone.get("enabled") is not False:
            collector.add(
                "brand.toneOfVoice",
                _text(tone.get("descriptor")),
                0.75,
                raw_path="findings.toneOfVoice.descriptor",
            )

        messaging = as_mapping(findings.get("messaging")) or {}
        pillars: list[str] = []
        for pillar in as_list(messaging.get("pillars")):
            mapping = as_mapping(pillar)
            if mapping is None:
                continue
            title = _text(mapping.get("title"))
            support = _text(mapping.get("support"))
            if title:
                pillars.append(f"{title}: {support}" if support else title)
        collector.add(
            "brand.messagingPillars", pillars, 0.75, raw_path="findings.messaging.pillars"
        )

    @staticmethod
    def _from_legacy(
        matched: RawMapping, collector: CandidateCollector, *, has_findings: bool
    ) -> None:
        legacy: tuple[tuple[str, str, float], ...] = (
            ("differentiators", "brand.differentiators", 0.75),
            ("strengths", "brand.brandStrengths", 0.7),
            ("weaknesses", "brand.brandWeaknesses", 0.7),
            ("toneOfVoice", "brand.toneOfVoice", 0.7),
            ("valueProps", "productOffer.valueProposition", 0.75),
            ("competitivePosition", "brand.competitivePosition", 0.7),
            ("narrativeSummary", "brand.brandPerception", 0.65),
        )
        if not has_findings:
            legacy = (("positioning", "brand.positioning", 0.75), *legacy)
        for source, target, confidence in legacy:
            if collector.has(target):
                continue
            value = matched.get(source)
            if isinstance(value, list):
                value = _strings(value)
            elif not isinstance(value, str):
                value = None if as_mapping(value) is None else value
            collector.add(target, value, confidence, raw_path=source)
