"""Candidate extractors for lab and plan producers, keyed by importer id."""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING

from .base import CandidateCollector, KnownShape, LabExtractor, parse_raw, resolve_shape
from .brand import BRAND_LAB_DOMAINS, BrandLabExtractor
from .competition import COMPETITION_LAB_DOMAINS, CompetitionLabExtractor
from .dotted import GAP_PLAN_DOMAINS, DottedFieldExtractor
from .error_state import detect_error_state
from .findings import extract_findings, recommend_target_fields
from .website import WEBSITE_LAB_DOMAINS, WebsiteLabExtractor

if TYPE_CHECKING:
    from factweave.domain.ports import CandidateExtractor, ExtractorRegistry


def default_extractors() -> ExtractorRegistry:
    extractors: list[CandidateExtractor] = [
        WebsiteLabExtractor(),
        BrandLabExtractor(),
        CompetitionLabExtractor(),
        DottedFieldExtractor("gap_plan", GAP_PLAN_DOMAINS),
    ]
    return MappingProxyType({extractor.importer_id: extractor for extractor in extractors})


DEFAULT_EXTRACTORS: ExtractorRegistry = default_extractors()


def get_extractor(
    importer_id: str, registry: ExtractorRegistry | None = None
) -> CandidateExtractor | None:
    return (registry if registry is not None else DEFAULT_EXTRACTORS).get(importer_id)


__all__ = [
    "BRAND_LAB_DOMAINS",
    "COMPETITION_LAB_DOMAINS",
    "DEFAULT_EXTRACTORS",
    "GAP_PLAN_DOMAINS",
    "WEBSITE_LAB_DOMAINS",
    "BrandLabExtractor",
    "CandidateCollector",
    "CompetitionLabExtractor",
    "DottedFieldExtractor",
    "KnownShape",
    "LabExtractor",
    "WebsiteLabExtractor",
    "default_extractors",
    "detect_error_state",
    "extract_findings",
    "get_extractor",
    "parse_raw",
    "recommend_target_fields",
    "resolve_shape",
]
