"""Extractor for producers that already emit dotted field keys.

Accepted layouts, tried in order:
- ``{"candidates": [{"key": ..., "value": ..., "confidence": ...}, ...]}``
- ``{"fields": {"<domain>.<field>": value, ...}}``
- a flat root whose keys are dotted field keys
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from factweave.domain.model import clamp_confidence, compute_confidence, map_source

from .base import LabExtractor, as_list, as_mapping

if TYPE_CHECKING:
    from factweave.domain.model import ExtractionResult

    from .base import CandidateCollector, RawMapping

GAP_PLAN_DOMAINS: Final[frozenset[str]] = frozenset(
    {"identity", "audience", "productOffer", "brand", "website", "competition", "objectives"}
)


class DottedFieldExtractor(LabExtractor):
    """Pass through pre-keyed candidates, filtered to the configured allow-list."""

    def __init__(
        self,
        importer_id: str,
        allowed_domains: frozenset[str],
        *,
        source: str | None = None,
        default_confidence: float | None = None,
    ) -> None:
        self.importer_id = importer_id
        super().__init__(allowed_domains=allowed_domains, source=source)
        self.default_confidence = (
            default_confidence
            if default_confidence is not None
            else compute_confidence(map_source(self.source))
        )

    def _extract(
        self,
        root: RawMapping,
        result: ExtractionResult,
        collector: CandidateCollector,
    ) -> None:
        entries = as_list(root.get("candidates"))
        if entries:
            result.extraction_path = "candidates"
            for index, entry in enumerate(entries):
                mapping = as_mapping(entry)
                if mapping is None:
                    result.skipped.no_mapping += 1
                    continue
                confidence = mapping.get("confidence")
                collector.add(
                    str(mapping.get("key", "")),
                    mapping.get("value"),
                    self._confidence(confidence),
                    raw_path=f"candidates[{index}]",
                    evidence_text=_optional_text(mapping.get("evidence")),
                )
            return

        fields = as_mapping(root.get("fields"))
        if fields is not None:
            result.extraction_path = "fields"
            self._add_flat(fields, collector, prefix="fields.")
            return

        if any("." in str(key) for key in root):
            result.extraction_path = "direct"
            self._add_flat(root, collector, prefix="")
            return

        result.failure_reason = "No dotted field keys found in raw data"

    def _add_flat(self, fields: RawMapping, collector: CandidateCollector, *, prefix: str) -> None:
        for key, value in fields.items():
            collector.add(str(key), value, self.default_confidence, raw_path=f"{prefix}{key}")

    def _confidence(self, raw: object) -> float:
        if isinstance(raw, bool) or not isinstance(raw, int | float):
            return self.default_confidence
        return clamp_confidence(raw)


def _optional_text(value: object) -> str | None:
    return value if isinstance(value, str) and value.strip() else None
