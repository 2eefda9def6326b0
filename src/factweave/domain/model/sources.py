"""Source normalization and default confidence scoring for field values."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Final

from factweave.domain.model.enums import FieldSource

if TYPE_CHECKING:
    from factweave.domain.model.primitives import Confidence, JsonValue

BASE_CONFIDENCE: Final[dict[FieldSource, float]] = {
    FieldSource.USER: 1.0,
    FieldSource.CRM: 0.9,
    FieldSource.LAB: 0.8,
    FieldSource.GAP: 0.7,
    FieldSource.AI: 0.6,
    FieldSource.IMPORT: 0.5,
}
EVIDENCE_BONUS: Final[float] = 0.1
EVIDENCE_BONUS_MIN_CHARS: Final[int] = 100

_USER_SOURCES = frozenset({"user", "manual", "qbr", "strategy"})
_AI_SOURCES = frozenset({"ai", "brain", "inferred"})
_CRM_SOURCES = frozenset({"crm", "airtable"})
_LAB_SOURCES = frozenset({"lab", "fcb"})


def map_source(raw: str | FieldSource | None) -> FieldSource:
    """Collapse a producer identifier (``website_lab``, ``gap_plan``...) into a family."""

    if isinstance(raw, FieldSource):
        return raw
    if not raw:
        return FieldSource.IMPORT
    value = raw.strip().lower()
    if value in _USER_SOURCES:
        return FieldSource.USER
    if value in _LAB_SOURCES or value.endswith("_lab"):
        return FieldSource.LAB
    if value.startswith("gap"):
        return FieldSource.GAP
    if value in _AI_SOURCES:
        return FieldSource.AI
    if value in _CRM_SOURCES:
        return FieldSource.CRM
    return FieldSource.IMPORT


def compute_confidence(source: FieldSource, evidence_text: str | None = None) -> Confidence:
    base = BASE_CONFIDENCE.get(source, BASE_CONFIDENCE[FieldSource.IMPORT])
    if evidence_text and len(evidence_text) > EVIDENCE_BONUS_MIN_CHARS:
        base += EVIDENCE_BONUS
    return min(1.0, round(base, 6))


def preview_value(value: JsonValue, max_len: int = 100) -> str:
    """Render ``value`` as a single-line preview no longer than ``max_len``."""

    if value is None:
        return ""
    text = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False, default=str)
    text = " ".join(text.split())
    if len(text) <= max_len:
        return text
    return text[: max(0, max_len - 3)] + "..."
