"""Ports for importer-specific candidate extraction."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from factweave.domain.model import ExtractionResult, JsonValue


@runtime_checkable
class CandidateExtractor(Protocol):
    """Pure translation of one importer's raw result into typed candidates.

    Implementations must never raise for malformed input; they report zero
    candidates and a ``failure_reason`` instead.
    """

    @property
    def importer_id(self) -> str: ...

    @property
    def allowed_domains(self) -> frozenset[str]: ...

    def __call__(self, raw_result: JsonValue | str) -> ExtractionResult: ...


type ExtractorRegistry = Mapping[str, CandidateExtractor]
