"""Shared building blocks for lab candidate extractors.

Raw lab output has no fixed shape across producers and versions. Extractors
declare an ordered list of ``KnownShape`` entries and take the first one that
matches; the matched shape's name is reported as the extraction path.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, cast

from factweave.domain.model import (
    Candidate,
    ExtractionResult,
    field_domain,
    is_meaningful_value,
    preview_value,
)

from .error_state import detect_error_state

if TYPE_CHECKING:
    from factweave.domain.model import JsonValue

log = logging.getLogger(__name__)

type RawMapping = Mapping[str, Any]
type Transform = Callable[[Any, RawMapping], Any]

SNIPPET_LENGTH = 200
FALLBACK_SUFFIX = " (fallback)"


def parse_raw(raw_result: JsonValue | str | None) -> RawMapping | None:
    """Return ``raw_result`` as a mapping, decoding JSON text when needed."""

    value: object = raw_result
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            log.debug("Raw lab result is not valid JSON")
            return None
    if isinstance(value, Mapping):
        return cast(RawMapping, value)
    return None


def get_path(root: object, path: str | Sequence[str]) -> Any:
    """Walk a dotted path through nested mappings; missing segments yield ``None``."""

    segments = path.split(".") if isinstance(path, str) else path
    current: object = root
    for segment in segments:
        if not segment:
            continue
        if not isinstance(current, Mapping):
            return None
        current = cast(RawMapping, current).get(segment)
        if current is None:
            return None
    return current


def as_mapping(value: object) -> RawMapping | None:
    return cast(RawMapping, value) if isinstance(value, Mapping) else None


def as_list(value: object) -> list[Any]:
    if isinstance(value, list):
        return cast(list[Any], value)
    return []


def snippet(value: object, length: int = SNIPPET_LENGTH) -> str:
    return preview_value(cast("JsonValue", value), max_len=length)


@dataclass(slots=True, kw_only=True, frozen=True)
class KnownShape:
    """One recognised layout of a raw result.

    The shape matches when the object at ``path`` (the root for an empty path) is a
    mapping with at least ``min_signature_keys`` of the ``signature`` keys present
    and meaningful.
    """

    name: str
    path: str = ""
    signature: frozenset[str] = field(default_factory=frozenset)
    min_signature_keys: int = 1

    def match(self, root: RawMapping) -> RawMapping | None:
        candidate = as_mapping(get_path(root, self.path)) if self.path else root
        if candidate is None:
            return None
        if not self.signature:
            return candidate
        hits = sum(1 for key in self.signature if is_meaningful_value(candidate.get(key)))
        return candidate if hits >= self.min_signature_keys else None


def resolve_shape(
    root: RawMapping, shapes: Sequence[KnownShape]
) -> tuple[str, RawMapping] | None:
    """Return ``(shape name, matched object)`` for the first matching shape."""

    for shape in shapes:
        matched = shape.match(root)
        if matched is not None:
            return shape.name, matched
    return None


class CandidateCollector:
    """Accumulate candidates while enforcing the importer's domain allow-list.

    Every extractor funnels values through ``add`` so that wrong-domain keys and
    empty values are counted consistently and never reach ``result.candidates``.
    """

    def __init__(
        self,
        result: ExtractionResult,
        allowed_domains: frozenset[str],
        *,
        source: str | None = None,
    ) -> None:
        self.result = result
        self.allowed_domains = allowed_domains
        self.source = source
        self._seen: set[str] = set()

    def has(self, key: str) -> bool:
        return key in self._seen

    def allows(self, key: str) -> bool:
        return field_domain(key) in self.allowed_domains

    def add(  # noqa: PLR0913
        self,
        key: str,
        value: Any,
        confidence: float,
        *,
        raw_path: str,
        evidence_text: str | None = None,
        is_inferred: bool = False,
        finding_hash: str | None = None,
    ) -> bool:
        """Try to add one candidate; return whether it was accepted."""

        domain = field_domain(key)
        if domain is None:
            self.result.skipped.no_mapping += 1
            return False
        if domain not in self.allowed_domains:
            self.result.skipped.wrong_domain += 1
            self.result.skipped_wrong_domain_keys.append(key)
            return False
        if not is_meaningful_value(value):
            self.result.skipped.empty_value += 1
            return False
        if key in self._seen:
            return False

        self._seen.add(key)
        self.result.candidates.append(
            Candidate(
                key=key,
                value=value,
                confidence=round(confidence, 4),
                source=self.source,
                evidence_text=evidence_text if evidence_text is not None else snippet(value),
                raw_path=raw_path,
                is_inferred=is_inferred,
                finding_hash=finding_hash,
            )
        )
        return True

    def add_mapped(  # noqa: PLR0913
        self,
        root: RawMapping,
        *,
        source_path: str,
        key: str,
        confidence: float,
        transform: Transform | None = None,
        is_inferred: bool = False,
    ) -> bool:
        """Read ``source_path`` from ``root``, optionally transform it, then ``add``."""

        if not self.allows(key):
            return self.add(key, None, confidence, raw_path=source_path)
        value = get_path(root, source_path)
        if transform is not None and is_meaningful_value(value):
            try:
                value = transform(value, root)
            except (TypeError, ValueError, KeyError, AttributeError) as exc:
                log.debug("Transform for %s failed: %s", key, exc)
                value = None
        return self.add(key, value, confidence, raw_path=source_path, is_inferred=is_inferred)


def start_result(importer_id: str, root: RawMapping | None) -> ExtractionResult:
    result = ExtractionResult(importer_id=importer_id)
    if root is not None:
        result.top_level_keys = sorted(str(key) for key in root)
        result.raw_keys_found = len(result.top_level_keys)
    return result


class LabExtractor(ABC):
    """Template for extractors: parse, detect failures, then map a matched shape.

    Subclasses set ``importer_id``/``default_domains`` and implement ``_extract``.
    ``__call__`` never raises; unexpected failures degrade to zero candidates.
    """

    importer_id: str = "lab"
    default_domains: frozenset[str] = frozenset()

    def __init__(
        self,
        *,
        allowed_domains: frozenset[str] | None = None,
        source: str | None = None,
    ) -> None:
        self.allowed_domains = (
            allowed_domains if allowed_domains is not None else self.default_domains
        )
        self.source = source or self.importer_id

    def __call__(self, raw_result: JsonValue | str | None) -> ExtractionResult:
        root = parse_raw(raw_result)
        result = start_result(self.importer_id, root)
        if root is None or not root:
            result.failure_reason = "Raw result is empty or not a JSON object"
            return result

        error_state = detect_error_state(root)
        if error_state is not None:
            result.error_state = error_state
            result.failure_reason = error_state.message
            return result

        collector = CandidateCollector(result, self.allowed_domains, source=self.source)
        try:
            self._extract(root, result, collector)
        except Exception:  # noqa: BLE001
            log.exception("%s extraction failed", self.importer_id)
            result.candidates.clear()
            result.failure_reason = "Extractor raised while mapping the raw result"
            return result

        if not result.candidates and result.failure_reason is None:
            result.failure_reason = "No candidates could be extracted"
        log.debug(
            "%s extraction path=%s candidates=%s skipped=%s",
            self.importer_id,
            result.extraction_path,
            len(result.candidates),
            result.skipped,
        )
        return result

    @abstractmethod
    def _extract(
        self,
        root: RawMapping,
        result: ExtractionResult,
        collector: CandidateCollector,
    ) -> None: ...
