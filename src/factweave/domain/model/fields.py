"""Field records and the per-entity field store aggregate."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from factweave.domain.model.enums import FieldSource, FieldStatus
from factweave.domain.model.errors import FieldKeyError
from factweave.domain.model.primitives import utcnow

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime

    from factweave.domain.model.primitives import (
        Confidence,
        EntityId,
        FieldKey,
        JsonValue,
    )


def parse_field_key(key: object) -> tuple[str, str]:
    """Split a dotted field key into ``(domain, field)``.

    The field part may itself contain dots (``website.scores.seo``); only the leading
    segment names the domain. Raises ``FieldKeyError`` for anything else.
    """

    if not isinstance(key, str):
        raise FieldKeyError(key)
    domain, sep, rest = key.partition(".")
    if not sep or not domain.strip() or not rest.strip():
        raise FieldKeyError(key)
    if any(not segment.strip() for segment in rest.split(".")):
        raise FieldKeyError(key)
    return domain, rest


def field_domain(key: str) -> str | None:
    """Return the domain segment of ``key`` or ``None`` when it is malformed."""

    try:
        return parse_field_key(key)[0]
    except FieldKeyError:
        return None


@dataclass(slots=True, kw_only=True)
class FieldEvidence:
    """Provenance attached to a proposed or confirmed value."""

    source: FieldSource
    source_id: str | None = None
    importer_id: str | None = None
    original_source: str | None = None
    text: str | None = None
    pointer: str | None = None
    is_inferred: bool = False
    finding_hash: str | None = None


@dataclass(slots=True, kw_only=True)
class FieldRecord:
    """One fact about one entity, keyed by its dotted path."""

    key: FieldKey
    value: JsonValue
    status: FieldStatus
    confidence: Confidence
    evidence: FieldEvidence
    updated_at: datetime
    created_at: datetime
    dedupe_key: str | None = None

    locked_at: datetime | None = None
    locked_by: str | None = None

    rejected_at: datetime | None = None
    rejected_reason: str | None = None
    rejected_source_id: str | None = None

    previous_value: JsonValue = None
    previous_source: FieldSource | None = None

    @property
    def domain(self) -> str:
        return parse_field_key(self.key)[0]

    @property
    def source(self) -> FieldSource:
        return self.evidence.source

    @property
    def is_locked(self) -> bool:
        return self.locked_at is not None


@dataclass(slots=True, kw_only=True)
class StoreMeta:
    last_updated: datetime = field(default_factory=utcnow)


@dataclass(slots=True, kw_only=True, frozen=True)
class FieldCounts:
    proposed: int = 0
    confirmed: int = 0
    rejected: int = 0

    @property
    def total(self) -> int:
        return self.proposed + self.confirmed + self.rejected


@dataclass(slots=True, kw_only=True)
class FieldStore:
    """Aggregate root for all field records of one entity.

    ``version`` is the persisted revision the store was loaded at; repositories compare
    it on save to detect a concurrent writer.
    """

    entity_id: EntityId
    fields: dict[FieldKey, FieldRecord] = field(default_factory=dict["FieldKey", FieldRecord])
    meta: StoreMeta = field(default_factory=StoreMeta)
    version: int = 0

    def get(self, key: FieldKey) -> FieldRecord | None:
        return self.fields.get(key)

    def put(self, record: FieldRecord) -> None:
        parse_field_key(record.key)
        self.fields[record.key] = record
        self.touch(record.updated_at)

    def touch(self, when: datetime | None = None) -> None:
        self.meta.last_updated = when or utcnow()

    def records(self, status: FieldStatus | None = None) -> Iterator[FieldRecord]:
        for record in self.fields.values():
            if status is None or record.status is status:
                yield record

    def keys_with_status(self, *statuses: FieldStatus) -> frozenset[FieldKey]:
        wanted = set(statuses)
        return frozenset(key for key, record in self.fields.items() if record.status in wanted)

    def counts(self) -> FieldCounts:
        proposed = confirmed = rejected = 0
        for record in self.fields.values():
            if record.status is FieldStatus.PROPOSED:
                proposed += 1
            elif record.status is FieldStatus.CONFIRMED:
                confirmed += 1
            else:
                rejected += 1
        return FieldCounts(proposed=proposed, confirmed=confirmed, rejected=rejected)
