"""Read-only views over a field store for review queues and status counts."""

from __future__ import annotations

from typing import TYPE_CHECKING

from factweave.domain.model import FieldCounts, FieldSource, FieldStatus, map_source

if TYPE_CHECKING:
    from factweave.domain.model import FieldRecord, FieldStore


def get_proposed_fields(
    store: FieldStore,
    *,
    domain: str | None = None,
    source: str | FieldSource | None = None,
) -> list[FieldRecord]:
    """Proposed records, highest confidence first, newest first among ties."""

    wanted_source = map_source(source) if source is not None else None
    records = [
        record
        for record in store.records(FieldStatus.PROPOSED)
        if (domain is None or record.domain == domain)
        and (wanted_source is None or record.source is wanted_source)
    ]
    records.sort(key=lambda record: record.updated_at, reverse=True)
    records.sort(key=lambda record: record.confidence, reverse=True)
    return records


def get_confirmed_fields(store: FieldStore, *, domain: str | None = None) -> list[FieldRecord]:
    records = [
        record
        for record in store.records(FieldStatus.CONFIRMED)
        if domain is None or record.domain == domain
    ]
    return sorted(records, key=lambda record: (record.domain, record.key))


def field_counts(store: FieldStore | None) -> FieldCounts:
    if store is None:
        return FieldCounts()
    return store.counts()


def proposed_by_source(store: FieldStore) -> dict[str, int]:
    counts: dict[str, int] = {}
    for record in store.records(FieldStatus.PROPOSED):
        counts[record.source.value] = counts.get(record.source.value, 0) + 1
    return counts
