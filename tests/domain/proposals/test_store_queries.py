from __future__ import annotations

from datetime import UTC, datetime, timedelta

from factweave.domain.model import (
    FieldEvidence,
    FieldRecord,
    FieldSource,
    FieldStatus,
    FieldStore,
)
from factweave.domain.proposals import (
    field_counts,
    get_confirmed_fields,
    get_proposed_fields,
    proposed_by_source,
)

NOW = datetime(2025, 3, 1, tzinfo=UTC)


def _record(
    key: str,
    *,
    status: FieldStatus = FieldStatus.PROPOSED,
    confidence: float = 0.8,
    source: FieldSource = FieldSource.LAB,
    age_minutes: int = 0,
) -> FieldRecord:
    when = NOW - timedelta(minutes=age_minutes)
    return FieldRecord(
        key=key,
        value=key,
        status=status,
        confidence=confidence,
        evidence=FieldEvidence(source=source),
        created_at=when,
        updated_at=when,
    )


def _store(*records: FieldRecord) -> FieldStore:
    store = FieldStore(entity_id="acme")
    for record in records:
        store.put(record)
    return store


def test_proposed_fields_sorted_by_confidence_then_recency() -> None:
    store = _store(
        _record("brand.a", confidence=0.6),
        _record("brand.b", confidence=0.9, age_minutes=10),
        _record("brand.c", confidence=0.9),
        _record("brand.d", status=FieldStatus.CONFIRMED),
    )

    keys = [record.key for record in get_proposed_fields(store)]

    assert keys == ["brand.c", "brand.b", "brand.a"]


def test_proposed_fields_filter_by_domain_and_source() -> None:
    store = _store(
        _record("brand.a"),
        _record("website.b"),
        _record("website.c", source=FieldSource.GAP),
    )

    assert [r.key for r in get_proposed_fields(store, domain="website")] == ["website.b", "website.c"]
    assert [r.key for r in get_proposed_fields(store, source="gap_plan")] == ["website.c"]


def test_confirmed_fields_sorted_by_domain_and_key() -> None:
    store = _store(
        _record("website.z", status=FieldStatus.CONFIRMED),
        _record("brand.b", status=FieldStatus.CONFIRMED),
        _record("brand.a", status=FieldStatus.CONFIRMED),
    )

    assert [r.key for r in get_confirmed_fields(store)] == ["brand.a", "brand.b", "website.z"]
    assert [r.key for r in get_confirmed_fields(store, domain="website")] == ["website.z"]


def test_field_counts_and_sources() -> None:
    store = _store(
        _record("brand.a"),
        _record("brand.b", status=FieldStatus.CONFIRMED),
        _record("brand.c", status=FieldStatus.REJECTED),
        _record("brand.d", source=FieldSource.AI),
    )

    counts = field_counts(store)

    assert (counts.proposed, counts.confirmed, counts.rejected, counts.total) == (2, 1, 1, 4)
    assert field_counts(None).total == 0
    assert proposed_by_source(store) == {"lab": 1, "ai": 1}
