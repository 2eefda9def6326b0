from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from factweave.adapters.sqlalchemy import (
    SqlAlchemyContextGraphRepository,
    SqlAlchemyDiagnosticRunRepository,
    SqlAlchemyFieldStoreRepository,
    field_store_table,
)
from factweave.domain.materialize import build_graph
from factweave.domain.model import (
    DiagnosticRun,
    FieldEvidence,
    FieldRecord,
    FieldSource,
    FieldStatus,
    FieldStore,
    RunStatus,
    StaleStoreError,
    StoreLoadError,
    StoreLoadErrorKind,
)

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

NOW = datetime(2025, 3, 1, 9, 30, tzinfo=UTC)


def _store(entity_id: str = "acme") -> FieldStore:
    store = FieldStore(entity_id=entity_id)
    store.put(
        FieldRecord(
            key="website.websiteScore",
            value=68,
            status=FieldStatus.PROPOSED,
            confidence=0.9,
            evidence=FieldEvidence(
                source=FieldSource.LAB,
                source_id="run-1",
                importer_id="website_lab",
                original_source="website_lab",
                pointer="siteAssessment.score",
            ),
            created_at=NOW,
            updated_at=NOW,
            dedupe_key="abc",
        )
    )
    store.put(
        FieldRecord(
            key="brand.positioning",
            value={"headline": "Ops OS", "tags": ["b2b"]},
            status=FieldStatus.CONFIRMED,
            confidence=1.0,
            evidence=FieldEvidence(source=FieldSource.USER),
            created_at=NOW,
            updated_at=NOW,
            locked_at=NOW,
            locked_by="dana",
        )
    )
    return store


def test_field_store_round_trip(sqlite_session: Session) -> None:
    repository = SqlAlchemyFieldStoreRepository(sqlite_session)
    store = _store()

    repository.save(store)
    loaded = repository.get("acme")

    assert store.version == 1
    assert loaded is not None
    assert loaded.version == 1
    assert loaded.meta.last_updated == NOW
    score = loaded.get("website.websiteScore")
    positioning = loaded.get("brand.positioning")
    assert score is not None
    assert positioning is not None
    assert score.value == 68
    assert score.status is FieldStatus.PROPOSED
    assert score.evidence.source_id == "run-1"
    assert score.evidence.pointer == "siteAssessment.score"
    assert score.created_at == NOW
    assert positioning.value == {"headline": "Ops OS", "tags": ["b2b"]}
    assert positioning.locked_at == NOW
    assert positioning.locked_by == "dana"


def test_missing_store_is_none(sqlite_session: Session) -> None:
    assert SqlAlchemyFieldStoreRepository(sqlite_session).get("nobody") is None


def test_concurrent_writer_is_detected(sqlite_session: Session) -> None:
    repository = SqlAlchemyFieldStoreRepository(sqlite_session)
    repository.save(_store())
    first = repository.get("acme")
    second = repository.get("acme")
    assert first is not None
    assert second is not None

    repository.save(first)
    with pytest.raises(StaleStoreError):
        repository.save(second)

    fresh = _store()
    with pytest.raises(StaleStoreError):
        repository.save(fresh)


def test_unreadable_document_raises_parse_error(sqlite_session: Session) -> None:
    sqlite_session.execute(
        field_store_table.insert().values(
            entity_id="acme", payload="{not json", version=1, updated_at=NOW
        )
    )

    with pytest.raises(StoreLoadError) as excinfo:
        SqlAlchemyFieldStoreRepository(sqlite_session).get("acme")

    assert excinfo.value.kind is StoreLoadErrorKind.PARSE_ERROR


def test_context_graph_is_replaced_on_save(sqlite_session: Session) -> None:
    repository = SqlAlchemyContextGraphRepository(sqlite_session)
    store = _store()
    graph = build_graph(store, "acme", now=NOW)

    repository.save(graph)
    repository.save(build_graph(store, "acme", now=NOW + timedelta(hours=1)))
    loaded = repository.get("acme")

    assert loaded is not None
    assert set(loaded.flatten()) == {"brand.positioning"}
    node = loaded.node("brand.positioning")
    assert node is not None
    assert node.source is FieldSource.USER
    assert loaded.updated_at == NOW + timedelta(hours=1)
    assert repository.get("nobody") is None


def test_latest_run_per_entity_and_kind(sqlite_session: Session) -> None:
    repository = SqlAlchemyDiagnosticRunRepository(sqlite_session)
    older = DiagnosticRun(
        entity_id="acme", kind="website_lab", raw_result={"score": 1}, created_at=NOW
    )
    newer = DiagnosticRun(
        entity_id="acme",
        kind="website_lab",
        raw_result={"score": 2},
        status=RunStatus.FAILED,
        created_at=NOW + timedelta(minutes=1),
    )
    other = DiagnosticRun(
        entity_id="acme",
        kind="brand_lab",
        raw_result=None,
        created_at=NOW + timedelta(minutes=2),
    )
    for run in (older, newer, other):
        repository.add(run)

    latest = repository.latest("acme", "website_lab")
    fetched = repository.get(older.id)

    assert latest is not None
    assert latest.id == newer.id
    assert latest.status is RunStatus.FAILED
    assert latest.created_at == NOW + timedelta(minutes=1)
    assert fetched is not None
    assert fetched.raw_result == {"score": 1}
    assert repository.latest("acme", "gap_plan") is None
    assert repository.get("missing") is None
