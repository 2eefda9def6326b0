"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, cast

from pydantic import ValidationError
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from factweave.adapters.sqlalchemy.mappings import (
    context_graph_table,
    diagnostic_run_table,
    field_store_table,
)
from factweave.adapters.sqlalchemy.translator import (
    dump_context_graph,
    dump_field_store,
    load_context_graph,
    load_field_store,
)
from factweave.domain.model import (
    DiagnosticRun,
    RunStatus,
    StaleStoreError,
    StoreLoadError,
    StoreLoadErrorKind,
    StoreSaveError,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Row
    from sqlalchemy.orm import Session

    from factweave.domain.model import ContextGraph, EntityId, FieldStore, JsonValue

log = logging.getLogger(__name__)


class SqlAlchemyFieldStoreRepository:
    """Whole-document field store persistence with a version stamp per row."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, entity_id: EntityId) -> FieldStore | None:
        stmt = select(field_store_table.c.payload, field_store_table.c.version).where(
            field_store_table.c.entity_id == entity_id
        )
        try:
            row = self.session.execute(stmt).first()
        except SQLAlchemyError as exc:
            raise StoreLoadError(entity_id, StoreLoadErrorKind.NETWORK_ERROR, str(exc)) from exc
        if row is None:
            return None
        payload, version = row
        try:
            store = load_field_store(payload, version=version)
        except ValidationError as exc:
            raise StoreLoadError(entity_id, StoreLoadErrorKind.PARSE_ERROR, str(exc)) from exc
        if store.entity_id != entity_id:
            raise StoreLoadError(
                entity_id,
                StoreLoadErrorKind.PARSE_ERROR,
                f"document belongs to {store.entity_id}",
            )
        return store

    def save(self, store: FieldStore) -> None:
        """Write ``store`` if nobody else saved since it was loaded, then bump its version."""

        document = dump_field_store(store)
        new_version = store.version + 1
        try:
            if store.version == 0:
                self._insert(store, document)
            else:
                self._update(store, document, new_version)
            self.session.flush()
        except StoreSaveError:
            raise
        except SQLAlchemyError as exc:
            raise StoreSaveError(f"Failed to save field store for {store.entity_id}: {exc}") from exc
        store.version = new_version

    def _insert(self, store: FieldStore, document: str) -> None:
        existing = self.session.execute(
            select(field_store_table.c.version).where(
                field_store_table.c.entity_id == store.entity_id
            )
        ).scalar_one_or_none()
        if existing is not None:
            raise StaleStoreError(store.entity_id, store.version, existing)
        self.session.execute(
            field_store_table.insert().values(
                entity_id=store.entity_id,
                payload=document,
                version=1,
                updated_at=store.meta.last_updated,
            )
        )

    def _update(self, store: FieldStore, document: str, new_version: int) -> None:
        result = self.session.execute(
            update(field_store_table)
            .where(field_store_table.c.entity_id == store.entity_id)
            .where(field_store_table.c.version == store.version)
            .values(payload=document, version=new_version, updated_at=store.meta.last_updated)
        )
        if result.rowcount == 1:
            return
        actual = self.session.execute(
            select(field_store_table.c.version).where(
                field_store_table.c.entity_id == store.entity_id
            )
        ).scalar_one_or_none()
        raise StaleStoreError(store.entity_id, store.version, actual or 0)


class SqlAlchemyContextGraphRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, entity_id: EntityId) -> ContextGraph | None:
        payload = self.session.execute(
            select(context_graph_table.c.payload).where(
                context_graph_table.c.entity_id == entity_id
            )
        ).scalar_one_or_none()
        if payload is None:
            return None
        try:
            return load_context_graph(payload)
        except ValidationError:
            log.warning("Discarding unreadable context graph for %s", entity_id)
            return None

    def save(self, graph: ContextGraph) -> None:
        document = dump_context_graph(graph)
        exists = self.session.execute(
            select(context_graph_table.c.entity_id).where(
                context_graph_table.c.entity_id == graph.entity_id
            )
        ).first()
        if exists is None:
            stmt = context_graph_table.insert().values(
                entity_id=graph.entity_id, payload=document, updated_at=graph.updated_at
            )
        else:
            stmt = (
                update(context_graph_table)
                .where(context_graph_table.c.entity_id == graph.entity_id)
                .values(payload=document, updated_at=graph.updated_at)
            )
        self.session.execute(stmt)
        self.session.flush()


class SqlAlchemyDiagnosticRunRepository:
    """Upstream run records; the newest run per entity and kind wins."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, run: DiagnosticRun) -> None:
        self.session.execute(
            diagnostic_run_table.insert().values(
                id=run.id,
                entity_id=run.entity_id,
                kind=run.kind,
                status=run.status.value,
                created_at=run.created_at,
                raw_result=json.dumps(run.raw_result, ensure_ascii=False),
            )
        )
        self.session.flush()

    def get(self, run_id: str) -> DiagnosticRun | None:
        row = self.session.execute(
            select(diagnostic_run_table).where(diagnostic_run_table.c.id == run_id)
        ).first()
        return self._to_run(row) if row is not None else None

    def latest(self, entity_id: EntityId, kind: str) -> DiagnosticRun | None:
        row = self.session.execute(
            select(diagnostic_run_table)
            .where(diagnostic_run_table.c.entity_id == entity_id)
            .where(diagnostic_run_table.c.kind == kind)
            .order_by(diagnostic_run_table.c.created_at.desc())
            .limit(1)
        ).first()
        return self._to_run(row) if row is not None else None

    @staticmethod
    def _to_run(row: Row[tuple[object, ...]]) -> DiagnosticRun:
        mapping = row._mapping  # noqa: SLF001
        raw = cast("str | None", mapping["raw_result"])
        try:
            raw_result = cast("JsonValue", json.loads(raw)) if raw is not None else None
        except ValueError:
            log.warning("Run %s has an unreadable raw result", mapping["id"])
            raw_result = raw
        return DiagnosticRun(
            id=cast(str, mapping["id"]),
            entity_id=cast(str, mapping["entity_id"]),
            kind=cast(str, mapping["kind"]),
            status=RunStatus(cast(str, mapping["status"])),
            created_at=mapping["created_at"],
            raw_result=raw_result,
        )


if TYPE_CHECKING:
    from factweave.domain.ports import (
        ContextGraphRepository,
        DiagnosticRunRepository,
        FieldStoreRepository,
    )

    _session_stub = cast("Session", object())
    _field_store_check: FieldStoreRepository = SqlAlchemyFieldStoreRepository(_session_stub)
    _graph_check: ContextGraphRepository = SqlAlchemyContextGraphRepository(_session_stub)
    _run_check: DiagnosticRunRepository = SqlAlchemyDiagnosticRunRepository(_session_stub)
