"""Ports for persisting domain aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from factweave.domain.model import ContextGraph, DiagnosticRun, EntityId, FieldStore


@runtime_checkable
class FieldStoreRepository(Protocol):
    """Whole-document persistence for per-entity field stores.

    ``get`` returns ``None`` when no store exists and raises ``StoreLoadError`` when
    one exists but cannot be read. ``save`` raises ``StoreSaveError`` (or its
    ``StaleStoreError`` subclass on a version mismatch) and bumps ``store.version``.
    """

    def get(self, entity_id: EntityId) -> FieldStore | None: ...

    def save(self, store: FieldStore) -> None: ...


@runtime_checkable
class ContextGraphRepository(Protocol):
    """Persistence for the denormalized confirmed-fact graph."""

    def get(self, entity_id: EntityId) -> ContextGraph | None: ...

    def save(self, graph: ContextGraph) -> None: ...


@runtime_checkable
class RunSource(Protocol):
    """Read access to upstream diagnostic runs."""

    def latest(self, entity_id: EntityId, kind: str) -> DiagnosticRun | None: ...

    def get(self, run_id: str) -> DiagnosticRun | None: ...


@runtime_checkable
class DiagnosticRunRepository(RunSource, Protocol):
    """Run source that can also record runs (used by entry points and tests)."""

    def add(self, run: DiagnosticRun) -> None: ...
