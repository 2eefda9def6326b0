"""Explicit human decisions on field records: confirm, reject and override."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from factweave.domain.hashing import dedupe_key
from factweave.domain.model import (
    FieldEvidence,
    FieldRecord,
    FieldSource,
    FieldStatus,
    FieldStore,
    StoreLoadError,
    StoreSaveError,
    parse_field_key,
    utcnow,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from factweave.domain.model import EntityId, FieldKey, JsonValue
    from factweave.domain.ports import UnitOfWorkFactory

log = logging.getLogger(__name__)


@dataclass(slots=True, kw_only=True)
class ConfirmResult:
    """Keys that were confirmed; ``error`` is set when the store could not be used."""

    confirmed: list[FieldKey] = field(default_factory=list["FieldKey"])
    failed: list[FieldKey] = field(default_factory=list["FieldKey"])
    error: str | None = None


@dataclass(slots=True, kw_only=True)
class RejectResult:
    rejected: list[FieldKey] = field(default_factory=list["FieldKey"])
    failed: list[FieldKey] = field(default_factory=list["FieldKey"])
    error: str | None = None


def ensure_store(entity_id: EntityId, *, unit_of_work_factory: UnitOfWorkFactory) -> FieldStore:
    """Load the entity's store, creating and persisting an empty one if absent."""

    with unit_of_work_factory() as uow:
        store = uow.repositories.field_stores.get(entity_id)
        if store is not None:
            return store
        store = FieldStore(entity_id=entity_id)
        uow.repositories.field_stores.save(store)
        uow.commit()
        log.info("Created empty field store for %s", entity_id)
        return store


def _decide_proposed(
    entity_id: EntityId,
    keys: list[FieldKey],
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    apply: Callable[[FieldRecord], None],
    now: datetime,
) -> tuple[list[FieldKey], list[FieldKey], str | None]:
    """Apply a human decision to every proposed record among ``keys``.

    Returns ``(applied, failed, error)``. A store that cannot be loaded or saved
    fails every key and reports the error instead of raising.
    """

    applied: list[FieldKey] = []
    failed: list[FieldKey] = []
    with unit_of_work_factory() as uow:
        repository = uow.repositories.field_stores
        try:
            store = repository.get(entity_id)
        except StoreLoadError as exc:
            log.warning("Field store for %s unreadable: %s", entity_id, exc)
            return [], list(keys), f"{exc.kind}: {exc.message}"

        for key in keys:
            record = store.get(key) if store is not None else None
            if record is None or record.status is not FieldStatus.PROPOSED:
                failed.append(key)
                continue
            apply(record)
            record.updated_at = now
            applied.append(key)

        if store is None or not applied:
            return applied, failed, None
        store.touch(now)
        try:
            repository.save(store)
            uow.commit()
        except StoreSaveError as exc:
            uow.rollback()
            log.warning("Failed to save field store for %s: %s", entity_id, exc)
            return [], list(keys), str(exc)
    return applied, failed, None


def confirm_fields(
    entity_id: EntityId,
    keys: Iterable[FieldKey],
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    confirmed_by: str | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> ConfirmResult:
    """Confirm proposed records; any other key (missing, confirmed, rejected) fails."""

    now = clock()

    def confirm(record: FieldRecord) -> None:
        record.status = FieldStatus.CONFIRMED
        record.locked_at = now
        record.locked_by = confirmed_by

    confirmed, failed, error = _decide_proposed(
        entity_id, list(keys), unit_of_work_factory=unit_of_work_factory, apply=confirm, now=now
    )
    log.info(
        "Confirmed %s field(s) for %s (%s failed)",
        len(confirmed),
        entity_id,
        len(failed),
    )
    return ConfirmResult(confirmed=confirmed, failed=failed, error=error)


def reject_fields(
    entity_id: EntityId,
    keys: Iterable[FieldKey],
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    reason: str | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> RejectResult:
    """Reject proposed records, remembering which proposal was turned down.

    The proposal's ``source_id`` is kept so the same run cannot propose the key again.
    """

    now = clock()

    def reject(record: FieldRecord) -> None:
        record.status = FieldStatus.REJECTED
        record.rejected_at = now
        record.rejected_reason = reason
        record.rejected_source_id = record.evidence.source_id

    rejected, failed, error = _decide_proposed(
        entity_id, list(keys), unit_of_work_factory=unit_of_work_factory, apply=reject, now=now
    )
    log.info(
        "Rejected %s field(s) for %s (%s failed)",
        len(rejected),
        entity_id,
        len(failed),
    )
    return RejectResult(rejected=rejected, failed=failed, error=error)


def update_field(
    entity_id: EntityId,
    key: FieldKey,
    value: JsonValue,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    updated_by: str | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> FieldRecord:
    """Record a human override; the result is confirmed and locked."""

    parse_field_key(key)
    with unit_of_work_factory() as uow:
        store = uow.repositories.field_stores.get(entity_id) or FieldStore(entity_id=entity_id)
        now = clock()
        existing = store.get(key)
        record = FieldRecord(
            key=key,
            value=value,
            status=FieldStatus.CONFIRMED,
            confidence=1.0,
            evidence=FieldEvidence(source=FieldSource.USER, original_source="user"),
            created_at=existing.created_at if existing is not None else now,
            updated_at=now,
            locked_at=now,
            locked_by=updated_by,
            dedupe_key=dedupe_key(
                entity_id=entity_id,
                field_key=key,
                source=FieldSource.USER.value,
                source_id=None,
                value=value,
            ),
        )
        if existing is not None:
            record.previous_value = existing.value
            record.previous_source = existing.source
        store.put(record)
        uow.repositories.field_stores.save(store)
        uow.commit()

    log.info("User override of %s for %s", key, entity_id)
    return record
