"""Debounced auto-proposal of missing required fields.

Responsibilities of this stage:
- no-op when auto-proposal is switched off
- suppress duplicate triggers for the same entity/trigger (and run) within a window
- work out which required fields are still missing from the store
- extract candidates from the triggering run and propose only the missing ones
- report failures in the result instead of raising
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from factweave.domain.model import DEFAULT_REQUIRED_FIELDS, FieldStatus
from factweave.domain.proposals import ProposalRequest

if TYPE_CHECKING:
    from collections.abc import Sequence

    from factweave.config import ContextConfig
    from factweave.domain.model import (
        DiagnosticRun,
        EntityId,
        FieldKey,
        FieldStore,
        RequiredFieldSpec,
    )
    from factweave.domain.ports import (
        DebounceStore,
        ExtractorRegistry,
        RunSource,
        UnitOfWorkFactory,
    )
    from factweave.domain.proposals import ProposalEngine

log = logging.getLogger(__name__)


class SkipReason(StrEnum):
    DISABLED = "disabled"
    UNKNOWN_TRIGGER = "unknown_trigger"
    DEBOUNCED = "debounced"
    NOTHING_MISSING = "nothing_missing"
    NO_RUN = "no_run"
    NO_CANDIDATES = "no_candidates"
    ERROR = "error"


@dataclass(slots=True, kw_only=True)
class BaselineResult:
    attempted: int = 0
    created: int = 0
    failed: int = 0
    skipped_reason: SkipReason | None = None
    missing_keys: list[FieldKey] = field(default_factory=list["FieldKey"])
    error: str | None = None


def debounce_key(entity_id: EntityId, triggered_by: str, run_id: str | None = None) -> str:
    key = f"autopropose:{entity_id}:{triggered_by}"
    return f"{key}:{run_id}" if run_id else key


def missing_required_fields(
    store: FieldStore | None,
    required_fields: Sequence[RequiredFieldSpec] = DEFAULT_REQUIRED_FIELDS,
) -> list[RequiredFieldSpec]:
    """Specs not satisfied by any proposed or confirmed record (rejected counts as missing)."""

    present = (
        store.keys_with_status(FieldStatus.PROPOSED, FieldStatus.CONFIRMED)
        if store is not None
        else frozenset()
    )
    return [spec for spec in required_fields if not spec.is_satisfied_by(present)]


@dataclass(slots=True, kw_only=True)
class BaselineScheduler:
    """Fill missing required fields after an upstream run completes."""

    engine: ProposalEngine
    unit_of_work_factory: UnitOfWorkFactory
    extractors: ExtractorRegistry
    debounce: DebounceStore
    config: ContextConfig
    required_fields: Sequence[RequiredFieldSpec] = DEFAULT_REQUIRED_FIELDS

    def auto_propose_baseline_if_needed(
        self,
        *,
        entity_id: EntityId,
        triggered_by: str,
        run_id: str | None = None,
    ) -> BaselineResult:
        if not (self.config.enabled and self.config.autopropose_enabled):
            return BaselineResult(skipped_reason=SkipReason.DISABLED)

        extractor = self.extractors.get(triggered_by)
        if extractor is None:
            log.info("No extractor for trigger %s; skipping baseline", triggered_by)
            return BaselineResult(skipped_reason=SkipReason.UNKNOWN_TRIGGER)

        marker = debounce_key(entity_id, triggered_by, run_id)
        if not self.debounce.set_if_absent(marker, self.config.debounce_seconds):
            log.info("Baseline for %s via %s debounced", entity_id, triggered_by)
            return BaselineResult(skipped_reason=SkipReason.DEBOUNCED)

        result = BaselineResult()
        try:
            self._run(result, entity_id=entity_id, triggered_by=triggered_by, run_id=run_id)
        except Exception as exc:  # noqa: BLE001
            log.exception("Baseline auto-propose failed for %s via %s", entity_id, triggered_by)
            result.failed = result.attempted
            result.created = 0
            result.skipped_reason = SkipReason.ERROR
            result.error = str(exc) or type(exc).__name__
        return result

    def _run(
        self,
        result: BaselineResult,
        *,
        entity_id: EntityId,
        triggered_by: str,
        run_id: str | None,
    ) -> None:
        with self.unit_of_work_factory() as uow:
            store = uow.repositories.field_stores.get(entity_id)
            run = self._find_run(uow.repositories.runs, entity_id, triggered_by, run_id)

        missing = missing_required_fields(store, self.required_fields)
        result.missing_keys = [spec.path for spec in missing]
        if not missing:
            result.skipped_reason = SkipReason.NOTHING_MISSING
            return
        if run is None:
            result.skipped_reason = SkipReason.NO_RUN
            return

        extraction = self.extractors[triggered_by](run.raw_result)
        wanted = {key for spec in missing for key in spec.keys}
        candidates = [c for c in extraction.candidates if c.key in wanted]
        if not candidates:
            result.skipped_reason = SkipReason.NO_CANDIDATES
            log.info(
                "Baseline for %s: run %s has no candidates for %s missing field(s)",
                entity_id,
                run.id,
                len(missing),
            )
            return

        result.attempted = len(candidates)
        outcome = self.engine.propose(
            ProposalRequest(
                entity_id=entity_id,
                importer_id=triggered_by,
                source=triggered_by,
                source_id=run.id,
                extraction_path=extraction.extraction_path,
                candidates=candidates,
            )
        )
        if outcome.store_error is not None:
            result.failed = result.attempted
            result.error = outcome.store_error
            return
        result.created = outcome.proposed_count + outcome.replaced_count
        result.failed = len(outcome.errors)
        log.info(
            "Baseline for %s via %s: attempted=%s created=%s failed=%s",
            entity_id,
            triggered_by,
            result.attempted,
            result.created,
            result.failed,
        )

    @staticmethod
    def _find_run(
        runs: RunSource,
        entity_id: EntityId,
        triggered_by: str,
        run_id: str | None,
    ) -> DiagnosticRun | None:
        if run_id is None:
            return runs.latest(entity_id, triggered_by)
        run = runs.get(run_id)
        if run is None or run.entity_id != entity_id:
            return None
        return run
