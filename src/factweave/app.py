"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from factweave.adapters.labs import DEFAULT_EXTRACTORS, extract_findings
from factweave.adapters.memory import InMemoryDebounceStore
from factweave.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyContextUnitOfWork,
    is_started,
    startup,
)
from factweave.config import get_context_config
from factweave.domain.baseline import BaselineScheduler
from factweave.domain.findings import annotate_promotion_status, promote_finding
from factweave.domain.health import compute_health_status
from factweave.domain.materialize import materialize_confirmed_to_graph
from factweave.domain.model import (
    DiagnosticRun,
    ExtractionResult,
    RunStatus,
    utcnow,
)
from factweave.domain.proposals import (
    ProposalEngine,
    ProposalOutcome,
    ProposalRequest,
    ReplacePolicy,
    confirm_fields,
    reject_fields,
    update_field,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from factweave.config import ContextConfig
    from factweave.domain.baseline import BaselineResult
    from factweave.domain.health import HealthReport
    from factweave.domain.materialize import MaterializeResult
    from factweave.domain.model import EntityId, FieldKey, FieldRecord, Finding, JsonValue
    from factweave.domain.ports import DebounceStore, ExtractorRegistry, UnitOfWorkFactory
    from factweave.domain.proposals import ConfirmResult, RejectResult

log = getLogger(__name__)


@dataclass(slots=True, kw_only=True)
class ImportResult:
    """What happened when one importer's raw result was offered to the store."""

    importer_id: str
    extraction: ExtractionResult
    outcome: ProposalOutcome = field(default_factory=ProposalOutcome)
    skipped_reason: str | None = None


@dataclass(slots=True, kw_only=True)
class ContextService:
    """Wires configuration, extractors and persistence into the domain operations."""

    unit_of_work_factory: UnitOfWorkFactory
    config: ContextConfig
    extractors: ExtractorRegistry = DEFAULT_EXTRACTORS
    debounce: DebounceStore = field(default_factory=InMemoryDebounceStore)
    clock: Callable[[], datetime] = utcnow
    engine: ProposalEngine = field(init=False)
    scheduler: BaselineScheduler = field(init=False)

    def __post_init__(self) -> None:
        self.engine = ProposalEngine(
            unit_of_work_factory=self.unit_of_work_factory,
            policy=ReplacePolicy(min_confidence_delta=self.config.replace_confidence_delta),
            clock=self.clock,
        )
        self.scheduler = BaselineScheduler(
            engine=self.engine,
            unit_of_work_factory=self.unit_of_work_factory,
            extractors=self.extractors,
            debounce=self.debounce,
            config=self.config,
        )

    def propose_raw(
        self,
        entity_id: EntityId,
        importer_id: str,
        raw_result: JsonValue | str,
        *,
        source_id: str | None = None,
        persist: bool = True,
    ) -> ImportResult:
        """Extract candidates from ``raw_result`` and propose them for ``entity_id``.

        Disabled importers and unknown importer ids are reported, never raised.
        """

        extraction = ExtractionResult(importer_id=importer_id)
        if not self.config.ingest_enabled(importer_id):
            log.info("Ingest for %s is disabled; skipping %s", importer_id, entity_id)
            return ImportResult(
                importer_id=importer_id, extraction=extraction, skipped_reason="disabled"
            )
        extractor = self.extractors.get(importer_id)
        if extractor is None:
            return ImportResult(
                importer_id=importer_id,
                extraction=extraction,
                skipped_reason="unknown_importer",
            )

        extraction = extractor(raw_result)
        result = ImportResult(importer_id=importer_id, extraction=extraction)
        if not extraction.candidates:
            result.skipped_reason = "no_candidates"
            log.info(
                "No candidates from %s for %s (path=%s, reason=%s)",
                importer_id,
                entity_id,
                extraction.extraction_path,
                extraction.failure_reason,
            )
            return result

        result.outcome = self.engine.propose(
            ProposalRequest(
                entity_id=entity_id,
                importer_id=importer_id,
                source=importer_id,
                source_id=source_id,
                extraction_path=extraction.extraction_path,
                candidates=list(extraction.candidates),
            ),
            persist=persist,
        )
        return result

    def propose_from_run(
        self, entity_id: EntityId, importer_id: str, *, run_id: str | None = None
    ) -> ImportResult:
        """Propose from a stored run: ``run_id`` or the latest run of kind ``importer_id``."""

        run = self._load_run(entity_id, importer_id, run_id)
        if run is None:
            return ImportResult(
                importer_id=importer_id,
                extraction=ExtractionResult(importer_id=importer_id),
                skipped_reason="no_run",
            )
        return self.propose_raw(entity_id, importer_id, run.raw_result, source_id=run.id)

    def record_run(
        self,
        entity_id: EntityId,
        kind: str,
        raw_result: JsonValue,
        *,
        status: RunStatus = RunStatus.COMPLETED,
        auto_propose: bool = True,
    ) -> tuple[DiagnosticRun, BaselineResult | None]:
        """Store an upstream run and, once it completed, fill missing required fields."""

        run = DiagnosticRun(
            entity_id=entity_id,
            kind=kind,
            raw_result=raw_result,
            status=status,
            created_at=self.clock(),
        )
        with self.unit_of_work_factory() as uow:
            uow.repositories.runs.add(run)
            uow.commit()
        log.info("Recorded %s run %s for %s (%s)", kind, run.id, entity_id, status)

        if not auto_propose or status is not RunStatus.COMPLETED:
            return run, None
        baseline = self.scheduler.auto_propose_baseline_if_needed(
            entity_id=entity_id, triggered_by=kind, run_id=run.id
        )
        return run, baseline

    def auto_propose(
        self, entity_id: EntityId, triggered_by: str, *, run_id: str | None = None
    ) -> BaselineResult:
        return self.scheduler.auto_propose_baseline_if_needed(
            entity_id=entity_id, triggered_by=triggered_by, run_id=run_id
        )

    def confirm(
        self, entity_id: EntityId, keys: Sequence[FieldKey], *, confirmed_by: str | None = None
    ) -> ConfirmResult:
        return confirm_fields(
            entity_id,
            keys,
            unit_of_work_factory=self.unit_of_work_factory,
            confirmed_by=confirmed_by,
            clock=self.clock,
        )

    def reject(
        self, entity_id: EntityId, keys: Sequence[FieldKey], *, reason: str | None = None
    ) -> RejectResult:
        return reject_fields(
            entity_id,
            keys,
            unit_of_work_factory=self.unit_of_work_factory,
            reason=reason,
            clock=self.clock,
        )

    def override(
        self,
        entity_id: EntityId,
        key: FieldKey,
        value: JsonValue,
        *,
        updated_by: str | None = None,
    ) -> FieldRecord:
        return update_field(
            entity_id,
            key,
            value,
            unit_of_work_factory=self.unit_of_work_factory,
            updated_by=updated_by,
            clock=self.clock,
        )

    def materialize(self, entity_id: EntityId) -> MaterializeResult:
        return materialize_confirmed_to_graph(
            entity_id, unit_of_work_factory=self.unit_of_work_factory, clock=self.clock
        )

    def health(self, entity_id: EntityId, *, importer_id: str) -> HealthReport:
        return compute_health_status(
            entity_id,
            importer_id=importer_id,
            unit_of_work_factory=self.unit_of_work_factory,
            extractors=self.extractors,
            config=self.config,
            policy=self.engine.policy,
            clock=self.clock,
        )

    def findings(
        self, entity_id: EntityId, lab_key: str, *, run_id: str | None = None
    ) -> list[Finding]:
        """Findings of the selected lab run, annotated with their promotion status."""

        run = self._load_run(entity_id, lab_key, run_id)
        if run is None:
            return []
        found = extract_findings(lab_key, run.id, run.raw_result)
        with self.unit_of_work_factory() as uow:
            store = uow.repositories.field_stores.get(entity_id)
        annotate_promotion_status(found, store)
        return found

    def promote(
        self,
        entity_id: EntityId,
        lab_key: str,
        finding_id: str,
        target_keys: Sequence[FieldKey],
        *,
        run_id: str | None = None,
    ) -> ProposalOutcome | None:
        """Promote one finding into proposals; ``None`` when the finding is unknown."""

        for finding in self.findings(entity_id, lab_key, run_id=run_id):
            if finding.finding_id == finding_id:
                keys = list(target_keys) or [
                    item.field_key for item in finding.recommended_target_fields[:1]
                ]
                return promote_finding(
                    self.engine, entity_id, finding, keys, source_id=finding.run_id
                )
        log.info("Finding %s not found for %s/%s", finding_id, entity_id, lab_key)
        return None

    def _load_run(
        self, entity_id: EntityId, kind: str, run_id: str | None
    ) -> DiagnosticRun | None:
        with self.unit_of_work_factory() as uow:
            runs = uow.repositories.runs
            if run_id is None:
                return runs.latest(entity_id, kind)
            run = runs.get(run_id)
        if run is None or run.entity_id != entity_id:
            return None
        return run


def build_context_service(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: ContextConfig | None = None,
    debounce: DebounceStore | None = None,
) -> ContextService:
    """Return a service over the configured SQLAlchemy database."""

    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyContextUnitOfWork
    return ContextService(
        unit_of_work_factory=unit_of_work_factory,
        config=config or get_context_config(),
        debounce=debounce or InMemoryDebounceStore(),
    )
