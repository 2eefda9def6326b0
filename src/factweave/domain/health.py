"""Rule-based health evaluation of an entity's field store and upstream runs.

Every check runs independently and may add one reason; a check that raises is
logged and contributes nothing. Reasons reduce to a three-level status.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Final

from factweave.domain.model import (
    FieldCounts,
    FieldStore,
    HealthReason,
    HealthStatus,
    NextAction,
    StoreLoadError,
    utcnow,
)
from factweave.domain.proposals import ProposalRequest, ReplacePolicy, merge_candidates

if TYPE_CHECKING:
    from datetime import datetime

    from factweave.config import ContextConfig
    from factweave.domain.model import DiagnosticRun, EntityId, ExtractionResult
    from factweave.domain.ports import ExtractorRegistry, UnitOfWorkFactory

log = logging.getLogger(__name__)

RED_REASONS: Final[frozenset[HealthReason]] = frozenset(
    {
        HealthReason.FLAG_DISABLED,
        HealthReason.NO_V4_STORE,
        HealthReason.PROPOSE_ZERO_EXTRACT_MISSING,
    }
)
YELLOW_REASONS: Final[frozenset[HealthReason]] = frozenset(
    {
        HealthReason.NO_UPSTREAM_RUN,
        HealthReason.RUN_STALE,
        HealthReason.PROPOSE_ZERO_NO_CANDIDATES,
        HealthReason.PROPOSE_ZERO_ALL_DUPLICATES,
    }
)


def reduce_health(reasons: Iterable[HealthReason]) -> HealthStatus:
    found = set(reasons)
    if found & RED_REASONS:
        return HealthStatus.RED
    if found & YELLOW_REASONS:
        return HealthStatus.YELLOW
    return HealthStatus.GREEN


@dataclass(slots=True, kw_only=True)
class HealthReport:
    entity_id: EntityId
    importer_id: str
    status: HealthStatus = HealthStatus.GREEN
    reasons: list[HealthReason] = field(default_factory=list[HealthReason])
    store_counts: FieldCounts | None = None
    latest_run_id: str | None = None
    latest_run_age: timedelta | None = None
    candidate_count: int = 0
    would_propose: int = 0
    extraction_path: str | None = None
    failure_reason: str | None = None
    next_action: NextAction = NextAction.NONE

    def add(self, reason: HealthReason) -> None:
        if reason not in self.reasons:
            self.reasons.append(reason)


@dataclass(slots=True, kw_only=True)
class _Observed:
    store: FieldStore | None = None
    store_ok: bool = False
    run: DiagnosticRun | None = None
    extraction: ExtractionResult | None = None


type _Check = Callable[[HealthReport, _Observed], None]


@dataclass(slots=True, kw_only=True)
class HealthEvaluator:
    """Compute a ``HealthReport`` for one entity and importer."""

    unit_of_work_factory: UnitOfWorkFactory
    extractors: ExtractorRegistry
    config: ContextConfig
    policy: ReplacePolicy = field(default_factory=ReplacePolicy)
    clock: Callable[[], datetime] = utcnow

    def evaluate(self, entity_id: EntityId, *, importer_id: str) -> HealthReport:
        report = HealthReport(entity_id=entity_id, importer_id=importer_id)
        observed = _Observed()
        checks: tuple[tuple[str, _Check], ...] = (
            ("flag", self._check_flag),
            ("store", self._check_store),
            ("run", self._check_run),
            ("propose", self._check_propose),
        )
        for name, check in checks:
            try:
                check(report, observed)
            except Exception:  # noqa: BLE001
                log.warning(
                    "Health check %s failed for %s", name, entity_id, exc_info=True
                )

        report.status = reduce_health(report.reasons)
        try:
            report.next_action = self._next_action(report, observed)
        except Exception:  # noqa: BLE001
            log.warning("Next action failed for %s", entity_id, exc_info=True)
        log.debug(
            "Health for %s/%s: %s %s",
            entity_id,
            importer_id,
            report.status,
            [reason.value for reason in report.reasons],
        )
        return report

    def _check_flag(self, report: HealthReport, _observed: _Observed) -> None:
        if not self.config.ingest_enabled(report.importer_id):
            report.add(HealthReason.FLAG_DISABLED)

    def _check_store(self, report: HealthReport, observed: _Observed) -> None:
        try:
            with self.unit_of_work_factory() as uow:
                observed.store = uow.repositories.field_stores.get(report.entity_id)
        except StoreLoadError as exc:
            log.info("Field store for %s unreadable: %s", report.entity_id, exc)
            report.add(HealthReason.NO_V4_STORE)
            return
        if observed.store is None:
            report.add(HealthReason.NO_V4_STORE)
            return
        observed.store_ok = True
        report.store_counts = observed.store.counts()

    def _check_run(self, report: HealthReport, observed: _Observed) -> None:
        with self.unit_of_work_factory() as uow:
            observed.run = uow.repositories.runs.latest(report.entity_id, report.importer_id)
        if observed.run is None:
            report.add(HealthReason.NO_UPSTREAM_RUN)
            return
        report.latest_run_id = observed.run.id
        report.latest_run_age = observed.run.age(self.clock())
        if report.latest_run_age > timedelta(hours=self.config.run_stale_hours):
            report.add(HealthReason.RUN_STALE)

    def _check_propose(self, report: HealthReport, observed: _Observed) -> None:
        run = observed.run
        if run is None:
            return
        extractor = self.extractors.get(report.importer_id)
        if extractor is None:
            report.failure_reason = f"No extractor registered for {report.importer_id}"
            report.add(HealthReason.PROPOSE_ZERO_EXTRACT_MISSING)
            return

        extraction = extractor(run.raw_result)
        observed.extraction = extraction
        report.extraction_path = extraction.extraction_path
        report.candidate_count = len(extraction.candidates)
        report.failure_reason = extraction.failure_reason
        if not extraction.path_found:
            report.add(HealthReason.PROPOSE_ZERO_EXTRACT_MISSING)
            return
        if not extraction.candidates:
            report.add(HealthReason.PROPOSE_ZERO_NO_CANDIDATES)
            return

        scratch = (
            copy.deepcopy(observed.store)
            if observed.store is not None
            else FieldStore(entity_id=report.entity_id)
        )
        preview = merge_candidates(
            scratch,
            ProposalRequest(
                entity_id=report.entity_id,
                importer_id=report.importer_id,
                source=report.importer_id,
                source_id=run.id,
                extraction_path=extraction.extraction_path,
                candidates=extraction.candidates,
            ),
            policy=self.policy,
            now=self.clock(),
        )
        report.would_propose = preview.proposed_count + preview.replaced_count
        already_applied = observed.store is not None and any(
            record.evidence.source_id == run.id for record in observed.store.records()
        )
        if report.would_propose == 0 and not already_applied:
            report.add(HealthReason.PROPOSE_ZERO_ALL_DUPLICATES)

    @staticmethod
    def _next_action(report: HealthReport, observed: _Observed) -> NextAction:
        if not observed.store_ok:
            return NextAction.FIX_STORE_ACCESS
        if observed.run is not None and report.would_propose > 0:
            return NextAction.GENERATE_PROPOSALS
        if report.store_counts is not None and report.store_counts.proposed > 0:
            return NextAction.REVIEW_PROPOSALS
        return NextAction.NONE


def compute_health_status(  # noqa: PLR0913
    entity_id: EntityId,
    *,
    importer_id: str,
    unit_of_work_factory: UnitOfWorkFactory,
    extractors: ExtractorRegistry,
    config: ContextConfig,
    policy: ReplacePolicy | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> HealthReport:
    evaluator = HealthEvaluator(
        unit_of_work_factory=unit_of_work_factory,
        extractors=extractors,
        config=config,
        policy=policy or ReplacePolicy(min_confidence_delta=config.replace_confidence_delta),
        clock=clock,
    )
    return evaluator.evaluate(entity_id, importer_id=importer_id)
