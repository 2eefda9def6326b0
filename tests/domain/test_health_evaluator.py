from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from factweave.adapters.labs import DEFAULT_EXTRACTORS, WebsiteLabExtractor
from factweave.config import ContextConfig
from factweave.domain.health import compute_health_status, reduce_health
from factweave.domain.model import (
    DiagnosticRun,
    ExtractionResult,
    HealthReason,
    HealthStatus,
    NextAction,
    StoreLoadError,
    StoreLoadErrorKind,
)
from factweave.domain.proposals import ProposalEngine, ProposalRequest, update_field

if TYPE_CHECKING:
    from factweave.domain.health import HealthReport
    from tests.helpers.fakes import FakeClock, FakeUnitOfWork

ENTITY = "acme"
IMPORTER = "website_lab"
LIVE = ContextConfig(enabled=True, ingest_website_lab=True)
RAW = {"siteAssessment": {"score": 70, "keyIssues": ["Weak hero copy"]}}


def _health(
    uow: FakeUnitOfWork,
    clock: FakeClock,
    *,
    config: ContextConfig = LIVE,
    extractors: object = DEFAULT_EXTRACTORS,
) -> HealthReport:
    return compute_health_status(
        ENTITY,
        importer_id=IMPORTER,
        unit_of_work_factory=uow.factory,
        extractors=extractors,  # type: ignore[arg-type]
        config=config,
        clock=clock,
    )


def _add_run(uow: FakeUnitOfWork, clock: FakeClock, run_id: str, raw: object = RAW) -> DiagnosticRun:
    run = DiagnosticRun(
        id=run_id, entity_id=ENTITY, kind=IMPORTER, raw_result=raw, created_at=clock()  # type: ignore[arg-type]
    )
    uow.runs.add(run)
    return run


def _propose_run(engine: ProposalEngine, run: DiagnosticRun) -> None:
    extraction = WebsiteLabExtractor()(run.raw_result)
    engine.propose(
        ProposalRequest(
            entity_id=ENTITY,
            importer_id=IMPORTER,
            source=IMPORTER,
            source_id=run.id,
            extraction_path=extraction.extraction_path,
            candidates=extraction.candidates,
        )
    )


@pytest.mark.parametrize(
    ("reasons", "expected"),
    [
        ([], HealthStatus.GREEN),
        ([HealthReason.RUN_STALE], HealthStatus.YELLOW),
        ([HealthReason.PROPOSE_ZERO_NO_CANDIDATES, HealthReason.NO_UPSTREAM_RUN], HealthStatus.YELLOW),
        ([HealthReason.RUN_STALE, HealthReason.NO_V4_STORE], HealthStatus.RED),
        ([HealthReason.FLAG_DISABLED], HealthStatus.RED),
    ],
)
def test_reduce_health(reasons: list[HealthReason], expected: HealthStatus) -> None:
    assert reduce_health(reasons) is expected


def test_scenario_from_empty_to_proposed(
    engine: ProposalEngine, uow: FakeUnitOfWork, clock: FakeClock
) -> None:
    empty = _health(uow, clock)

    assert empty.status is HealthStatus.RED
    assert HealthReason.NO_V4_STORE in empty.reasons
    assert HealthReason.NO_UPSTREAM_RUN in empty.reasons
    assert empty.next_action is NextAction.FIX_STORE_ACCESS

    run = _add_run(uow, clock, "run-1")
    _propose_run(engine, run)
    after = _health(uow, clock)

    assert not any(reason.value.startswith("PROPOSE_ZERO") for reason in after.reasons)
    assert after.status is HealthStatus.GREEN
    assert after.latest_run_id == "run-1"
    assert after.next_action is NextAction.REVIEW_PROPOSALS
    assert after.store_counts is not None
    assert after.store_counts.proposed == 2


def test_disabled_flag_is_red(uow: FakeUnitOfWork, clock: FakeClock) -> None:
    report = _health(uow, clock, config=ContextConfig())

    assert HealthReason.FLAG_DISABLED in report.reasons
    assert report.status is HealthStatus.RED


def test_new_run_with_known_values_is_all_duplicates(
    engine: ProposalEngine, uow: FakeUnitOfWork, clock: FakeClock
) -> None:
    _propose_run(engine, _add_run(uow, clock, "run-1"))
    clock.advance(minutes=5)
    _add_run(uow, clock, "run-2")

    report = _health(uow, clock)

    assert report.reasons == [HealthReason.PROPOSE_ZERO_ALL_DUPLICATES]
    assert report.status is HealthStatus.YELLOW


def test_unproposed_run_suggests_generating(
    uow: FakeUnitOfWork, clock: FakeClock
) -> None:
    update_field(ENTITY, "identity.companyName", "Acme", unit_of_work_factory=uow.factory)
    _add_run(uow, clock, "run-1")

    report = _health(uow, clock)

    assert report.candidate_count == 2
    assert report.would_propose == 2
    assert report.next_action is NextAction.GENERATE_PROPOSALS


def test_stale_run(engine: ProposalEngine, uow: FakeUnitOfWork, clock: FakeClock) -> None:
    _propose_run(engine, _add_run(uow, clock, "run-1"))
    clock.advance(hours=LIVE.run_stale_hours + 1)

    report = _health(uow, clock)

    assert HealthReason.RUN_STALE in report.reasons
    assert report.status is HealthStatus.YELLOW


def test_unrecognised_payload_is_extract_missing(uow: FakeUnitOfWork, clock: FakeClock) -> None:
    _add_run(uow, clock, "run-1", raw={"unexpected": True})

    report = _health(uow, clock)

    assert HealthReason.PROPOSE_ZERO_EXTRACT_MISSING in report.reasons
    assert report.extraction_path == "unknown"


def test_unreadable_store(uow: FakeUnitOfWork, clock: FakeClock) -> None:
    uow.field_stores.load_error = StoreLoadError(ENTITY, StoreLoadErrorKind.PARSE_ERROR, "bad json")

    report = _health(uow, clock)

    assert HealthReason.NO_V4_STORE in report.reasons
    assert report.next_action is NextAction.FIX_STORE_ACCESS


class _BrokenExtractor:
    importer_id = IMPORTER
    allowed_domains = frozenset({"website"})

    def __call__(self, raw_result: object) -> ExtractionResult:
        raise RuntimeError("boom")


def test_failing_check_is_swallowed(
    engine: ProposalEngine, uow: FakeUnitOfWork, clock: FakeClock
) -> None:
    _propose_run(engine, _add_run(uow, clock, "run-1"))

    report = _health(uow, clock, extractors={IMPORTER: _BrokenExtractor()})

    assert report.status is HealthStatus.GREEN
    assert report.reasons == []
