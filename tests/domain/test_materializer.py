from __future__ import annotations

from typing import TYPE_CHECKING

from factweave.domain.materialize import build_graph, materialize_confirmed_to_graph
from factweave.domain.model import Candidate, FieldSource
from factweave.domain.proposals import (
    ProposalEngine,
    ProposalRequest,
    confirm_fields,
    reject_fields,
    update_field,
)

if TYPE_CHECKING:
    from tests.helpers.fakes import FakeClock, FakeUnitOfWork

ENTITY = "acme"


def _seed(engine: ProposalEngine) -> None:
    engine.propose(
        ProposalRequest(
            entity_id=ENTITY,
            importer_id="brand_lab",
            source="brand_lab",
            source_id="run-1",
            candidates=[
                Candidate(key="brand.positioning", value="Ops platform", confidence=0.8),
                Candidate(key="brand.toneOfVoice", value="Plain", confidence=0.7),
                Candidate(key="audience.primaryAudience", value="COOs", confidence=0.8),
            ],
        )
    )


def test_only_confirmed_fields_reach_the_graph(
    engine: ProposalEngine, uow: FakeUnitOfWork, clock: FakeClock
) -> None:
    _seed(engine)
    confirm_fields(ENTITY, ["brand.positioning"], unit_of_work_factory=uow.factory, clock=clock)
    reject_fields(ENTITY, ["brand.toneOfVoice"], unit_of_work_factory=uow.factory)

    result = materialize_confirmed_to_graph(ENTITY, unit_of_work_factory=uow.factory, clock=clock)

    graph = uow.graphs.graphs[ENTITY]
    node = graph.node("brand.positioning")
    assert result.fields_updated == 1
    assert result.sources_used == ["lab"]
    assert set(graph.flatten()) == {"brand.positioning"}
    assert node is not None
    assert node.value == "Ops platform"
    assert node.confirmed_at == clock.now
    assert node.source_id == "run-1"


def test_rerun_is_stable(engine: ProposalEngine, uow: FakeUnitOfWork) -> None:
    _seed(engine)
    confirm_fields(ENTITY, ["brand.positioning"], unit_of_work_factory=uow.factory)

    materialize_confirmed_to_graph(ENTITY, unit_of_work_factory=uow.factory)
    first = uow.graphs.graphs[ENTITY].flatten()
    again = materialize_confirmed_to_graph(ENTITY, unit_of_work_factory=uow.factory)

    assert again.fields_updated == 0
    assert again.fields_written == 1
    assert uow.graphs.graphs[ENTITY].flatten() == first


def test_changes_are_counted_against_previous_graph(
    engine: ProposalEngine, uow: FakeUnitOfWork
) -> None:
    _seed(engine)
    confirm_fields(
        ENTITY,
        ["brand.positioning", "audience.primaryAudience"],
        unit_of_work_factory=uow.factory,
    )
    materialize_confirmed_to_graph(ENTITY, unit_of_work_factory=uow.factory)

    update_field(ENTITY, "brand.positioning", "Ops OS", unit_of_work_factory=uow.factory)
    result = materialize_confirmed_to_graph(ENTITY, unit_of_work_factory=uow.factory)

    assert result.fields_updated == 1
    assert result.sources_used == ["lab", "user"]
    node = uow.graphs.graphs[ENTITY].node("brand.positioning")
    assert node is not None
    assert node.source is FieldSource.USER


def test_graph_is_not_read_to_decide_content(
    engine: ProposalEngine, uow: FakeUnitOfWork
) -> None:
    _seed(engine)
    confirm_fields(ENTITY, ["brand.positioning"], unit_of_work_factory=uow.factory)
    stale = build_graph(None, ENTITY, now=engine.clock())
    stale.domains["legacy"] = {}
    uow.graphs.save(stale)

    materialize_confirmed_to_graph(ENTITY, unit_of_work_factory=uow.factory)

    assert set(uow.graphs.graphs[ENTITY].domains) == {"brand"}


def test_entity_without_store_gets_empty_graph(uow: FakeUnitOfWork) -> None:
    result = materialize_confirmed_to_graph("nobody", unit_of_work_factory=uow.factory)

    assert result.fields_written == 0
    assert uow.graphs.graphs["nobody"].domains == {}
