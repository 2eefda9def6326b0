"""One-way sync of confirmed fields into the context graph."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from factweave.domain.model import ContextGraph, FieldStatus, GraphNode, utcnow
from factweave.domain.proposals import values_equal

if TYPE_CHECKING:
    from datetime import datetime

    from factweave.domain.model import EntityId, FieldStore
    from factweave.domain.ports import UnitOfWorkFactory

log = logging.getLogger(__name__)


@dataclass(slots=True, kw_only=True)
class MaterializeResult:
    fields_updated: int = 0
    sources_used: list[str] = field(default_factory=list[str])
    fields_written: int = 0


def build_graph(store: FieldStore | None, entity_id: EntityId, *, now: datetime) -> ContextGraph:
    """Derive the graph from confirmed records only."""

    graph = ContextGraph(entity_id=entity_id, updated_at=now)
    if store is None:
        return graph
    for record in sorted(store.records(FieldStatus.CONFIRMED), key=lambda item: item.key):
        graph.set_node(
            record.key,
            GraphNode(
                value=record.value,
                source=record.source,
                confidence=record.confidence,
                confirmed_at=record.locked_at or record.updated_at,
                source_id=record.evidence.source_id,
            ),
        )
    return graph


def materialize_confirmed_to_graph(
    entity_id: EntityId,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    clock: Callable[[], datetime] = utcnow,
) -> MaterializeResult:
    """Rewrite the entity's graph from its confirmed fields.

    The previous graph only feeds ``fields_updated``; it never influences what is
    written, so re-running is always safe.
    """

    with unit_of_work_factory() as uow:
        store = uow.repositories.field_stores.get(entity_id)
        graph = build_graph(store, entity_id, now=clock())
        previous = uow.repositories.graphs.get(entity_id)
        previous_nodes = previous.flatten() if previous is not None else {}

        nodes = graph.flatten()
        updated = sum(
            1
            for key, node in nodes.items()
            if key not in previous_nodes or not values_equal(previous_nodes[key].value, node.value)
        )
        updated += sum(1 for key in previous_nodes if key not in nodes)
        sources = sorted({node.source.value for node in nodes.values()})

        uow.repositories.graphs.save(graph)
        uow.commit()

    log.info(
        "Materialized %s confirmed field(s) for %s (%s changed, sources=%s)",
        len(nodes),
        entity_id,
        updated,
        ",".join(sources) or "-",
    )
    return MaterializeResult(fields_updated=updated, sources_used=sources, fields_written=len(nodes))
