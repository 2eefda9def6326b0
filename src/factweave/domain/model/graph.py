"""Secondary, denormalized representation derived from confirmed fields."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from factweave.domain.model.primitives import utcnow

if TYPE_CHECKING:
    from datetime import datetime

    from factweave.domain.model.enums import FieldSource
    from factweave.domain.model.primitives import Confidence, EntityId, FieldKey, JsonValue


@dataclass(slots=True, kw_only=True, frozen=True)
class GraphNode:
    value: JsonValue
    source: FieldSource
    confidence: Confidence
    confirmed_at: datetime | None = None
    source_id: str | None = None


@dataclass(slots=True, kw_only=True)
class ContextGraph:
    """Confirmed facts grouped by domain, keyed by the field part of the dotted path."""

    entity_id: EntityId
    domains: dict[str, dict[str, GraphNode]] = field(
        default_factory=dict[str, dict[str, GraphNode]]
    )
    updated_at: datetime = field(default_factory=utcnow)

    def node(self, key: FieldKey) -> GraphNode | None:
        domain, _, name = key.partition(".")
        return self.domains.get(domain, {}).get(name)

    def set_node(self, key: FieldKey, node: GraphNode) -> None:
        domain, _, name = key.partition(".")
        self.domains.setdefault(domain, {})[name] = node

    def flatten(self) -> dict[FieldKey, GraphNode]:
        return {
            f"{domain}.{name}": node
            for domain, nodes in self.domains.items()
            for name, node in nodes.items()
        }
