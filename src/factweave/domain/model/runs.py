"""Upstream diagnostic runs as seen by the reconciliation core."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import uuid4

from factweave.domain.model.enums import RunStatus
from factweave.domain.model.primitives import utcnow

if TYPE_CHECKING:
    from datetime import datetime, timedelta

    from factweave.domain.model.primitives import EntityId, JsonValue


@dataclass(slots=True, kw_only=True)
class DiagnosticRun:
    entity_id: EntityId
    kind: str
    raw_result: JsonValue
    status: RunStatus = RunStatus.COMPLETED
    created_at: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=lambda: uuid4().hex)

    def age(self, now: datetime) -> timedelta:
        return now - self.created_at
