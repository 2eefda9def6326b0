"""Orchestrator for one proposal batch.

The engine loads the entity's store once, merges every candidate in order and
writes the store back once. It does not prescribe concrete adapters; importers,
the baseline scheduler and finding promotion all share it.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from factweave.domain.model import FieldStore, StoreLoadError, StoreSaveError, utcnow

from .contracts import ProposalOutcome
from .merge import merge_candidates
from .policy import ReplacePolicy

if TYPE_CHECKING:
    from datetime import datetime

    from factweave.domain.ports import UnitOfWorkFactory

    from .contracts import ProposalRequest

log = logging.getLogger(__name__)


@dataclass(slots=True, kw_only=True)
class ProposalEngine:
    """Merge candidate batches into field stores with once-per-batch persistence."""

    unit_of_work_factory: UnitOfWorkFactory
    policy: ReplacePolicy = field(default_factory=ReplacePolicy)
    clock: Callable[[], datetime] = utcnow

    def propose(self, request: ProposalRequest, *, persist: bool = True) -> ProposalOutcome:
        """Reconcile ``request`` against the stored fields.

        With ``persist=False`` the outcome is computed against the current store but
        nothing is written.
        """

        with self.unit_of_work_factory() as uow:
            repository = uow.repositories.field_stores
            try:
                store = repository.get(request.entity_id)
            except StoreLoadError as exc:
                log.warning("Proposal batch aborted for %s: %s", request.entity_id, exc)
                return ProposalOutcome(store_error=f"{exc.kind}: {exc.message}")
            if store is None:
                store = FieldStore(entity_id=request.entity_id)

            outcome = merge_candidates(store, request, policy=self.policy, now=self.clock())

            if persist and outcome.changed:
                try:
                    repository.save(store)
                    uow.commit()
                except StoreSaveError as exc:
                    uow.rollback()
                    outcome.store_error = str(exc)
                    log.warning("Failed to save field store for %s: %s", request.entity_id, exc)
                else:
                    outcome.persisted = True

        log.info(
            "Proposal batch entity=%s importer=%s path=%s: proposed=%s replaced=%s "
            "blocked=%s errors=%s persisted=%s",
            request.entity_id,
            request.importer_id,
            request.extraction_path,
            outcome.proposed_count,
            outcome.replaced_count,
            outcome.blocked_count,
            len(outcome.errors),
            outcome.persisted,
        )
        return outcome

    def preview(self, store: FieldStore, request: ProposalRequest) -> ProposalOutcome:
        """Compute the outcome of ``request`` against a copy of ``store``."""

        scratch = copy.deepcopy(store)
        return merge_candidates(scratch, request, policy=self.policy, now=self.clock())
