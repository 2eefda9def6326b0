"""Promotion of findings into field proposals."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from factweave.domain.model import (
    Candidate,
    FieldStatus,
    PromotionStatus,
    parse_field_key,
)
from factweave.domain.proposals import ProposalOutcome, ProposalRequest

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from factweave.domain.model import EntityId, FieldKey, FieldStore, Finding
    from factweave.domain.proposals import ProposalEngine

log = logging.getLogger(__name__)


def promoted_hashes(store: FieldStore | None) -> frozenset[str]:
    """Canonical hashes carried by live (proposed or confirmed) records."""

    if store is None:
        return frozenset()
    return frozenset(
        record.evidence.finding_hash
        for record in store.records()
        if record.evidence.finding_hash and record.status is not FieldStatus.REJECTED
    )


def annotate_promotion_status(findings: Iterable[Finding], store: FieldStore | None) -> None:
    hashes = promoted_hashes(store)
    for finding in findings:
        finding.promotion_status = (
            PromotionStatus.PROMOTED_PENDING
            if finding.canonical_hash in hashes
            else PromotionStatus.NOT_PROMOTED
        )


def promote_finding(
    engine: ProposalEngine,
    entity_id: EntityId,
    finding: Finding,
    target_keys: Sequence[FieldKey],
    *,
    source_id: str | None = None,
) -> ProposalOutcome:
    """Fan ``finding`` out to one candidate per target key and propose them.

    Invalid target keys are reported in the outcome's errors; the remaining keys
    are still proposed.
    """

    outcome_errors: list[tuple[str, str]] = []
    candidates: list[Candidate] = []
    for key in target_keys:
        try:
            parse_field_key(key)
        except ValueError as exc:
            outcome_errors.append((str(key), str(exc)))
            continue
        candidates.append(
            Candidate(
                key=key,
                value=finding.description,
                confidence=finding.confidence,
                source=finding.lab_key,
                evidence_text=finding.title,
                raw_path=f"finding:{finding.finding_id}",
                finding_hash=finding.canonical_hash,
            )
        )

    if candidates:
        outcome = engine.propose(
            ProposalRequest(
                entity_id=entity_id,
                importer_id=finding.lab_key,
                source=finding.lab_key,
                source_id=source_id or finding.run_id,
                extraction_path="finding",
                candidates=candidates,
            )
        )
    else:
        outcome = ProposalOutcome()
    for key, message in outcome_errors:
        outcome.add_error(key, message)

    if outcome.proposed_count:
        finding.promotion_status = PromotionStatus.PROMOTED_PENDING
    log.info(
        "Promoted finding %s to %s key(s) for %s",
        finding.finding_id,
        outcome.proposed_count,
        entity_id,
    )
    return outcome
