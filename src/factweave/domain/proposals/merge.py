"""Pure merge of a candidate batch into an in-memory field store.

Responsibilities of this stage:
- validate candidate keys and values
- apply the replace policy per candidate, in input order
- build field records with provenance and dedupe keys
- avoid persistence side effects
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from factweave.domain.hashing import dedupe_key
from factweave.domain.model import (
    FieldEvidence,
    FieldKeyError,
    FieldRecord,
    FieldStatus,
    clamp_confidence,
    is_meaningful_value,
    map_source,
    parse_field_key,
)

from .contracts import MergeDecision, ProposalOutcome

if TYPE_CHECKING:
    from datetime import datetime

    from factweave.domain.model import Candidate, FieldStore

    from .contracts import ProposalRequest
    from .policy import ReplacePolicy

log = logging.getLogger(__name__)


def merge_candidates(
    store: FieldStore,
    request: ProposalRequest,
    *,
    policy: ReplacePolicy,
    now: datetime,
) -> ProposalOutcome:
    """Merge ``request.candidates`` into ``store`` and report what happened.

    A failing candidate is recorded in ``errors`` and the batch continues.
    """

    outcome = ProposalOutcome()
    for candidate in request.candidates:
        try:
            decision = _merge_one(store, request, candidate, policy=policy, now=now)
        except FieldKeyError as exc:
            outcome.add_error(candidate.key, str(exc))
            continue
        except (TypeError, ValueError) as exc:
            outcome.add_error(candidate.key, f"Value is not JSON-serializable: {exc}")
            continue
        outcome.record(candidate.key, decision)
    return outcome


def _merge_one(
    store: FieldStore,
    request: ProposalRequest,
    candidate: Candidate,
    *,
    policy: ReplacePolicy,
    now: datetime,
) -> MergeDecision:
    parse_field_key(candidate.key)
    if not is_meaningful_value(candidate.value):
        return MergeDecision.SKIP_EMPTY
    json.dumps(candidate.value, allow_nan=False)

    confidence = clamp_confidence(candidate.confidence)
    existing = store.get(candidate.key)
    decision = policy.decide(
        existing,
        value=candidate.value,
        confidence=confidence,
        source_id=request.source_id,
    )

    if decision in (MergeDecision.CREATE, MergeDecision.REPROPOSE):
        store.put(_build_record(request, candidate, confidence=confidence, now=now))
    elif decision is MergeDecision.REPLACE and existing is not None:
        replacement = _build_record(request, candidate, confidence=confidence, now=now)
        replacement.created_at = existing.created_at
        store.put(replacement)
    elif decision is MergeDecision.BLOCK_CONFIRMED:
        log.debug("Blocked %s for %s: record is confirmed", candidate.key, request.entity_id)
    elif decision is MergeDecision.BLOCK_REJECTED:
        log.debug(
            "Blocked %s for %s: rejected for source %s",
            candidate.key,
            request.entity_id,
            request.source_id,
        )
    return decision


def _build_record(
    request: ProposalRequest,
    candidate: Candidate,
    *,
    confidence: float,
    now: datetime,
) -> FieldRecord:
    raw_source = candidate.source or request.source
    source = map_source(raw_source)
    return FieldRecord(
        key=candidate.key,
        value=candidate.value,
        status=FieldStatus.PROPOSED,
        confidence=confidence,
        evidence=FieldEvidence(
            source=source,
            source_id=request.source_id,
            importer_id=request.importer_id,
            original_source=raw_source,
            text=candidate.evidence_text,
            pointer=candidate.raw_path,
            is_inferred=candidate.is_inferred,
            finding_hash=candidate.finding_hash,
        ),
        created_at=now,
        updated_at=now,
        dedupe_key=dedupe_key(
            entity_id=request.entity_id,
            field_key=candidate.key,
            source=source.value,
            source_id=request.source_id,
            value=candidate.value,
        ),
    )
