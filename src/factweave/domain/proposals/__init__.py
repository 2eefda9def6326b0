"""Proposal subsystem: merging candidates into field stores and reviewing them."""

from __future__ import annotations

from .contracts import CandidateError, MergeDecision, ProposalOutcome, ProposalRequest
from .engine import ProposalEngine
from .merge import merge_candidates
from .policy import ReplacePolicy, values_equal
from .queries import field_counts, get_confirmed_fields, get_proposed_fields, proposed_by_source
from .review import (
    ConfirmResult,
    RejectResult,
    confirm_fields,
    ensure_store,
    reject_fields,
    update_field,
)

__all__ = [
    "CandidateError",
    "ConfirmResult",
    "MergeDecision",
    "ProposalEngine",
    "ProposalOutcome",
    "ProposalRequest",
    "RejectResult",
    "ReplacePolicy",
    "confirm_fields",
    "ensure_store",
    "field_counts",
    "get_confirmed_fields",
    "get_proposed_fields",
    "merge_candidates",
    "proposed_by_source",
    "reject_fields",
    "update_field",
    "values_equal",
]
