"""Static registry of fields the baseline scheduler keeps filled."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable

    from factweave.domain.model.primitives import FieldKey


@dataclass(slots=True, kw_only=True, frozen=True)
class RequiredFieldSpec:
    """A field that must eventually be filled, plus keys that also satisfy it."""

    path: FieldKey
    domain: str
    reason: str
    alternatives: tuple[FieldKey, ...] = field(default_factory=tuple)

    @property
    def keys(self) -> tuple[FieldKey, ...]:
        return (self.path, *self.alternatives)

    def is_satisfied_by(self, present_keys: Iterable[FieldKey]) -> bool:
        present = set(present_keys)
        return any(key in present for key in self.keys)


REQUIRED_FIELDS_VERSION: Final[int] = 1

DEFAULT_REQUIRED_FIELDS: Final[tuple[RequiredFieldSpec, ...]] = (
    RequiredFieldSpec(
        path="identity.businessModel",
        domain="identity",
        reason="Strategy needs to know how the company makes money",
        alternatives=("identity.companyDescription",),
    ),
    RequiredFieldSpec(
        path="audience.primaryAudience",
        domain="audience",
        reason="Primary audience / ICP anchors every program",
        alternatives=("audience.icpDescription",),
    ),
    RequiredFieldSpec(
        path="productOffer.valueProposition",
        domain="productOffer",
        reason="Value proposition is required for positioning work",
    ),
    RequiredFieldSpec(
        path="productOffer.primaryProducts",
        domain="productOffer",
        reason="Offer must be known before programs can be generated",
    ),
    RequiredFieldSpec(
        path="brand.positioning",
        domain="brand",
        reason="Positioning statement is part of the strategy frame",
    ),
    RequiredFieldSpec(
        path="brand.differentiators",
        domain="brand",
        reason="Differentiators feed the strategy frame",
    ),
    RequiredFieldSpec(
        path="website.websiteScore",
        domain="website",
        reason="Baseline website health is needed for prioritization",
    ),
    RequiredFieldSpec(
        path="website.conversionBlocks",
        domain="website",
        reason="Known conversion blockers drive quick-win work",
        alternatives=("website.quickWins",),
    ),
    RequiredFieldSpec(
        path="competition.primaryCompetitors",
        domain="competition",
        reason="Competitive set is part of the strategy frame",
    ),
)
