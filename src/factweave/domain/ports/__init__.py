"""Domain ports (interfaces) for adapters."""

from __future__ import annotations

from factweave.domain.ports.debounce import DebounceStore
from factweave.domain.ports.extraction import CandidateExtractor, ExtractorRegistry
from factweave.domain.ports.persistence import (
    ContextGraphRepository,
    DiagnosticRunRepository,
    FieldStoreRepository,
    RunSource,
)
from factweave.domain.ports.unit_of_work import (
    ContextRepositories,
    ContextUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
    UnitOfWorkFactory,
)

__all__ = [
    "CandidateExtractor",
    "ContextGraphRepository",
    "ContextRepositories",
    "ContextUnitOfWork",
    "DebounceStore",
    "DiagnosticRunRepository",
    "ExtractorRegistry",
    "FieldStoreRepository",
    "RepositoryCollection",
    "RunSource",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
