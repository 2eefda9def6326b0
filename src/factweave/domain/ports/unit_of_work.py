"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from factweave.domain.ports.persistence import (
        ContextGraphRepository,
        DiagnosticRunRepository,
        FieldStoreRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class ContextRepositories(RepositoryCollection):
    """Repositories backing the context reconciliation core."""

    field_stores: FieldStoreRepository
    graphs: ContextGraphRepository
    runs: DiagnosticRunRepository


type ContextUnitOfWork = UnitOfWork[ContextRepositories]
type UnitOfWorkFactory = Callable[[], ContextUnitOfWork]
